from __future__ import annotations

from datetime import datetime

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QGridLayout, QGroupBox, QHBoxLayout, QLabel, QWidget

from ops_telemetry.models.common import CollectorResult
from ops_telemetry.models.disk import DiskData
from ops_telemetry.models.memory import MemoryData


class OverviewPage(QWidget):
    def __init__(self) -> None:
        super().__init__()

        self._last_update = QLabel("Last Update: -")
        self._mem_summary = QLabel("Memory: -")
        self._disk_summary = QLabel("Disks: -")
        self._warnings = QLabel("Warnings: -")
        self._warnings.setWordWrap(True)

        for lbl in (self._mem_summary, self._disk_summary, self._warnings):
            lbl.setTextInteractionFlags(Qt.TextSelectableByMouse)

        gb = QGroupBox("Overview")
        grid = QGridLayout(gb)
        grid.addWidget(self._last_update, 0, 0, 1, 2)
        grid.addWidget(self._mem_summary, 1, 0, 1, 2)
        grid.addWidget(self._disk_summary, 2, 0, 1, 2)
        grid.addWidget(self._warnings, 3, 0, 1, 2)

        root = QHBoxLayout(self)
        root.addWidget(gb)
        root.addStretch(1)

        self._mem_warnings: list[str] = []
        self._disk_warnings: list[str] = []

    def set_memory(self, result: CollectorResult[MemoryData]) -> None:
        self._stamp(result.ts)
        m = result.data.memory
        if m is None:
            self._mem_summary.setText(f"Memory: {result.status}")
        else:
            self._mem_summary.setText(f"Memory: {result.status} | USED: {m.used_percent:.1f}%")
        self._mem_warnings = list(result.warnings)
        self._show_warnings()

    def set_disk(self, result: CollectorResult[DiskData]) -> None:
        self._stamp(result.ts)
        d = result.data
        self._disk_summary.setText(
            f"Disks: {result.status} | MOUNTS: {len(d.partitions)} | DEVICES: {len(d.io_counters)}"
        )
        self._disk_warnings = list(result.warnings)
        self._show_warnings()

    def _stamp(self, ts: datetime) -> None:
        text = ts.strftime("%F %T") if isinstance(ts, datetime) else str(ts)
        self._last_update.setText(f"Last Update: {text}")

    def _show_warnings(self) -> None:
        warnings = self._mem_warnings + self._disk_warnings
        if not warnings:
            self._warnings.setText("Warnings: 0")
        else:
            self._warnings.setText(f"Warnings: {len(warnings)}\n" + "\n".join(warnings))
