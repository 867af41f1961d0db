from __future__ import annotations

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QGridLayout, QGroupBox, QLabel, QProgressBar, QVBoxLayout, QWidget

from ops_telemetry.models.common import CollectorResult
from ops_telemetry.models.memory import MemoryData
from ops_telemetry.services.report_service import human_bytes


class MemoryPage(QWidget):
    _ROWS = ("total", "used", "available", "free", "active", "inactive", "wired")

    def __init__(self) -> None:
        super().__init__()

        self._status = QLabel("-")
        self._notes = QLabel("")
        self._notes.setWordWrap(True)
        self._usage = QProgressBar()
        self._usage.setRange(0, 1000)
        self._usage.setFormat("-")

        self._values: dict[str, QLabel] = {}
        box = QGroupBox("Virtual Memory")
        grid = QGridLayout(box)
        grid.addWidget(QLabel("Status"), 0, 0)
        grid.addWidget(self._status, 0, 1)
        grid.addWidget(QLabel("Used %"), 1, 0)
        grid.addWidget(self._usage, 1, 1)
        for i, key in enumerate(self._ROWS, start=2):
            lbl = QLabel("-")
            lbl.setTextInteractionFlags(Qt.TextSelectableByMouse)
            self._values[key] = lbl
            grid.addWidget(QLabel(key.capitalize()), i, 0)
            grid.addWidget(lbl, i, 1)
        grid.addWidget(QLabel("Notes"), len(self._ROWS) + 2, 0)
        grid.addWidget(self._notes, len(self._ROWS) + 2, 1)

        layout = QVBoxLayout(self)
        layout.addWidget(box)
        layout.addStretch(1)

    def set_data(self, result: CollectorResult[MemoryData]) -> None:
        self._status.setText(str(result.status))
        self._notes.setText("\n".join(result.warnings + result.data.notes))

        m = result.data.memory
        if m is None:
            self._usage.setValue(0)
            self._usage.setFormat("-")
            for lbl in self._values.values():
                lbl.setText("-")
            return

        self._usage.setValue(int(min(100.0, m.used_percent) * 10))
        self._usage.setFormat(f"{m.used_percent:.1f}%")
        for key, lbl in self._values.items():
            n = int(getattr(m, key))
            lbl.setText(f"{human_bytes(n)} ({n} bytes)")
