from __future__ import annotations

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import (
    QAbstractItemView,
    QCheckBox,
    QGridLayout,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPushButton,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
    QWidget,
)

from ops_telemetry.models.common import CollectorResult
from ops_telemetry.models.disk import DiskData, DiskIOCounters, PartitionStat
from ops_telemetry.services.report_service import human_bytes


class NumericItem(QTableWidgetItem):
    def __init__(self, text: str, value: float) -> None:
        super().__init__(text)
        self._value = float(value)

    def __lt__(self, other: QTableWidgetItem) -> bool:  # type: ignore[override]
        if isinstance(other, NumericItem):
            return self._value < other._value
        return super().__lt__(other)


class DiskPage(QWidget):
    applyRequested = Signal(dict)

    def __init__(self) -> None:
        super().__init__()

        self._status = QLabel("-")
        self._notes = QLabel("")
        self._notes.setWordWrap(True)
        self._status.setTextInteractionFlags(Qt.TextSelectableByMouse)

        self._include_all = QCheckBox("Show pseudo and stale mounts")
        self._names = QLineEdit("")
        self._names.setPlaceholderText("ada0, da1 (empty = all devices)")

        apply_btn = QPushButton("Apply & Refresh")
        apply_btn.clicked.connect(self._on_apply_clicked)  # type: ignore[arg-type]

        cfg = QGroupBox("Disk Config")
        cfg_grid = QGridLayout(cfg)
        cfg_grid.addWidget(self._include_all, 0, 0, 1, 2)
        cfg_grid.addWidget(QLabel("Devices"), 1, 0)
        cfg_grid.addWidget(self._names, 1, 1)

        cfg_row = QHBoxLayout()
        cfg_row.addWidget(cfg)
        cfg_row.addStretch(1)
        cfg_row.addWidget(apply_btn)

        summary = QGroupBox("Disk Summary")
        grid = QGridLayout(summary)
        grid.addWidget(QLabel("Status"), 0, 0)
        grid.addWidget(self._status, 0, 1)
        grid.addWidget(QLabel("Notes"), 1, 0)
        grid.addWidget(self._notes, 1, 1)

        self._mounts = self._make_table("Partitions", ["DEVICE", "MOUNT", "FSTYPE", "OPTIONS", "SERIAL"], 5)
        self._io = self._make_table(
            "I/O Counters",
            ["NAME", "READS", "WRITES", "READ", "WRITTEN", "READ(ms)", "WRITE(ms)", "BUSY(ms)"],
            8,
        )
        self._io[1].setSortingEnabled(True)

        layout = QVBoxLayout(self)
        layout.addLayout(cfg_row)
        layout.addWidget(summary)
        layout.addWidget(self._mounts[0], 1)
        layout.addWidget(self._io[0], 1)

    def set_config(self, include_all: bool, names: list[str]) -> None:
        self._include_all.setChecked(bool(include_all))
        self._names.setText(", ".join(names))

    def _on_apply_clicked(self) -> None:
        names = [n.strip() for n in self._names.text().split(",") if n.strip()]
        cfg = {
            "include_all_partitions": bool(self._include_all.isChecked()),
            "disk_names": names,
        }
        self.applyRequested.emit(cfg)

    def _make_table(self, title: str, headers: list[str], cols: int) -> tuple[QGroupBox, QTableWidget]:
        gb = QGroupBox(title)
        t = QTableWidget(0, cols)
        t.setHorizontalHeaderLabels(headers)
        t.setEditTriggers(QAbstractItemView.NoEditTriggers)
        t.setSelectionBehavior(QAbstractItemView.SelectRows)
        t.setAlternatingRowColors(True)
        t.horizontalHeader().setStretchLastSection(True)
        t.verticalHeader().setVisible(False)
        l = QVBoxLayout(gb)
        l.addWidget(t)
        return gb, t

    def set_data(self, result: CollectorResult[DiskData]) -> None:
        d = result.data
        self._status.setText(str(result.status))
        self._notes.setText("\n".join(result.warnings + d.notes))

        self._fill_mounts(self._mounts[1], d.partitions, d.serials)
        self._fill_io(self._io[1], list(d.io_counters.values()))

    def _fill_mounts(self, t: QTableWidget, rows: list[PartitionStat], serials: dict[str, str]) -> None:
        t.setRowCount(len(rows))
        for r, p in enumerate(rows):
            t.setItem(r, 0, QTableWidgetItem(p.device))
            t.setItem(r, 1, QTableWidgetItem(p.mountpoint))
            t.setItem(r, 2, QTableWidgetItem(p.fstype))
            t.setItem(r, 3, QTableWidgetItem(p.opts))
            t.setItem(r, 4, QTableWidgetItem(serials.get(p.device, "").strip()))
        t.resizeColumnsToContents()

    def _fill_io(self, t: QTableWidget, rows: list[DiskIOCounters]) -> None:
        sort_col = t.horizontalHeader().sortIndicatorSection()
        sort_order = t.horizontalHeader().sortIndicatorOrder()

        t.setSortingEnabled(False)
        t.setRowCount(len(rows))
        for r, c in enumerate(rows):
            t.setItem(r, 0, QTableWidgetItem(c.name))
            t.setItem(r, 1, NumericItem(str(c.read_count), c.read_count))
            t.setItem(r, 2, NumericItem(str(c.write_count), c.write_count))
            t.setItem(r, 3, NumericItem(human_bytes(c.read_bytes), c.read_bytes))
            t.setItem(r, 4, NumericItem(human_bytes(c.write_bytes), c.write_bytes))
            t.setItem(r, 5, NumericItem(str(c.read_time), c.read_time))
            t.setItem(r, 6, NumericItem(str(c.write_time), c.write_time))
            t.setItem(r, 7, NumericItem(str(c.io_time), c.io_time))
        t.resizeColumnsToContents()

        t.setSortingEnabled(True)
        t.sortItems(sort_col, sort_order)
