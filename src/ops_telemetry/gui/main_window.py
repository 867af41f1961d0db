from __future__ import annotations

from typing import Any, Callable

from PySide6.QtCore import QThreadPool, QTimer
from PySide6.QtWidgets import (
    QMainWindow,
    QPushButton,
    QSplitter,
    QStackedWidget,
    QTreeWidget,
    QTreeWidgetItem,
)

from ops_telemetry.api import build_disk_collector, build_memory_collector
from ops_telemetry.collectors.disk_collector import DiskCollector
from ops_telemetry.collectors.memory_collector import MemoryCollector
from ops_telemetry.gui.pages.disk_page import DiskPage
from ops_telemetry.gui.pages.memory_page import MemoryPage
from ops_telemetry.gui.pages.overview_page import OverviewPage
from ops_telemetry.gui.workers import Worker, WorkerJob
from ops_telemetry.models.common import CollectorResult
from ops_telemetry.models.disk import DiskData
from ops_telemetry.models.memory import MemoryData
from ops_telemetry.services.config_service import ConfigService, TelemetrySettings
from ops_telemetry.services.report_service import ReportService


class MainWindow(QMainWindow):
    def __init__(self, config: ConfigService | None = None) -> None:
        super().__init__()
        self.setWindowTitle("Host Telemetry")
        self.resize(1100, 720)

        self._config = config or ConfigService()
        self._reporter = ReportService()
        self._latest_disk: CollectorResult[DiskData] | None = None
        self._latest_memory: CollectorResult[MemoryData] | None = None

        self._thread_pool = QThreadPool.globalInstance()
        self._req_ids: dict[str, int] = {"disk": 0, "memory": 0}
        self._active_workers: set[Worker] = set()

        self._cfg: dict[str, Any] = self._config.load()
        self._settings = TelemetrySettings.from_dict(self._cfg)
        self._disk_collector: DiskCollector = build_disk_collector(self._settings)
        self._memory_collector: MemoryCollector = build_memory_collector(self._settings)

        self._nav = QTreeWidget()
        self._nav.setHeaderHidden(True)

        self._pages = QStackedWidget()
        self._overview = OverviewPage()
        self._disk = DiskPage()
        self._memory = MemoryPage()

        self._pages.addWidget(self._overview)
        self._pages.addWidget(self._disk)
        self._pages.addWidget(self._memory)

        self._nav_items: dict[str, int] = {
            "Overview": 0,
            "Disks": 1,
            "Memory": 2,
        }
        for title in self._nav_items.keys():
            self._nav.addTopLevelItem(QTreeWidgetItem([title]))
        self._nav.setCurrentItem(self._nav.topLevelItem(0))

        splitter = QSplitter()
        splitter.addWidget(self._nav)
        splitter.addWidget(self._pages)
        splitter.setStretchFactor(0, 0)
        splitter.setStretchFactor(1, 1)
        self.setCentralWidget(splitter)

        self.statusBar().showMessage("Ready")

        export_btn = QPushButton("Export Report")
        export_btn.clicked.connect(self._export_report)  # type: ignore[arg-type]
        self.statusBar().addPermanentWidget(export_btn)

        self._nav.currentItemChanged.connect(self._on_nav_changed)  # type: ignore[arg-type]

        self._disk.set_config(self._settings.include_all_partitions, self._settings.disk_names)
        self._disk.applyRequested.connect(self._on_disk_apply)  # type: ignore[arg-type]

        self._memory_timer = QTimer(self)
        self._memory_timer.setInterval(3000)
        self._memory_timer.timeout.connect(self.refresh_memory)  # type: ignore[arg-type]
        self._memory_timer.start()

        self._disk_timer = QTimer(self)
        self._disk_timer.setInterval(5000)
        self._disk_timer.timeout.connect(self.refresh_disk)  # type: ignore[arg-type]
        self._disk_timer.start()

        self.refresh_memory()
        self.refresh_disk()

    def _on_disk_apply(self, cfg: dict) -> None:
        self._cfg.update(cfg)
        self._settings = TelemetrySettings.from_dict(self._cfg)
        self._disk_collector = build_disk_collector(self._settings)
        self._config.save(self._cfg)
        self.statusBar().showMessage(
            f"Disk config applied: all={self._settings.include_all_partitions} devices={self._settings.disk_names or 'all'}"
        )
        self.refresh_disk()

    def _on_nav_changed(self, current: QTreeWidgetItem | None, _prev: QTreeWidgetItem | None) -> None:
        if current is None:
            return
        title = current.text(0)
        idx = self._nav_items.get(title)
        if idx is not None:
            self._pages.setCurrentIndex(idx)

    def _submit(self, kind: str, fn: Callable[[], Any], on_result: Callable[[Any], None]) -> None:
        self._req_ids[kind] += 1
        req_id = self._req_ids[kind]

        w = Worker(WorkerJob(name=kind, fn=fn))
        self._active_workers.add(w)
        w.signals.result.connect(  # type: ignore[arg-type]
            lambda r, _w=w: on_result(r) if req_id == self._req_ids[kind] else None
        )
        w.signals.error.connect(lambda m, _w=w: self._on_worker_error(m))  # type: ignore[arg-type]
        w.signals.finished.connect(lambda _w=w: self._active_workers.discard(_w))  # type: ignore[arg-type]
        self._thread_pool.start(w)

    def refresh_memory(self) -> None:
        collector = self._memory_collector
        self._submit("memory", collector.collect, self._on_memory_result)

    def refresh_disk(self) -> None:
        collector = self._disk_collector
        self._submit("disk", collector.collect, self._on_disk_result)

    def _on_memory_result(self, res: Any) -> None:
        if not isinstance(res, CollectorResult):
            return
        try:
            mem_res: CollectorResult[MemoryData] = res
            self._latest_memory = mem_res
            self._overview.set_memory(mem_res)
            self._memory.set_data(mem_res)
            self.statusBar().showMessage(
                f"Updated: {mem_res.ts.strftime('%F %T')} | Status: {mem_res.status} | Warnings: {mem_res.warning_count}"
            )
        except Exception as e:  # noqa: BLE001
            self._on_worker_error(str(e))

    def _on_disk_result(self, res: Any) -> None:
        if not isinstance(res, CollectorResult):
            return
        try:
            disk_res: CollectorResult[DiskData] = res
            self._latest_disk = disk_res
            self._overview.set_disk(disk_res)
            self._disk.set_data(disk_res)
        except Exception as e:  # noqa: BLE001
            self._on_worker_error(str(e))

    def _export_report(self) -> None:
        try:
            bundle = self._reporter.build_report(disk=self._latest_disk, memory=self._latest_memory)
            out = self._reporter.default_report_path()
            written = self._reporter.write_html(out, bundle.html)
            self.statusBar().showMessage(f"Report exported: {written}")
        except OSError as e:
            self._on_worker_error(str(e))

    def _on_worker_error(self, msg: str) -> None:
        # Periodic refresh: no modal dialogs.
        self.statusBar().showMessage(f"Error: {msg}")
