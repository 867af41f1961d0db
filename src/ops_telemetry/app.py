import faulthandler
import logging
import sys

from PySide6.QtWidgets import QApplication

from ops_telemetry.gui.main_window import MainWindow
from ops_telemetry.services.config_service import ConfigService


def run() -> None:
    faulthandler.enable()
    config = ConfigService()
    settings = config.load_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = QApplication(sys.argv)
    app.setApplicationName("Host Telemetry")

    w = MainWindow(config=config)
    w.show()

    raise SystemExit(app.exec())
