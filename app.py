import logging
import sys
from pathlib import Path

from PySide6.QtWidgets import QApplication

from core.config import ConfigError, EditorConfig, load_config
from core.engine import EditorEngine
from core.logging_setup import setup_logging
from ui.main_window import MainWindow

log = logging.getLogger(__name__)


def _asset_path(*parts: str) -> Path:
    # PyInstaller onefile extracts bundled files under sys._MEIPASS.
    if getattr(sys, "frozen", False):
        return Path(getattr(sys, "_MEIPASS")) / Path(*parts)
    return Path(__file__).resolve().parent / Path(*parts)


def main() -> int:
    try:
        config = load_config()
        config_error = None
    except ConfigError as e:
        config = EditorConfig()
        config_error = e
    setup_logging(config.log_level)
    if config_error is not None:
        log.warning("Ignoring config: %s", config_error)

    app = QApplication(sys.argv)
    app.setApplicationName("RasterEdit")
    app.setOrganizationName("RasterEdit")

    w = MainWindow(engine=EditorEngine(config), logo_path=_asset_path("assets", "Logo.png"))
    w.show()
    if len(sys.argv) > 1:
        w.load_path(sys.argv[1])
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
