"""Configures application-wide logging."""

import logging
import logging.handlers

from core.config import get_app_data_dir

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO", log_to_file: bool = True) -> None:
    """Sets up logging to stderr and to a rotating file in the app data directory."""
    formatter = logging.Formatter(LOG_FORMAT)
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    stream = logging.StreamHandler()
    stream.setFormatter(formatter)
    root_logger.addHandler(stream)

    if log_to_file:
        log_dir = get_app_data_dir() / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            log_dir / "app.log", maxBytes=10 * 1024 * 1024, backupCount=5
        )
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    logging.getLogger("PIL").setLevel(logging.INFO)
