import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from plughost.config.host import LoggingSettings


def setup_logging(log_settings: LoggingSettings) -> None:
    """
    Configures the root logger from the [logging] section.
    """
    logger = logging.getLogger()
    level = log_settings.level.upper()
    logger.setLevel(level)

    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(log_settings.format)

    # Console always
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_settings.log_to_file:
        log_file_path = Path(log_settings.log_file)
        log_file_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_file_path,
            maxBytes=log_settings.rotation_size_mb * 1024 * 1024,
            backupCount=log_settings.rotation_backup_count,
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.debug("Logging configured.")
