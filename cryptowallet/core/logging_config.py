"""
Logging configuration for the wallet API.

Console output always; a rotating file under LOG_FILE when it is set.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from cryptowallet.core.settings import LOG_FILE, LOG_LEVEL

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

MAX_BYTES = 10 * 1024 * 1024  # 10 MB
BACKUP_COUNT = 5

SERVICE_LOGGER = "cryptowallet"


def setup_logging(log_file: str | None = LOG_FILE, level_name: str = LOG_LEVEL) -> logging.Logger:
    """
    Configure the service logger. Safe to call more than once.
    """
    level = getattr(logging, level_name, logging.INFO)

    logging.getLogger().setLevel(level)

    logger = logging.getLogger(SERVICE_LOGGER)
    logger.setLevel(level)
    # Avoid duplicate handlers if setup_logging is called multiple times
    logger.handlers = []

    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            path,
            maxBytes=MAX_BYTES,
            backupCount=BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{SERVICE_LOGGER}.{name}")
