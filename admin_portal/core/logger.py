import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
import sys

from admin_portal.core.config import settings

LOG_DIR = Path(settings.LOG_DIR)
LOG_DIR.mkdir(exist_ok=True)

LOG_FILE = LOG_DIR / "admin_portal.log"
LOG_FORMAT = "%(levelname)s | %(asctime)s | %(name)s | %(message)s"


def _console_stream():
    # Reopen stdout as UTF-8 so quote notes with non-ASCII text don't break logging
    try:
        return open(sys.stdout.fileno(), mode="w", encoding="utf-8", closefd=False)
    except (AttributeError, OSError, ValueError):
        # pytest capture and some process managers replace stdout without a real fd
        return sys.stdout


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)

    # Handlers are attached once per logger name
    if not logger.handlers:
        level = logging.getLevelName(settings.LOG_LEVEL.upper())
        if not isinstance(level, int):
            level = logging.INFO

        file_handler = RotatingFileHandler(
            LOG_FILE, maxBytes=2_000_000, backupCount=3, encoding="utf-8"
        )
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        file_handler.setLevel(level)

        console_handler = logging.StreamHandler(_console_stream())
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        console_handler.setLevel(level)

        logger.addHandler(file_handler)
        logger.addHandler(console_handler)
        logger.setLevel(level)
        logger.propagate = False

    return logger
