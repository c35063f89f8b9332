"""Logging configuration for Tiling Suite."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from tiling_suite.config import LOG_BACKUP_COUNT, LOG_FILENAME, LOG_MAX_BYTES
from tiling_suite.paths import get_logs_dir

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Third-party loggers that are chatty at INFO.
_QUIET_LOGGERS = ("httpx", "httpcore", "anthropic", "matplotlib", "PIL")


def configure_logging(
    level: int = logging.INFO,
    *,
    log_dir: Path | None = None,
    console: bool = True,
) -> None:
    """Configure file and console logging for the application."""
    log_file = (log_dir or get_logs_dir()) / LOG_FILENAME
    log_file.parent.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(LOG_FORMAT)

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=LOG_MAX_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)
    file_handler.setLevel(level)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        console_handler.setLevel(logging.WARNING)
        root_logger.addHandler(console_handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    def handle_exception(
        exc_type: type[BaseException],
        exc: BaseException,
        traceback: object,
    ) -> None:
        root_logger.error("Unhandled exception", exc_info=(exc_type, exc, traceback))

    sys.excepthook = handle_exception


def get_logger(name: str) -> logging.Logger:
    """Return a configured logger."""
    return logging.getLogger(name)
