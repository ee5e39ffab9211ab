"""Logging configuration for vatledger.

Modules log through ``logging.getLogger(__name__)``; :func:`configure_logging`
attaches a rotating file handler to the package logger so that every module
below ``vatledger`` writes to the same file.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

PACKAGE_LOGGER = "vatledger"
LOG_FILENAME = "vatledger.log"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(log_dir: Path, level: str | int = logging.INFO) -> logging.Logger:
    """Configure the package logger to write to ``log_dir/vatledger.log``.

    Calling this more than once keeps the first handler and only adjusts the
    level.
    """

    logger = logging.getLogger(PACKAGE_LOGGER)
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    if not logger.handlers:
        log_dir.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            log_dir / LOG_FILENAME,
            maxBytes=1_000_000,
            backupCount=5,
            encoding="utf-8",
        )
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False

    logger.setLevel(level)
    logging.captureWarnings(True)
    return logger


__all__ = ["LOG_FILENAME", "LOG_FORMAT", "PACKAGE_LOGGER", "configure_logging"]
