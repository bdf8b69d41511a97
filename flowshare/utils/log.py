"""Rotating file loggers for long-running services."""
from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from flowshare.core.settings import LOG_DIR, LOGGING


def ensure_logger(
    name: str,
    filename: str,
    *,
    log_dir: Optional[Path] = None,
    level: int = logging.INFO,
) -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        directory = Path(log_dir or LOG_DIR)
        try:
            directory.mkdir(parents=True, exist_ok=True)
            handler: logging.Handler = RotatingFileHandler(
                directory / filename,
                maxBytes=LOGGING.max_bytes,
                backupCount=LOGGING.backup_count,
                encoding="utf-8",
            )
        except OSError:
            handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOGGING.format))
        logger.addHandler(handler)
    logger.setLevel(level)
    return logger


__all__ = ["ensure_logger"]
