"""Developer log for seoeco.

Console output for users goes through Rich. This file logger captures the
diagnostics that are never shown to the user, such as malformed stream
events and transport exceptions.

Usage:
    from seoeco.logging_config import get_logger
    logger = get_logger(__name__)
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_FILE = os.environ.get("SEOECO_LOG_FILE", str(Path.home() / ".seoeco" / "seoeco.log"))
LOG_LEVEL = os.environ.get("SEOECO_LOG_LEVEL", "WARNING")
MAX_BYTES = 10 * 1024 * 1024
BACKUP_COUNT = 3

_initialized = False


def setup_logging(log_file: Optional[str] = None, level: Optional[str] = None) -> None:
    """Attach the rotating file handler to the ``seoeco`` logger (idempotent)."""
    global _initialized
    if _initialized:
        return
    _initialized = True

    root = logging.getLogger("seoeco")
    level_name = (level or LOG_LEVEL).upper()
    root.setLevel(getattr(logging, level_name, logging.WARNING))

    if any(isinstance(h, RotatingFileHandler) for h in root.handlers):
        return

    path = Path(os.path.expanduser(log_file or LOG_FILE))
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = RotatingFileHandler(
            path,
            maxBytes=MAX_BYTES,
            backupCount=BACKUP_COUNT,
            encoding="utf-8",
        )
    except OSError:
        # Unwritable log location: drop file diagnostics
        handler = logging.NullHandler()

    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Get a logger for the given module name."""
    return logging.getLogger(name)
