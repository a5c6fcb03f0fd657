"""Logging setup for ZenFocus shells.

Library modules only call ``logging.getLogger(__name__)``; the CLI and HTTP
entry points call :func:`setup_logging` once to attach handlers.
"""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"
MAX_FILE_SIZE = 5 * 1024 * 1024
BACKUP_COUNT = 3

_configured = False


def setup_logging(level: str = "INFO", log_dir: Path | None = None, console: bool = True) -> None:
    """Attach console and rotating-file handlers to the ``zenfocus`` logger.

    Safe to call more than once; only the first call installs handlers,
    later calls just update the level.
    """
    global _configured
    logger = logging.getLogger("zenfocus")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    if _configured:
        return

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        logger.addHandler(console_handler)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_dir / "zenfocus.log",
            maxBytes=MAX_FILE_SIZE,
            backupCount=BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)

        error_handler = logging.handlers.RotatingFileHandler(
            log_dir / "error.log",
            maxBytes=MAX_FILE_SIZE,
            backupCount=BACKUP_COUNT,
            encoding="utf-8",
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(error_handler)

    _configured = True
