"""Logging helpers for plistkit.

Every module takes its logger from :func:`get_logger` so the whole package
hangs off the ``plistkit`` logger. Applications call
:func:`configure_logging` once; the library itself never adds handlers.
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional, Union

PACKAGE_LOGGER = "plistkit"

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """Get a logger for a plistkit module.

    Args:
        name: Logger name, normally ``__name__`` of the calling module.
        level: Optional level override.

    Returns:
        Logger instance.
    """
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)
    return logger


def configure_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
    max_bytes: int = 0,
    backup_count: int = 0,
    format_string: Optional[str] = None,
) -> logging.Logger:
    """Configure the ``plistkit`` logger.

    Messages go to stderr, and additionally to ``log_file`` when given. The
    file handler rotates once it grows past ``max_bytes`` and keeps
    ``backup_count`` old files (``0`` disables rotation).

    Args:
        level: Logging level, as a number or a name such as ``"DEBUG"``.
        log_file: Optional path of a log file.
        max_bytes: Size at which the log file is rotated.
        backup_count: Number of rotated files to keep.
        format_string: Optional custom format.

    Returns:
        The configured package logger.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    # Reconfiguring replaces handlers we installed earlier
    for handler in list(logger.handlers):
        if getattr(handler, "_plistkit", False):
            logger.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(format_string or DEFAULT_FORMAT)

    stream = logging.StreamHandler(sys.stderr)
    stream.setLevel(level)
    stream.setFormatter(formatter)
    stream._plistkit = True  # type: ignore[attr-defined]
    logger.addHandler(stream)

    if log_file is not None:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        file_handler._plistkit = True  # type: ignore[attr-defined]
        logger.addHandler(file_handler)

    return logger
