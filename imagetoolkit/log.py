"""Logging setup for the image toolkit."""

import logging
from pathlib import Path
from typing import Optional, Union

LOGGER_NAME = "imagetoolkit"
LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"

_configured = False


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the package logger or one of its children."""
    if name is None:
        return logging.getLogger(LOGGER_NAME)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """Attach a handler to the package logger.

    Writes to ``log_file`` when given, otherwise to stderr. Calling it again
    only updates the level.

    Args:
        level: Logging level name or number
        log_file: Optional file path for a FileHandler

    Returns:
        The configured package logger
    """
    global _configured

    logger = logging.getLogger(LOGGER_NAME)
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(level)

    if _configured:
        return logger

    if log_file is not None:
        handler: logging.Handler = logging.FileHandler(log_file, encoding="utf-8")
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    _configured = True
    return logger
