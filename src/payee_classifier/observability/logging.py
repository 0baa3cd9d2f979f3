"""Shared logging utilities for classifier and batch-job observability.

Usage example:
    from payee_classifier.observability.logging import get_logger

    logger = get_logger("payee_classifier.batch")
    logger.info("Classifying %s payees", len(names))
"""

from __future__ import annotations

import logging
import time

from ..exceptions import LogLevelError

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"
_ROOT_NAME = "payee_classifier"

_level = logging.INFO


def get_logger(name: str) -> logging.Logger:
    """Return a package logger that writes UTC-stamped lines to stderr.

    Args:
        name: Logger name (use a stable module-qualified name under `payee_classifier`).

    Returns:
        A logger with a single stream handler and the shared format.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(fmt=_LOG_FORMAT, datefmt=_LOG_DATE_FORMAT)
        formatter.converter = time.gmtime
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(_level)
        logger.propagate = False
    return logger


def set_log_level(level: int | str) -> None:
    """Apply a level to every package logger created so far and to future ones."""
    global _level
    resolved = logging.getLevelName(level.upper()) if isinstance(level, str) else level
    if not isinstance(resolved, int):
        raise LogLevelError(str(level))
    _level = resolved
    for name, logger in logging.Logger.manager.loggerDict.items():
        if name.startswith(_ROOT_NAME) and isinstance(logger, logging.Logger):
            logger.setLevel(resolved)
