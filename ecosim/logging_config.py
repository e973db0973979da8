"""Centralized logging configuration for the simulator and its CLI."""

from __future__ import annotations

import logging
import os
from typing import Iterable

DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"
LOG_LEVEL_ENV = "ECOSIM_LOG_LEVEL"


def configure_logging(
    *,
    level: str | None = None,
    format: str = DEFAULT_FORMAT,
    datefmt: str = DEFAULT_DATEFMT,
    extra_loggers: Iterable[str] | None = None,
) -> logging.Logger:
    """Configure application logging.

    Args:
        level: Optional explicit log level. Falls back to the
            ``ECOSIM_LOG_LEVEL`` env var, then INFO.
        format: Log format string.
        datefmt: Date format string.
        extra_loggers: Additional logger names to align with the configured level.

    Returns:
        The package logger (``ecosim``).
    """
    raw_level = level if level is not None else os.getenv(LOG_LEVEL_ENV)
    resolved_level = (raw_level or "INFO").upper()
    logging.basicConfig(level=resolved_level, format=format, datefmt=datefmt)

    app_logger = logging.getLogger("ecosim")
    app_logger.setLevel(resolved_level)

    if extra_loggers:
        for logger_name in extra_loggers:
            logging.getLogger(logger_name).setLevel(resolved_level)

    app_logger.debug("Logging configured", extra={"level": resolved_level})
    return app_logger
