"""
Logging utilities for embedstore.
"""

import logging
import os
import sys
from typing import Optional


DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
ROOT_LOGGER = "embedstore"
LEVEL_ENV_VAR = "EMBEDSTORE_LOG_LEVEL"


def setup_logger(
    name: str = ROOT_LOGGER,
    level: Optional[str] = None,
    format_string: Optional[str] = None,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Configure a logger with a stdout handler and an optional file handler.

    Args:
        name: Logger name
        level: Log level name; falls back to $EMBEDSTORE_LOG_LEVEL, then INFO
        format_string: Custom format string
        log_file: Optional file path for logging

    Returns:
        Configured logger
    """
    level = level or os.environ.get(LEVEL_ENV_VAR, "INFO")

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))
    logger.handlers.clear()

    formatter = logging.Formatter(
        format_string or DEFAULT_FORMAT,
        datefmt=DEFAULT_DATE_FORMAT,
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """
    Get a logger under the embedstore hierarchy.

    Child loggers (``embedstore.core.store`` etc.) carry no handlers of
    their own and propagate to the package logger, which is configured
    once on first use.
    """
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        setup_logger()
    return logging.getLogger(name)


class LogContext:
    """Context manager for temporary log level changes."""

    def __init__(self, logger: logging.Logger, level: str):
        self.logger = logger
        self.new_level = getattr(logging, level.upper())
        self.old_level = logger.level

    def __enter__(self):
        self.logger.setLevel(self.new_level)
        return self.logger

    def __exit__(self, *args):
        self.logger.setLevel(self.old_level)
