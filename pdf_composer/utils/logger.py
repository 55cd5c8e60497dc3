"""
Logging setup for PDF Composer.

Library modules only call ``logging.getLogger(__name__)``; applications call
:func:`configure_logging` once to attach handlers.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _level_value(level: str) -> int:
    if not isinstance(level, str) or level.upper() not in LOG_LEVELS:
        raise ValueError(f"Invalid log level: {level}")
    return getattr(logging, level.upper())


def get_logger(name: str) -> logging.Logger:
    """
    Get logger instance for module.

    Args:
        name: Logger name

    Returns:
        Logger instance
    """
    if not name or not isinstance(name, str):
        raise ValueError("Logger name must be a non-empty string")
    return logging.getLogger(name)


def create_rich_handler(console: Optional[Console] = None) -> RichHandler:
    """Build the rich console handler used for interactive output."""
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=True,
        show_path=True,
        markup=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter(fmt="%(message)s", datefmt="[%X]"))
    return handler


def configure_logging(
    level: str = "INFO",
    rich_output: bool = True,
    log_file: Optional[str] = None,
    format_string: Optional[str] = None,
    max_file_size: int = 10 * 1024 * 1024,
    backup_count: int = 5,
    logger_name: str = "pdf_composer",
) -> logging.Logger:
    """
    Configure logging for the composer.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        rich_output: Use a rich console handler instead of a plain stream handler
        log_file: Optional log file path (rotated)
        format_string: Custom format for plain and file output
        max_file_size: Maximum log file size in bytes
        backup_count: Number of backup files to keep
        logger_name: Logger to configure

    Returns:
        The configured logger
    """
    level_value = _level_value(level)

    logger = logging.getLogger(logger_name)
    logger.setLevel(level_value)
    logger.handlers.clear()

    formatter = logging.Formatter(format_string or DEFAULT_FORMAT, datefmt=DEFAULT_DATE_FORMAT)

    if rich_output:
        console_handler: logging.Handler = create_rich_handler()
    else:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
    console_handler.setLevel(level_value)
    logger.addHandler(console_handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)
        file_handler = RotatingFileHandler(log_file, maxBytes=max_file_size, backupCount=backup_count)
        file_handler.setLevel(level_value)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def set_log_level(level: str, logger_name: str = "pdf_composer") -> None:
    """Change the level of a configured logger and all its handlers."""
    level_value = _level_value(level)
    logger = logging.getLogger(logger_name)
    logger.setLevel(level_value)
    for handler in logger.handlers:
        handler.setLevel(level_value)
