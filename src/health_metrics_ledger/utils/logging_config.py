"""
Logging configuration and utilities.

Console and optional file handlers for the application logger.
"""

import logging
import sys
from pathlib import Path

from health_metrics_ledger.utils.parameters import LoggingConfig

NOISY_LOGGERS = ("fitz", "openpyxl")


def _build_handler(handler: logging.Handler, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(config: LoggingConfig, logger_name: str | None = None) -> logging.Logger:
    """
    Set up logging for the application.

    Args:
        config: Logging configuration.
        logger_name: Optional logger name. If None, configures the root logger.

    Returns:
        Configured logger instance.
    """
    level = getattr(logging, config.level.upper(), logging.INFO)
    formatter = logging.Formatter(config.format)

    logger = logging.getLogger(logger_name)
    logger.setLevel(level)
    logger.handlers.clear()

    if config.console:
        logger.addHandler(_build_handler(logging.StreamHandler(sys.stderr), level, formatter))

    if config.file:
        log_file = Path(config.file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.addHandler(
            _build_handler(logging.FileHandler(log_file, encoding="utf-8"), level, formatter)
        )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance by name."""
    return logging.getLogger(name)
