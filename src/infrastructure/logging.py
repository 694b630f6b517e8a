"""
Logging configuration.

Модули ядра используют logging.getLogger(__name__); хост вызывает
setup_logging один раз при старте.
"""

import logging
import sys
from typing import Final

import colorlog

LOG_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

LOG_COLORS: Final[dict[str, str]] = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}


def setup_logging(level: int | str = logging.INFO, colored: bool = True) -> logging.Logger:
    """
    Configure root logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        colored: Colorized output via colorlog; plain formatter otherwise

    Returns:
        Configured root logger
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(_create_formatter(colored))
    root_logger.addHandler(handler)

    return root_logger


def _create_formatter(colored: bool) -> logging.Formatter:
    if colored:
        return colorlog.ColoredFormatter(
            fmt="%(log_color)s" + LOG_FORMAT,
            datefmt=LOG_DATE_FORMAT,
            log_colors=LOG_COLORS,
        )
    return logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the specified name (typically __name__)."""
    return logging.getLogger(name)
