# src/icartifact/utils/logging.py
"""Logging utilities for the icartifact package."""

import logging
import os
import sys
import warnings
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from loguru import logger

# Remove default handler
logger.remove()

# Standard levels are already defined by loguru:
# - DEBUG(10)
# - INFO(20)
# - SUCCESS(25)
# - WARNING(30)
# - ERROR(40)
# - CRITICAL(50)
logger.level("HEADER", no=28, color="<blue>", icon="🧠")  # Between SUCCESS and WARNING
logger.level("VALUES", no=5, color="<cyan>", icon="➤")  # Lowest level for debug values

LOG_LEVEL_ENV = "ICARTIFACT_LOGGING_LEVEL"


class WarningToLogger:
    """Redirect ``warnings.showwarning`` output to loguru."""

    def __init__(self):
        self._last_warning = None

    def __call__(self, message, category, filename, lineno, file=None, line=None):
        # Skip duplicate warnings
        warning_key = (str(message), category, filename, lineno)
        if warning_key == self._last_warning:
            return
        self._last_warning = warning_key

        logger.warning(f"{category.__name__}: {str(message)}")


warning_handler = WarningToLogger()
warnings.showwarning = warning_handler


class LogLevel(str, Enum):
    """Log levels understood by :func:`configure_logger`.

    - VALUES = 5 (custom debug values)
    - DEBUG = 10
    - INFO = 20
    - SUCCESS = 25 (built into loguru)
    - HEADER = 28 (custom)
    - WARNING = 30
    - ERROR = 40
    - CRITICAL = 50
    """

    VALUES = "VALUES"
    DEBUG = "DEBUG"
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    HEADER = "HEADER"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    @classmethod
    def from_value(cls, value: Union[str, int, bool, None]) -> "LogLevel":
        """Convert various input types to LogLevel.

        Args:
            value: Input value that can be:
                - str: One of the level names (case-insensitive)
                - int: Standard Python logging level (10, 20, 30, 40, 50)
                - bool: True for INFO, False for WARNING
                - None: Use ICARTIFACT_LOGGING_LEVEL env var or default to INFO

        Returns:
            LogLevel: The corresponding log level
        """
        if value is None:
            return cls.from_value(os.getenv(LOG_LEVEL_ENV, "INFO"))

        if isinstance(value, bool):
            return cls.INFO if value else cls.WARNING

        if isinstance(value, int):
            level_map = {
                5: cls.VALUES,
                logging.DEBUG: cls.DEBUG,
                logging.INFO: cls.INFO,
                logging.WARNING: cls.WARNING,
                logging.ERROR: cls.ERROR,
                logging.CRITICAL: cls.CRITICAL,
            }
            # Closest level that's less than or equal to the input
            for level in sorted(level_map, reverse=True):
                if value >= level:
                    return level_map[level]
            return cls.VALUES

        if isinstance(value, str):
            try:
                return cls(value.upper())
            except ValueError:
                return cls.INFO

        return cls.INFO


def message(level: str, text: str, **kwargs) -> None:
    """
    Log ``text`` at ``level`` through loguru.

    Parameters
    ----------
    level : str
        Log level ('debug', 'info', 'warning', 'header', 'success', ...)
    text : str
        Message text to log
    **kwargs
        Values evaluated lazily when formatting ``text``
    """
    level = level.upper()

    if kwargs:
        logger.opt(lazy=True).log(level, text, **kwargs)
    else:
        logger.log(level, text)


def configure_logger(
    verbose: Optional[Union[bool, str, int, LogLevel]] = None,
    output_dir: Optional[Union[str, Path]] = None,
) -> LogLevel:
    """
    Configure the logger based on verbosity level and output directory.

    Parameters
    ----------
    verbose : bool, str, int, LogLevel, optional
        Controls logging verbosity. Can be:
        - bool: True is the same as 'INFO', False is the same as 'WARNING'
        - str: One of 'DEBUG', 'INFO', 'HEADER', 'WARNING', 'ERROR', or 'CRITICAL'
        - int: Standard Python logging level (10=DEBUG, 20=INFO, etc.)
        - LogLevel enum: Direct log level specification
        - None: Reads ICARTIFACT_LOGGING_LEVEL, defaults to INFO
    output_dir : str or Path, optional
        When given, a rotating log file is also written to ``output_dir/logs``.

    Returns
    -------
    LogLevel
        The level that was applied.
    """
    logger.remove()

    level = LogLevel.from_value(verbose)

    if output_dir is not None:
        log_dir = Path(output_dir) / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)

        logger.add(
            str(log_dir / "icartifact_{time}.log"),
            rotation="1 day",
            retention="1 week",
            compression="zip",
            level=level.value,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}",
            backtrace=True,
            diagnose=True,
            enqueue=True,
            colorize=False,
            catch=True,
        )

    logger.add(
        sys.stderr,
        level=level.value,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>",
        colorize=True,
        backtrace=True,
        diagnose=True,
        catch=True,
    )

    return level


# Initialize with default settings (will check ICARTIFACT_LOGGING_LEVEL)
configure_logger()
