"""Shared utilities: logging and configuration."""

from .logging import LogLevel, configure_logger, message

__all__ = [
    "LogLevel",
    "configure_logger",
    "message",
]
