"""Inkpost Logging System.

Structured (JSON) or plain-text output for the ``inkpost`` logger tree.
"""

from .core import (
    LogConfig,
    LogLevel,
    get_logger,
    setup_logging,
    shutdown_logging,
)
from .formatters import JSONFormatter, TextFormatter

__all__ = [
    "JSONFormatter",
    "LogConfig",
    "LogLevel",
    "TextFormatter",
    "get_logger",
    "setup_logging",
    "shutdown_logging",
]
