"""Core logging configuration for Inkpost.

Modules log through the standard library (``logging.getLogger(__name__)``);
this module only decides where those records go and how they look.
"""

import logging
import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, TextIO

ROOT_LOGGER_NAME = "inkpost"


class LogLevel(Enum):
    """Log levels."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    @property
    def numeric(self) -> int:
        return getattr(logging, self.name)

    @classmethod
    def parse(cls, value: Any) -> "LogLevel":
        if isinstance(value, LogLevel):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown log level: {value}")


@dataclass
class LogConfig:
    """Log configuration."""

    name: str = ROOT_LOGGER_NAME
    level: LogLevel = LogLevel.INFO
    format_type: str = "json"
    stream: Optional[TextIO] = None
    propagate: bool = False
    # Third-party loggers whose level follows ours.
    attach_to: tuple = ("uvicorn.access", "uvicorn.error")
    extra_fields: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_settings(cls, settings) -> "LogConfig":
        """Create a log config from application settings."""
        level = LogLevel.DEBUG if settings.debug else LogLevel.parse(settings.log_level)
        return cls(level=level, format_type=settings.log_format)


_handler: Optional[logging.Handler] = None


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """Get a logger under the ``inkpost`` namespace."""
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def setup_logging(config: Optional[LogConfig] = None) -> logging.Logger:
    """Install a single handler on the ``inkpost`` logger.

    Calling it again replaces the previous handler rather than stacking a
    second one.
    """
    global _handler
    from .formatters import JSONFormatter, TextFormatter

    config = config or LogConfig()
    root = logging.getLogger(config.name)

    if _handler is not None:
        root.removeHandler(_handler)

    handler = logging.StreamHandler(config.stream or sys.stderr)
    if config.format_type == "json":
        handler.setFormatter(JSONFormatter(static_fields=config.extra_fields))
    else:
        handler.setFormatter(TextFormatter())

    root.addHandler(handler)
    root.setLevel(config.level.numeric)
    root.propagate = config.propagate
    _handler = handler

    for other in config.attach_to:
        logging.getLogger(other).setLevel(config.level.numeric)

    return root


def shutdown_logging() -> None:
    """Remove the installed handler and hand records back to the root logger."""
    global _handler
    if _handler is not None:
        root = logging.getLogger(ROOT_LOGGER_NAME)
        root.removeHandler(_handler)
        root.propagate = True
        _handler.flush()
        _handler.close()
        _handler = None
