"""Log formatters for Inkpost.

``JSONFormatter`` emits one JSON object per record; ``TextFormatter`` a
single human-readable line. Both append fields passed through ``extra=``.
"""

import json
import logging
import time
from typing import Any, Dict, Optional

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RESERVED = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "asctime"}


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _RESERVED}


class JSONFormatter(logging.Formatter):
    """JSON log formatter."""

    def __init__(
        self,
        include_logger: bool = True,
        include_exception: bool = True,
        include_extra: bool = True,
        include_process: bool = False,
        timestamp_format: str = "iso",
        static_fields: Optional[Dict[str, Any]] = None,
        indent: Optional[int] = None,
        ensure_ascii: bool = False,
    ):
        super().__init__()
        self.include_logger = include_logger
        self.include_exception = include_exception
        self.include_extra = include_extra
        self.include_process = include_process
        self.timestamp_format = timestamp_format
        self.static_fields = static_fields or {}
        self.indent = indent
        self.ensure_ascii = ensure_ascii

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        data: Dict[str, Any] = {
            "timestamp": self._format_timestamp(record.created),
            "level": record.levelname.lower(),
        }

        if self.include_logger:
            data["logger"] = record.name

        data["message"] = record.getMessage()

        if self.include_exception and record.exc_info and record.exc_info[0]:
            exc_type, exc_value, _ = record.exc_info
            data["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": self.formatException(record.exc_info),
            }

        if self.include_extra:
            extra = _extra_fields(record)
            if extra:
                data["extra"] = extra

        if self.include_process:
            data["process_id"] = record.process
            data["thread_id"] = record.thread

        data.update(self.static_fields)

        return json.dumps(
            data, indent=self.indent, ensure_ascii=self.ensure_ascii, default=str
        )

    def _format_timestamp(self, timestamp: float) -> str:
        if self.timestamp_format == "iso":
            return (
                time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(timestamp))
                + f".{int((timestamp % 1) * 1000000):06d}Z"
            )
        elif self.timestamp_format == "unix":
            return str(timestamp)
        else:
            return time.strftime(self.timestamp_format, time.gmtime(timestamp))


class TextFormatter(logging.Formatter):
    """Plain text formatter: ``<time> <LEVEL> <logger>: <message> k=v ...``."""

    def __init__(self, timestamp_format: str = "%Y-%m-%d %H:%M:%S"):
        super().__init__(datefmt=timestamp_format)

    def format(self, record: logging.LogRecord) -> str:
        line = (
            f"{self.formatTime(record, self.datefmt)} {record.levelname} "
            f"{record.name}: {record.getMessage()}"
        )
        extra = _extra_fields(record)
        if extra:
            line += " " + " ".join(f"{k}={v}" for k, v in sorted(extra.items()))
        if record.exc_info and record.exc_info[0]:
            line += "\n" + self.formatException(record.exc_info)
        return line
