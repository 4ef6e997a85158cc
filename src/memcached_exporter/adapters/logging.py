"""Log formatting for the exporter process.

Two line formats are supported: logfmt for humans and JSON for log
pipelines. Both carry any ``extra`` fields passed to the logging call,
such as the memcached server a parse diagnostic refers to.
"""

import json
import logging
import sys
import traceback
from datetime import UTC, datetime
from typing import Any, TextIO

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

LOG_FORMATS = ("logfmt", "json")

# Standard LogRecord attributes that should not be treated as extra fields
_STANDARD_LOGRECORD_ATTRS = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }
)


def _extra_fields(record: logging.LogRecord) -> dict[str, str | int | float | bool]:
    """Return the extra attributes passed via the logging call."""
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _STANDARD_LOGRECORD_ATTRS
        and isinstance(value, (str, int, float, bool))
    }


def _exception_fields(record: logging.LogRecord) -> dict[str, str]:
    """Extract exception type, message and traceback, if any."""
    fields: dict[str, str] = {}
    if not record.exc_info:
        return fields
    exc_type, exc_value, exc_tb = record.exc_info
    if exc_type is not None:
        fields["exc_type"] = exc_type.__name__
    if exc_value is not None:
        fields["exc_message"] = str(exc_value)
    if exc_tb is not None:
        fields["exc_traceback"] = "".join(
            traceback.format_exception(exc_type, exc_value, exc_tb)
        )
    return fields


def _timestamp(record: logging.LogRecord) -> str:
    return datetime.fromtimestamp(record.created, tz=UTC).isoformat(
        timespec="milliseconds"
    )


class JSONFormatter(logging.Formatter):
    """Formats each record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        obj: dict[str, Any] = {
            "timestamp": _timestamp(record),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        obj.update(_extra_fields(record))
        obj.update(_exception_fields(record))
        return json.dumps(obj)


def _logfmt_value(value: str | int | float | bool) -> str:
    """Quote a logfmt value when it contains spaces, quotes or ``=``."""
    text = str(value).lower() if isinstance(value, bool) else str(value)
    if text == "" or any(c in text for c in ' "=\n\t'):
        return json.dumps(text)
    return text


class LogfmtFormatter(logging.Formatter):
    """Formats each record as ``key=value`` pairs.

    Example output:
        ts=2024-01-01T00:00:00.000+00:00 level=error logger=memcached_exporter.core.parsing msg="Failed to parse uptime" server=localhost:11211
    """

    def format(self, record: logging.LogRecord) -> str:
        fields: dict[str, str | int | float | bool] = {
            "ts": _timestamp(record),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
        }
        fields.update(_extra_fields(record))
        exc = _exception_fields(record)
        if "exc_type" in exc:
            fields["err"] = f"{exc['exc_type']}: {exc.get('exc_message', '')}"
        line = " ".join(f"{k}={_logfmt_value(v)}" for k, v in fields.items())
        if "exc_traceback" in exc:
            line += "\n" + exc["exc_traceback"].rstrip("\n")
        return line


def configure_logging(
    level: str = "info",
    fmt: str = "logfmt",
    stream: TextIO | None = None,
) -> logging.Handler:
    """Install a single stream handler on the root logger.

    Args:
        level: One of debug, info, warn, error.
        fmt: One of logfmt, json.
        stream: Output stream (default: stderr).

    Returns:
        The installed handler.

    Raises:
        ValueError: If level or fmt is not recognized.
    """
    if level not in LOG_LEVELS:
        raise ValueError(f"unknown log level {level!r}")
    if fmt not in LOG_FORMATS:
        raise ValueError(f"unknown log format {fmt!r}")

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JSONFormatter() if fmt == "json" else LogfmtFormatter())

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(LOG_LEVELS[level])
    return handler
