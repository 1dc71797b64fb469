"""Structured log output for traced calls.

The wrapper logs through the ``trace_method`` logger hierarchy and tags its
records with ``span_name`` and, once a call settles, ``outcome`` (``ok``,
``error`` or ``cancelled``). ``configure_logging`` attaches a handler that
renders those fields together with the active trace and span ids.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO, Any

from trace_method.context import current_trace_context

LOGGER_NAME = "trace_method"

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

_RECORD_FIELDS = ("trace_id", "span_id", "span_name", "outcome")


class TraceContextFilter(logging.Filter):
    """Stamps the ids of the active span on each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        ids = current_trace_context()
        record.trace_id = ids.get("trace_id")
        record.span_id = ids.get("span_id")
        return True


def span_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Trace and span fields present on ``record``."""
    return {name: getattr(record, name) for name in _RECORD_FIELDS if getattr(record, name, None) is not None}


class JSONSpanFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(span_fields(record))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class ConsoleSpanFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        fields = span_fields(record)
        prefix = f"[{fields['trace_id'][:8]}] " if "trace_id" in fields else ""
        suffix = "".join(f" {name}={fields[name]}" for name in ("span_name", "outcome") if name in fields)
        return f"{prefix}{record.levelname:8} {record.name}: {record.getMessage()}{suffix}"


def configure_logging(
    level: str = "WARNING",
    *,
    json_output: bool = True,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """Attach a structured handler to the ``trace_method`` logger.

    Calling it again replaces the handler it installed before. Records still
    propagate to the root logger.

    Args:
        level: Level name from ``LEVELS``.
        json_output: JSON lines when True, console lines otherwise.
        stream: Target stream, stderr by default.
    """
    try:
        resolved = LEVELS[level.upper()]
    except KeyError:
        raise ValueError(f"Unknown log level {level!r}") from None

    logger = logging.getLogger(LOGGER_NAME)
    for handler in [h for h in logger.handlers if getattr(h, "_trace_method_handler", False)]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler._trace_method_handler = True  # type: ignore[attr-defined]
    handler.addFilter(TraceContextFilter())
    handler.setFormatter(JSONSpanFormatter() if json_output else ConsoleSpanFormatter())
    logger.addHandler(handler)
    logger.setLevel(resolved)
    return logger
