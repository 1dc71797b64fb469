"""Lookup of the span active in the current execution context.

OpenTelemetry keeps the current span in a ``contextvars`` backed context, so
the lookup is task and thread local. These helpers only read it.
"""

from __future__ import annotations

from opentelemetry import trace
from opentelemetry.trace import Span

__all__ = [
    "current_trace_context",
    "get_active_span",
    "get_trace_id",
]


def get_active_span() -> Span | None:
    """Return the active span, or None when no valid span is active."""
    span = trace.get_current_span()
    if span is None or not span.get_span_context().is_valid:
        return None
    return span


def get_trace_id(span: Span | None = None) -> str | None:
    """Return the trace id of ``span`` (or the active span) as 32 hex digits."""
    span = span if span is not None else get_active_span()
    if span is None:
        return None
    ctx = span.get_span_context()
    if not ctx.is_valid:
        return None
    return format(ctx.trace_id, "032x")


def current_trace_context() -> dict[str, str]:
    span = get_active_span()
    if span is None:
        return {}
    ctx = span.get_span_context()
    return {
        "trace_id": format(ctx.trace_id, "032x"),
        "span_id": format(ctx.span_id, "016x"),
    }
