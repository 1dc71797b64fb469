"""Public API for trace_method.

Wrap functions and methods in OpenTelemetry spans that record success,
failure and completion for both synchronous and asynchronous callables.
"""

from trace_method.config import TraceMethodConfig
from trace_method.context import current_trace_context, get_active_span, get_trace_id
from trace_method.decorator import trace_call, trace_method, trace_methods
from trace_method.exceptions import (
    SpanNameError,
    TraceMethodError,
    TracerConfigError,
    UnsupportedCallableError,
)
from trace_method.logging import (
    ConsoleSpanFormatter,
    JSONSpanFormatter,
    TraceContextFilter,
    configure_logging,
)
from trace_method.naming import resolve_span_name

__all__ = [
    # Wrapping
    "trace_call",
    "trace_method",
    "trace_methods",
    "resolve_span_name",
    # Config
    "TraceMethodConfig",
    # Context
    "get_active_span",
    "get_trace_id",
    "current_trace_context",
    # Logging
    "configure_logging",
    "TraceContextFilter",
    "JSONSpanFormatter",
    "ConsoleSpanFormatter",
    # Errors
    "TraceMethodError",
    "TracerConfigError",
    "SpanNameError",
    "UnsupportedCallableError",
]
