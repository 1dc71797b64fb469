from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

from opentelemetry.trace import SpanKind
from opentelemetry.util.types import AttributeValue

from trace_method.exceptions import TracerConfigError


@dataclass(frozen=True, slots=True)
class TraceMethodConfig:
    """Configuration for a traced callable.

    Attributes:
        tracer: Trace source used to start spans. Any object exposing
            ``start_as_current_span`` (usually an OpenTelemetry ``Tracer``).
        span_name: Explicit span name. When unset the name is derived from the
            callable at wrap time.
        separator: Joins the owning type and the member name.
        attributes: Attributes attached when the span is created.
        kind: Span kind passed to the tracer.
    """

    tracer: Any
    span_name: str | None = None
    separator: str = "."
    attributes: Mapping[str, AttributeValue] | None = None
    kind: SpanKind = SpanKind.INTERNAL

    def __post_init__(self) -> None:
        if self.tracer is None:
            raise TracerConfigError(message="tracer is required")
        if not callable(getattr(self.tracer, "start_as_current_span", None)):
            raise TracerConfigError(
                message=f"tracer {type(self.tracer).__name__} does not provide start_as_current_span"
            )
        if not isinstance(self.separator, str) or not self.separator:
            raise TracerConfigError(message="separator must be a non-empty string")
        if self.span_name is not None and (not isinstance(self.span_name, str) or not self.span_name):
            raise TracerConfigError(message="span_name must be a non-empty string")
        if self.attributes is not None and not isinstance(self.attributes, Mapping):
            raise TracerConfigError(message="attributes must be a mapping")

    def with_overrides(self, **changes: Any) -> TraceMethodConfig:
        """Return a copy with the given fields replaced (validated again)."""
        return replace(self, **changes)
