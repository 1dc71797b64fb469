from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class TraceMethodError(Exception):
    """Base class for errors raised while building a traced callable."""

    code: int
    message: str
    data: Any | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", (self.message,))

    def to_error_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "data": self.data}


@dataclass(frozen=True)
class TracerConfigError(TraceMethodError):
    """Raised when the wrapper configuration is invalid."""

    code: int = 1000
    message: str = "Invalid tracer configuration"


@dataclass(frozen=True)
class SpanNameError(TraceMethodError):
    """Raised when no span name is given and none can be derived."""

    code: int = 1001
    message: str = "Cannot derive span name"


@dataclass(frozen=True)
class UnsupportedCallableError(TraceMethodError):
    """Raised when the target callable produces streaming results."""

    code: int = 1002
    message: str = "Unsupported callable"
