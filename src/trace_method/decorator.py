from __future__ import annotations

import asyncio
import concurrent.futures
import functools
import inspect
import logging
from collections.abc import Awaitable, Iterable, Mapping
from contextlib import AbstractContextManager
from typing import Any, Callable, TypeVar, Union

from opentelemetry.trace import Span, SpanKind, Status, StatusCode
from opentelemetry.util.types import AttributeValue

from trace_method.config import TraceMethodConfig
from trace_method.exceptions import TracerConfigError, UnsupportedCallableError
from trace_method.naming import resolve_span_name

__all__ = [
    "trace_call",
    "trace_method",
    "trace_methods",
]

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])
C = TypeVar("C", bound=type)
PendingFuture = Union[asyncio.Future, concurrent.futures.Future]


def _start_span(config: TraceMethodConfig, span_name: str) -> AbstractContextManager[Span]:
    # The span is current only for the synchronous call frame; ending is
    # always done by the wrapper so it can follow the status.
    return config.tracer.start_as_current_span(
        span_name,
        kind=config.kind,
        attributes=dict(config.attributes) if config.attributes else None,
        end_on_exit=False,
        record_exception=False,
        set_status_on_exception=False,
    )


def _finish_ok(span: Span, span_name: str) -> None:
    span.set_status(Status(StatusCode.OK))
    span.end()
    logger.debug("Span %s ended", span_name, extra={"span_name": span_name, "outcome": "ok"})


def _finish_error(span: Span, span_name: str, exc: BaseException) -> None:
    logger.debug(
        "Span %s failed with %s: %s",
        span_name,
        type(exc).__name__,
        exc,
        extra={"span_name": span_name, "outcome": "error"},
    )
    span.record_exception(exc)
    span.set_status(Status(StatusCode.ERROR, str(exc)))
    span.end()


def _finish_cancelled(span: Span, span_name: str) -> None:
    # Cancellation is not an outcome of the call: no status, but the span must not leak.
    span.end()
    logger.debug("Span %s cancelled", span_name, extra={"span_name": span_name, "outcome": "cancelled"})


def _chain_future(source: PendingFuture, span: Span, span_name: str) -> PendingFuture:
    """Return a future settling like ``source`` once the span is closed.

    Works for ``asyncio.Future`` (the new future lives on the same loop) and
    ``concurrent.futures.Future`` (the callback runs on the completing thread).
    """
    if isinstance(source, asyncio.Future):
        target: PendingFuture = source.get_loop().create_future()
    else:
        target = concurrent.futures.Future()

    def _settle(done: PendingFuture) -> None:
        if done.cancelled():
            _finish_cancelled(span, span_name)
            if not target.done():
                target.cancel()
            return
        exc = done.exception()
        if exc is not None:
            _finish_error(span, span_name, exc)
            if not target.done():
                target.set_exception(exc)
            return
        _finish_ok(span, span_name)
        if not target.done():
            target.set_result(done.result())

    source.add_done_callback(_settle)
    return target


async def _follow_awaitable(awaitable: Awaitable[Any], span: Span, span_name: str) -> Any:
    """Await a result returned by a plain callable and close the span after it."""
    try:
        result = await awaitable
    except asyncio.CancelledError:
        _finish_cancelled(span, span_name)
        raise
    except BaseException as exc:
        _finish_error(span, span_name, exc)
        raise
    _finish_ok(span, span_name)
    return result


def _wrap_sync(func: Callable[..., Any], config: TraceMethodConfig, span_name: str) -> Callable[..., Any]:
    @functools.wraps(func)
    def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
        with _start_span(config, span_name) as span:
            try:
                result = func(*args, **kwargs)
            except asyncio.CancelledError:
                _finish_cancelled(span, span_name)
                raise
            except BaseException as exc:
                _finish_error(span, span_name, exc)
                raise
            if isinstance(result, (asyncio.Future, concurrent.futures.Future)):
                return _chain_future(result, span, span_name)
            if inspect.isawaitable(result):
                # e.g. an async def hidden behind a plain decorator
                return _follow_awaitable(result, span, span_name)
            _finish_ok(span, span_name)
            return result

    return sync_wrapper


def _wrap_async(func: Callable[..., Any], config: TraceMethodConfig, span_name: str) -> Callable[..., Any]:
    @functools.wraps(func)
    async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
        with _start_span(config, span_name) as span:
            try:
                result = await func(*args, **kwargs)
            except asyncio.CancelledError:
                _finish_cancelled(span, span_name)
                raise
            except BaseException as exc:
                _finish_error(span, span_name, exc)
                raise
            _finish_ok(span, span_name)
            return result

    return async_wrapper


def trace_call(
    func: F,
    config: TraceMethodConfig,
    *,
    owner: type | None = None,
    member: str | None = None,
) -> F:
    """Wrap ``func`` so that every call runs inside its own span.

    The span name is resolved here, once. Coroutine functions get an async
    wrapper; other callables get a plain wrapper. When a plain callable
    returns a future (``asyncio`` or ``concurrent.futures``) or any other
    awaitable, the span stays open until that result settles.

    Successful calls set an OK status. Failures record the exception, set an
    ERROR status carrying its message and re-raise it unchanged. The span is
    ended exactly once, after the status.

    Args:
        func: The callable to trace.
        config: Tracer and naming configuration.
        owner: Owning type when wrapping a class member.
        member: Member name on ``owner``; defaults to ``func.__name__``.

    Raises:
        SpanNameError: if no span name can be derived.
        UnsupportedCallableError: for generator and async generator functions.
    """
    if not callable(func):
        raise TracerConfigError(message=f"{func!r} is not callable")
    if inspect.isgeneratorfunction(func) or inspect.isasyncgenfunction(func):
        raise UnsupportedCallableError(
            message=f"{getattr(func, '__qualname__', func)!r} produces a stream; generators cannot be traced",
        )

    span_name = resolve_span_name(
        func,
        span_name=config.span_name,
        owner=owner,
        member=member,
        separator=config.separator,
    )

    if inspect.iscoroutinefunction(func):
        wrapped = _wrap_async(func, config, span_name)
        mode = "async"
    else:
        wrapped = _wrap_sync(func, config, span_name)
        mode = "sync"

    wrapped.__trace_span_name__ = span_name  # type: ignore[attr-defined]
    logger.debug("Traced %s callable as span %s", mode, span_name, extra={"span_name": span_name})
    return wrapped  # type: ignore[return-value]


def trace_method(
    tracer: Any,
    span_name: str | None = None,
    *,
    separator: str = ".",
    attributes: Mapping[str, AttributeValue] | None = None,
    kind: SpanKind = SpanKind.INTERNAL,
) -> Callable[[F], F]:
    """Span decorator for functions and methods.

    Args:
        tracer: Trace source, e.g. ``trace.get_tracer(__name__)``.
        span_name: Span name, defaults to the function's qualified name.
        separator: Joins class and method name in derived names.
        attributes: Attributes set when the span starts.
        kind: Span kind.

    Example:
        class PriceService:
            @trace_method(tracer)
            async def calculate(self, item_id: str) -> float:
                ...
    """
    config = TraceMethodConfig(
        tracer=tracer,
        span_name=span_name,
        separator=separator,
        attributes=attributes,
        kind=kind,
    )

    def decorator(func: F) -> F:
        return trace_call(func, config)

    return decorator


def trace_methods(
    tracer: Any,
    *,
    names: Iterable[str] | None = None,
    separator: str = ".",
    attributes: Mapping[str, AttributeValue] | None = None,
    kind: SpanKind = SpanKind.INTERNAL,
) -> Callable[[C], C]:
    """Class decorator tracing the public methods of a class.

    Without ``names`` every public function, staticmethod and classmethod
    defined on the class itself is wrapped, except generator methods and
    members already traced with ``trace_method``. With ``names`` exactly
    those members are wrapped and a missing or unsuitable member is an error.
    """
    config = TraceMethodConfig(tracer=tracer, separator=separator, attributes=attributes, kind=kind)
    explicit = list(names) if names is not None else None

    def decorator(cls: C) -> C:
        targets = explicit if explicit is not None else [n for n in vars(cls) if not n.startswith("_")]
        for name in targets:
            if name not in vars(cls):
                raise TracerConfigError(message=f"{cls.__qualname__} has no member {name!r}")
            member = vars(cls)[name]
            descriptor = type(member) if isinstance(member, (staticmethod, classmethod)) else None
            func = member.__func__ if descriptor is not None else member

            if not inspect.isfunction(func):
                if explicit is not None:
                    raise TracerConfigError(message=f"{cls.__qualname__}.{name} is not a method")
                continue
            if hasattr(func, "__trace_span_name__"):
                continue
            if explicit is None and (inspect.isgeneratorfunction(func) or inspect.isasyncgenfunction(func)):
                logger.debug("Skipping generator method %s.%s", cls.__qualname__, name)
                continue

            wrapped = trace_call(func, config, owner=cls, member=name)
            setattr(cls, name, descriptor(wrapped) if descriptor is not None else wrapped)
        return cls

    return decorator
