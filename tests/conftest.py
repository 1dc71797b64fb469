import contextlib
from unittest.mock import MagicMock

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter


class RecordingTracer:
    """Trace source handing out a fresh mock span for every started span."""

    def __init__(self):
        self.started = []
        self.spans = []

    @contextlib.contextmanager
    def start_as_current_span(self, name, **kwargs):
        span = MagicMock(name=f"span[{name}]")
        self.started.append((name, kwargs))
        self.spans.append(span)
        yield span

    @property
    def span(self):
        return self.spans[-1]

    @property
    def names(self):
        return [name for name, _ in self.started]


@pytest.fixture
def recording_tracer():
    return RecordingTracer()


@pytest.fixture
def span_exporter():
    return InMemorySpanExporter()


@pytest.fixture
def sdk_tracer(span_exporter):
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    yield provider.get_tracer("trace_method.tests")
    provider.shutdown()
