import logging

import pytest
import structlog
from opentelemetry.sdk._logs import LoggerProvider
from opentelemetry.sdk._logs.export import InMemoryLogExporter, SimpleLogRecordProcessor
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from otel_honeycomb.infrastructure.logging.event_bridge import EventLogBridge
from otel_honeycomb.infrastructure.logging.span_registry import SpanExtensionProcessor, SpanRegistry
from otel_honeycomb.infrastructure.tracing.span_factory import SpanFactory


@pytest.fixture(autouse=True)
def reset_structlog():
    """Cada teste começa e termina com a configuração padrão do structlog"""
    structlog.reset_defaults()
    yield
    structlog.reset_defaults()


@pytest.fixture
def span_exporter():
    return InMemorySpanExporter()


@pytest.fixture
def registry():
    return SpanRegistry()


@pytest.fixture
def tracer_provider(span_exporter, registry):
    provider = TracerProvider()
    provider.add_span_processor(SpanExtensionProcessor(registry))
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    yield provider
    provider.shutdown()


@pytest.fixture
def tracer(tracer_provider):
    return tracer_provider.get_tracer("tests")


@pytest.fixture
def span_factory(tracer):
    return SpanFactory(tracer=tracer)


@pytest.fixture
def log_exporter():
    return InMemoryLogExporter()


@pytest.fixture
def logger_provider(log_exporter):
    provider = LoggerProvider()
    provider.add_log_record_processor(SimpleLogRecordProcessor(log_exporter))
    yield provider
    provider.shutdown()


@pytest.fixture
def bridge(logger_provider, registry):
    return EventLogBridge(logger_provider, registry)


def _configure_bridged_structlog(bridge):
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            bridge,
            structlog.processors.KeyValueRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.NOTSET),
        logger_factory=structlog.ReturnLoggerFactory(),
        cache_logger_on_first_use=False,
    )


@pytest.fixture
def bridged_logger(bridge):
    """Logger structlog cujos eventos passam pelo EventLogBridge"""
    _configure_bridged_structlog(bridge)
    return structlog.get_logger("tests.bridge", logger_name="tests.bridge")


@pytest.fixture
def http_scope():
    """Fábrica de scopes ASGI HTTP"""
    def make(
        method="GET",
        path="/",
        query_string=b"",
        headers=None,
        client=("10.0.0.7", 52000),
        server=("testserver", 80),
        **extra,
    ):
        scope = {
            "type": "http",
            "asgi": {"version": "3.0"},
            "http_version": "1.1",
            "method": method,
            "scheme": "http",
            "path": path,
            "raw_path": path.encode(),
            "root_path": "",
            "query_string": query_string,
            "headers": [
                (name.lower().encode() if isinstance(name, str) else name,
                 value.encode() if isinstance(value, str) else value)
                for name, value in (headers or [])
            ],
            "client": client,
            "server": server,
        }
        scope.update(extra)
        return scope

    return make


@pytest.fixture
def finished_logs(log_exporter):
    """Registros de log exportados até o momento"""
    def collect():
        return [log_data.log_record for log_data in log_exporter.get_finished_logs()]

    return collect


@pytest.fixture
def bridge_structlog():
    """Configura structlog com um EventLogBridge arbitrário (ex: o do pipeline)"""
    return _configure_bridged_structlog
