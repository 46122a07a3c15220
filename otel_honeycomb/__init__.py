"""
Tracing OpenTelemetry para apps ASGI (Starlette/FastAPI) com exportação para o Honeycomb.

Usage:
    pipeline = init_otlp_layer(TelemetrySettings())
    pipeline.configure_logging("INFO")
    app = FastAPI(middleware=[pipeline.middleware()])
"""
from otel_honeycomb.core.exceptions import (
    ExporterConfigurationError,
    MissingCredentialError,
    TelemetryException,
)
from otel_honeycomb.infrastructure.config.settings import TelemetrySettings
from otel_honeycomb.infrastructure.logging import EventLogBridge, SpanRegistry, setup_logging
from otel_honeycomb.infrastructure.tracing import (
    ContextPropagator,
    SpanFactory,
    TracingMiddleware,
    opentelemetry_tracing_layer,
    opentelemetry_tracing_layer_without_parent,
    response_with_trace_layer,
    set_user_id,
)
from otel_honeycomb.observability import TelemetryPipeline, init_otlp_layer

__all__ = [
    "ContextPropagator",
    "EventLogBridge",
    "ExporterConfigurationError",
    "MissingCredentialError",
    "SpanFactory",
    "SpanRegistry",
    "TelemetryException",
    "TelemetryPipeline",
    "TelemetrySettings",
    "TracingMiddleware",
    "init_otlp_layer",
    "opentelemetry_tracing_layer",
    "opentelemetry_tracing_layer_without_parent",
    "response_with_trace_layer",
    "set_user_id",
    "setup_logging",
]
