"""Módulo de tracing: spans por request HTTP e propagação do trace context."""
from .attributes import SECRET_HEADERS, SpanAttributes
from .context import get_trace_context, set_user_id
from .middleware import (
    TracingMiddleware,
    opentelemetry_tracing_layer,
    opentelemetry_tracing_layer_without_parent,
    response_with_trace_layer,
)
from .propagation import TRACEPARENT_HEADER, ContextPropagator, format_traceparent
from .span_factory import SpanFactory

__all__ = [
    # Attributes
    "SECRET_HEADERS",
    "SpanAttributes",
    # Context
    "get_trace_context",
    "set_user_id",
    # Middleware
    "TracingMiddleware",
    "opentelemetry_tracing_layer",
    "opentelemetry_tracing_layer_without_parent",
    "response_with_trace_layer",
    # Propagation
    "TRACEPARENT_HEADER",
    "ContextPropagator",
    "format_traceparent",
    # Spans
    "SpanFactory",
]
