"""Logging estruturado e ponte structlog -> logs OpenTelemetry."""
from .event_bridge import EventLogBridge
from .span_registry import SpanExtension, SpanExtensionProcessor, SpanRegistry
from .structlog_config import add_trace_context, get_logger, setup_logging

__all__ = [
    "EventLogBridge",
    "SpanExtension",
    "SpanExtensionProcessor",
    "SpanRegistry",
    "add_trace_context",
    "get_logger",
    "setup_logging",
]
