"""
Acesso ao contexto de trace atual.

O span corrente vive em contextvars (opentelemetry.context), então cada
task asyncio enxerga o seu próprio span, inclusive após cada await.
"""
from typing import Any, Dict, Optional

from opentelemetry import trace

from otel_honeycomb.infrastructure.tracing.attributes import SpanAttributes


def get_trace_context() -> Dict[str, Optional[str]]:
    """
    Retorna contexto de trace atual.

    Returns:
        Dict com trace_id, span_id, parent_span_id (None fora de um span)
    """
    span = trace.get_current_span()
    span_context = span.get_span_context()
    if not span_context.is_valid:
        return {"trace_id": None, "span_id": None, "parent_span_id": None}

    parent = getattr(span, "parent", None)
    return {
        "trace_id": trace.format_trace_id(span_context.trace_id),
        "span_id": trace.format_span_id(span_context.span_id),
        "parent_span_id": trace.format_span_id(parent.span_id) if parent else None,
    }


def set_user_id(user_id: Any) -> None:
    """Registra o usuário autenticado no span corrente (user.id)."""
    trace.get_current_span().set_attribute(SpanAttributes.USER_ID, str(user_id))

