"""
Propagação de contexto de trace entre serviços (W3C TraceContext + Baggage).

O propagator é passado explicitamente para quem precisa dele; nada é
registrado no propagator global do OpenTelemetry.
"""
from typing import Mapping, MutableMapping, Optional

from opentelemetry import trace
from opentelemetry.baggage.propagation import W3CBaggagePropagator
from opentelemetry.context import Context
from opentelemetry.propagators.composite import CompositePropagator
from opentelemetry.propagators.textmap import TextMapPropagator
from opentelemetry.trace import Span, TraceFlags
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

TRACEPARENT_HEADER = "traceparent"
SUPPORTED_VERSION = 0


def default_text_map_propagator() -> TextMapPropagator:
    return CompositePropagator([
        TraceContextTextMapPropagator(),
        W3CBaggagePropagator(),
    ])


def format_traceparent(span: Span) -> Optional[str]:
    """Header traceparent do span, ou None se o contexto do span não é válido."""
    span_context = span.get_span_context()
    if not span_context.is_valid:
        return None
    return "{:02x}-{}-{}-{:02x}".format(
        SUPPORTED_VERSION,
        trace.format_trace_id(span_context.trace_id),
        trace.format_span_id(span_context.span_id),
        span_context.trace_flags & TraceFlags.SAMPLED,
    )


class ContextPropagator:
    """Extrai o contexto upstream dos headers e injeta o contexto de saída."""

    def __init__(self, propagator: Optional[TextMapPropagator] = None):
        self.propagator = propagator or default_text_map_propagator()

    def extract(self, headers: Mapping[str, str]) -> Context:
        """
        Contexto upstream a partir dos headers de entrada.

        Sem header válido o resultado é um Context sem span pai, ou seja,
        o span criado será raiz; nunca levanta exceção.
        """
        return self.propagator.extract(headers, context=Context())

    def inject(self, span: Span, headers: MutableMapping[str, str]) -> None:
        """Escreve o header traceparent do span nos headers de saída."""
        value = format_traceparent(span)
        if value is not None:
            headers[TRACEPARENT_HEADER] = value

    def inject_context(self, context: Context, headers: MutableMapping[str, str]) -> None:
        """Injeta todos os campos do propagator (ex: baggage) para chamadas de saída."""
        self.propagator.inject(headers, context=context)
