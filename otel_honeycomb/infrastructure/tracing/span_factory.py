"""
Criação do span de servidor para cada request.
"""
from typing import Optional

from opentelemetry import trace
from opentelemetry.context import Context
from opentelemetry.trace import Span, SpanKind, Tracer
from starlette.requests import Request

from otel_honeycomb.infrastructure.tracing import attributes
from otel_honeycomb.infrastructure.tracing.attributes import SpanAttributes
from otel_honeycomb.infrastructure.tracing.propagation import ContextPropagator

INSTRUMENTATION_NAME = "otel_honeycomb"


def span_name(method: str, route: str) -> str:
    return f"{method} {route}"


class SpanFactory:
    """
    Monta o span de uma request: atributos fixos, kind SERVER e,
    opcionalmente, o contexto pai extraído dos headers.
    """

    def __init__(
        self,
        tracer: Optional[Tracer] = None,
        propagator: Optional[ContextPropagator] = None,
    ):
        self.tracer = tracer or trace.get_tracer(INSTRUMENTATION_NAME)
        self.propagator = propagator or ContextPropagator()

    def make_span(self, request: Request, extract_parent: bool) -> Span:
        if extract_parent:
            parent = self.propagator.extract(request.headers)
        else:
            parent = Context()

        request_attributes = attributes.request_attributes(request)
        span = self.tracer.start_span(
            span_name(request.method, request_attributes[SpanAttributes.HTTP_ROUTE]),
            context=parent,
            kind=SpanKind.SERVER,
            attributes=request_attributes,
        )
        span_context = span.get_span_context()
        if span_context.is_valid:
            span.set_attribute(
                SpanAttributes.TRACE_ID, trace.format_trace_id(span_context.trace_id)
            )
        return span
