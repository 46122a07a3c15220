"""
Middleware ASGI que cria um span OpenTelemetry por request HTTP.

Usage:
    from otel_honeycomb import opentelemetry_tracing_layer
    app = FastAPI(middleware=[opentelemetry_tracing_layer()])
"""
import time
from typing import Any, Optional

from opentelemetry import trace
from opentelemetry.trace import Span, Status, StatusCode
from starlette.datastructures import MutableHeaders
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from otel_honeycomb.infrastructure.tracing.attributes import SpanAttributes, http_route
from otel_honeycomb.infrastructure.tracing.events import (
    log_request_failed,
    log_request_received,
    log_response_sent,
)
from otel_honeycomb.infrastructure.tracing.span_factory import SpanFactory, span_name


class TracingMiddleware:
    """
    Middleware ASGI puro que:
    1. Cria um span SERVER por request HTTP (opcionalmente filho do contexto upstream)
    2. Mantém o span como corrente enquanto a aplicação executa
    3. Registra status code ou exceção no span e o encerra
    4. Opcionalmente injeta 'traceparent' nos headers da resposta
    """

    def __init__(
        self,
        app: ASGIApp,
        span_factory: Optional[SpanFactory] = None,
        extract_parent: bool = True,
        inject_response_header: bool = False,
    ) -> None:
        self.app = app
        self.span_factory = span_factory or SpanFactory()
        self.extract_parent = extract_parent
        self.inject_response_header = inject_response_header

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        span = self.span_factory.make_span(request, self.extract_parent)
        start_time = time.time()
        response_status: dict[str, int] = {}

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                response_status["code"] = message["status"]
                if self.inject_response_header:
                    message.setdefault("headers", [])
                    headers = MutableHeaders(scope=message)
                    self.span_factory.propagator.inject(span, headers)
            await send(message)

        try:
            with trace.use_span(
                span,
                end_on_exit=False,
                record_exception=False,
                set_status_on_exception=False,
            ):
                log_request_received(
                    method=request.method,
                    path=request.url.path,
                    ip=request.client.host if request.client else None,
                    user_agent=request.headers.get("user-agent"),
                )
                try:
                    await self.app(scope, receive, send_wrapper)
                except Exception as exc:
                    update_span_from_error(span, exc, response_status.get("code"))
                    log_request_failed(
                        error_type=type(exc).__name__,
                        error_message=str(exc),
                        duration_ms=(time.time() - start_time) * 1000,
                    )
                    raise
                update_span_from_response(span, response_status.get("code"))
                log_response_sent(
                    status_code=response_status.get("code"),
                    duration_ms=(time.time() - start_time) * 1000,
                )
        finally:
            update_span_route(span, request)
            span.end()


def update_span_from_response(span: Span, status_code: Optional[int]) -> None:
    if status_code is None:
        return
    span.set_attribute(SpanAttributes.HTTP_RESPONSE_STATUS_CODE, status_code)
    # Status do span fica UNSET para respostas 1xx-4xx (convenções semânticas HTTP)
    if status_code >= 500:
        span.set_status(Status(StatusCode.ERROR))


def update_span_from_error(span: Span, error: BaseException, status_code: Optional[int] = None) -> None:
    if status_code is not None:
        span.set_attribute(SpanAttributes.HTTP_RESPONSE_STATUS_CODE, status_code)
    message = str(error)
    if error.__cause__ is not None:
        message = str(error.__cause__)
    span.set_attribute(SpanAttributes.EXCEPTION_MESSAGE, message)
    span.record_exception(error)
    span.set_status(Status(StatusCode.ERROR, message))


def update_span_route(span: Span, request: Request) -> None:
    """Atualiza rota e nome do span quando o roteador resolveu a rota durante a request."""
    route = http_route(request)
    if not route or not span.is_recording():
        return
    if getattr(span, "attributes", {}).get(SpanAttributes.HTTP_ROUTE) == route:
        return
    span.set_attribute(SpanAttributes.HTTP_ROUTE, route)
    span.update_name(span_name(request.method, route))


def _middleware(**options: Any) -> Middleware:
    return Middleware(TracingMiddleware, **options)


def opentelemetry_tracing_layer(span_factory: Optional[SpanFactory] = None) -> Middleware:
    """Middleware de tracing que respeita o trace context upstream."""
    return _middleware(span_factory=span_factory, extract_parent=True)


def opentelemetry_tracing_layer_without_parent(span_factory: Optional[SpanFactory] = None) -> Middleware:
    """Middleware de tracing que sempre inicia um novo span raiz."""
    return _middleware(span_factory=span_factory, extract_parent=False)


def response_with_trace_layer(span_factory: Optional[SpanFactory] = None) -> Middleware:
    """Middleware de tracing que também devolve 'traceparent' na resposta."""
    return _middleware(
        span_factory=span_factory,
        extract_parent=True,
        inject_response_header=True,
    )
