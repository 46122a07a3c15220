"""
Extração de atributos de span a partir da request HTTP.

Funções puras: recebem uma starlette Request (construída sobre o scope ASGI)
e retornam strings prontas para o span.
"""
from typing import Optional

from starlette.requests import Request

# Headers nunca serializados em http.headers (comparação case-insensitive)
SECRET_HEADERS = frozenset({"authorization", "idtoken"})


class SpanAttributes:
    """Chaves de atributo reconhecidas no span de request."""

    HTTP_REQUEST_METHOD = "http.request.method"
    HTTP_ROUTE = "http.route"
    SERVER_ADDRESS = "server.address"
    HTTP_CLIENT_ADDRESS = "http.client.address"
    HTTP_HEADERS = "http.headers"
    USER_AGENT = "user_agent.original"
    HTTP_RESPONSE_STATUS_CODE = "http.response.status_code"
    URL_PATH = "url.path"
    URL_QUERY = "url.query"
    TRACE_ID = "trace_id"
    REQUEST_ID = "request_id"
    EXCEPTION_MESSAGE = "exception.message"
    USER_ID = "user.id"


def _is_visible_ascii(value: str) -> bool:
    return all(c == "\t" or " " <= c <= "~" for c in value)


def _header_text(request: Request, name: str) -> Optional[str]:
    """Valor do header como texto, ou None se ausente ou não decodificável."""
    value = request.headers.get(name)
    if value is None or not _is_visible_ascii(value):
        return None
    return value


def http_route(request: Request) -> str:
    """Template da rota resolvida pelo router, ou '' se ainda não resolvida."""
    route = request.scope.get("route")
    if route is None:
        return ""
    return getattr(route, "path_format", None) or getattr(route, "path", "") or ""


def http_host(request: Request) -> str:
    host = _header_text(request, "host")
    if host is not None:
        return host
    return request.url.hostname or ""


def user_agent(request: Request) -> str:
    return _header_text(request, "user-agent") or ""


def client_address(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


def request_id(request: Request) -> Optional[str]:
    return _header_text(request, "x-request-id")


def headers(request: Request) -> str:
    """Headers da request, um 'nome: valor' por linha, sem os headers secretos."""
    return "\n".join(
        f"{name}: {value}"
        for name, value in request.headers.items()
        if name.lower() not in SECRET_HEADERS
    )


def request_attributes(request: Request) -> dict[str, str]:
    """Atributos disponíveis na abertura do span."""
    attributes = {
        SpanAttributes.HTTP_REQUEST_METHOD: request.method,
        SpanAttributes.HTTP_ROUTE: http_route(request),
        SpanAttributes.SERVER_ADDRESS: http_host(request),
        SpanAttributes.HTTP_HEADERS: headers(request),
        SpanAttributes.USER_AGENT: user_agent(request),
        SpanAttributes.URL_PATH: request.url.path,
        SpanAttributes.USER_ID: "-",
    }
    query = request.url.query
    if query:
        attributes[SpanAttributes.URL_QUERY] = query
    client = client_address(request)
    if client:
        attributes[SpanAttributes.HTTP_CLIENT_ADDRESS] = client
    rid = request_id(request)
    if rid:
        attributes[SpanAttributes.REQUEST_ID] = rid
    return attributes
