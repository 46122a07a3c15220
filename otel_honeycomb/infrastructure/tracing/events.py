"""
Eventos de log do ciclo de vida da request.

Emitidos pelo TracingMiddleware enquanto o span da request é o span
corrente, então chegam ao EventLogBridge com a cadeia de spans completa.
"""
from typing import Optional

from otel_honeycomb.infrastructure.logging.structlog_config import get_logger

logger = get_logger("otel_honeycomb.tracing.events")


def log_request_received(
    method: str,
    path: str,
    ip: Optional[str],
    user_agent: Optional[str]
):
    """Loga recebimento de request"""
    logger.debug(
        "http_request_received",
        request_metadata={
            "path": path,
            "method": method,
            "ip": ip,
            "user_agent": user_agent
        }
    )


def log_response_sent(
    status_code: Optional[int],
    duration_ms: float
):
    """Loga envio de response"""
    logger.debug(
        "http_response_sent",
        status="error" if status_code is not None and status_code >= 500 else "success",
        status_code=status_code,
        total_duration_ms=duration_ms
    )


def log_request_failed(
    error_type: str,
    error_message: str,
    duration_ms: float
):
    """Loga falha de request"""
    logger.error(
        "http_request_failed",
        status="error",
        error_type=error_type,
        error_message=error_message,
        total_duration_ms=duration_ms
    )
