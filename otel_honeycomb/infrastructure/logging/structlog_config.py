"""
Configuração do structlog para serviços instrumentados: saída JSON (ou console
em DEBUG) correlacionada ao span corrente.
"""

import logging
import sys
from typing import Iterable, Optional

import structlog
from opentelemetry import trace
from structlog.typing import EventDict, Processor, WrappedLogger


def add_trace_context(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Processor structlog: adiciona trace_id/span_id do span corrente ao evento."""
    span_context = trace.get_current_span().get_span_context()
    if span_context.is_valid:
        event_dict.setdefault("trace_id", trace.format_trace_id(span_context.trace_id))
        event_dict.setdefault("span_id", trace.format_span_id(span_context.span_id))
    return event_dict


def setup_logging(
    log_level: str = "INFO",
    extra_processors: Iterable[Processor] = (),
) -> None:
    """
    Configura logging estruturado para a aplicação.

    Args:
        log_level: Nível de log (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        extra_processors: Processors executados logo após o merge de
            contextvars, antes de qualquer enriquecimento (ex: EventLogBridge)
    """
    # Nível aplicado tanto ao logging padrão quanto ao filtro do structlog
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    # logging padrão recebe os avisos do próprio SDK e da ponte de logs
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=numeric_level,
    )

    # Suprimir logs verbosos do exporter OTLP (urllib3/requests)
    for noisy_logger in ("urllib3", "urllib3.connectionpool", "requests"):
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)

    # A ponte (extra_processors) vê o evento antes de level, trace_id e timestamp
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            *extra_processors,
            structlog.processors.add_log_level,
            add_trace_context,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer()
            if log_level.upper() == "DEBUG"
            else structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    """
    Obtém um logger configurado.

    Args:
        name: Nome do logger (geralmente __name__), vinculado como 'logger_name'

    Returns:
        Logger estruturado
    """
    if name is None:
        return structlog.get_logger()
    return structlog.get_logger(name, logger_name=name)
