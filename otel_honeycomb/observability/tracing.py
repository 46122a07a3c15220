"""Configuração de tracing e logs OpenTelemetry com exportação OTLP/HTTP para o Honeycomb."""
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urlsplit

from opentelemetry.exporter.otlp.proto.http._log_exporter import OTLPLogExporter
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk._logs import LoggerProvider, LogRecordProcessor
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor, LogExporter
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import SpanProcessor, TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SpanExporter
from opentelemetry.sdk.trace.sampling import ParentBased, Sampler, TraceIdRatioBased
from opentelemetry.trace import Tracer
from starlette.middleware import Middleware

from otel_honeycomb.core.exceptions import ExporterConfigurationError, MissingCredentialError
from otel_honeycomb.infrastructure.config.settings import TelemetrySettings
from otel_honeycomb.infrastructure.logging.event_bridge import EventLogBridge
from otel_honeycomb.infrastructure.logging.span_registry import (
    SpanExtensionProcessor,
    SpanRegistry,
    TrackingTracer,
)
from otel_honeycomb.infrastructure.logging.structlog_config import get_logger, setup_logging
from otel_honeycomb.infrastructure.tracing.middleware import TracingMiddleware
from otel_honeycomb.infrastructure.tracing.propagation import ContextPropagator
from otel_honeycomb.infrastructure.tracing.span_factory import INSTRUMENTATION_NAME, SpanFactory

logger = get_logger(__name__)

API_KEY_HEADER = "x-honeycomb-team"
API_KEY_VARIABLE = "HONEYCOMB_API_KEY"


def build_sampler(ratio: float) -> Sampler:
    """Segue a decisão do pai quando existe; traces raiz usam a fração `ratio`."""
    return ParentBased(TraceIdRatioBased(ratio))


def build_resource(settings: TelemetrySettings) -> Resource:
    return Resource.create({
        SERVICE_NAME: settings.otel_service_name,
        SERVICE_VERSION: settings.service_version,
        "deployment.environment": settings.environment,
    })


def auth_headers(settings: TelemetrySettings) -> dict[str, str]:
    """Headers de autenticação. Sem API key não há como exportar: erro fatal."""
    if not settings.honeycomb_api_key:
        raise MissingCredentialError(API_KEY_VARIABLE)
    return {API_KEY_HEADER: settings.honeycomb_api_key}


def signal_endpoint(base: str, signal: str) -> str:
    """URL OTLP/HTTP do sinal (traces, logs) a partir do endpoint base."""
    parts = urlsplit(base)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ExporterConfigurationError(base, "URL http(s) absoluta esperada")
    return f"{base.rstrip('/')}/v1/{signal}"


def build_span_exporter(settings: TelemetrySettings) -> OTLPSpanExporter:
    endpoint = signal_endpoint(settings.otel_exporter_otlp_endpoint, "traces")
    try:
        return OTLPSpanExporter(
            endpoint=endpoint,
            headers=auth_headers(settings),
            timeout=settings.export_timeout_seconds,
        )
    except (ValueError, OSError) as e:
        raise ExporterConfigurationError(endpoint, str(e)) from e


def build_log_exporter(settings: TelemetrySettings) -> OTLPLogExporter:
    endpoint = signal_endpoint(settings.otel_exporter_otlp_endpoint, "logs")
    try:
        return OTLPLogExporter(
            endpoint=endpoint,
            headers=auth_headers(settings),
            timeout=settings.export_timeout_seconds,
        )
    except (ValueError, OSError) as e:
        raise ExporterConfigurationError(endpoint, str(e)) from e


@dataclass
class TelemetryPipeline:
    """Providers de trace e log, registro de spans e propagator, já conectados."""

    tracer_provider: TracerProvider
    logger_provider: LoggerProvider
    registry: SpanRegistry
    propagator: ContextPropagator = field(default_factory=ContextPropagator)
    _event_bridge: Optional[EventLogBridge] = field(default=None, init=False, repr=False)

    @property
    def tracer(self) -> Tracer:
        """Tracer do pipeline; spans não amostrados também entram no registro."""
        return TrackingTracer(
            self.tracer_provider.get_tracer(INSTRUMENTATION_NAME), self.registry
        )

    @property
    def span_factory(self) -> SpanFactory:
        return SpanFactory(tracer=self.tracer, propagator=self.propagator)

    @property
    def event_bridge(self) -> EventLogBridge:
        if self._event_bridge is None:
            self._event_bridge = EventLogBridge(self.logger_provider, self.registry)
        return self._event_bridge

    def middleware(
        self,
        extract_parent: bool = True,
        inject_response_header: bool = False,
    ) -> Middleware:
        """Entrada de middleware Starlette ligada a este pipeline."""
        return Middleware(
            TracingMiddleware,
            span_factory=self.span_factory,
            extract_parent=extract_parent,
            inject_response_header=inject_response_header,
        )

    def configure_logging(self, log_level: str = "INFO") -> None:
        """Configura structlog com o EventLogBridge na cadeia de processors."""
        setup_logging(log_level, extra_processors=[self.event_bridge])

    def shutdown(self) -> None:
        """Exporta o que estiver pendente e encerra os providers."""
        self.tracer_provider.shutdown()
        self.logger_provider.shutdown()


def build_pipeline(
    settings: TelemetrySettings,
    span_processor: SpanProcessor,
    log_processor: LogRecordProcessor,
    propagator: Optional[ContextPropagator] = None,
) -> TelemetryPipeline:
    """Conecta providers, sampler e o registro de spans usados pelo EventLogBridge."""
    resource = build_resource(settings)
    registry = SpanRegistry()

    tracer_provider = TracerProvider(
        resource=resource,
        sampler=build_sampler(settings.sample_ratio),
    )
    tracer_provider.add_span_processor(SpanExtensionProcessor(registry))
    tracer_provider.add_span_processor(span_processor)

    logger_provider = LoggerProvider(resource=resource)
    logger_provider.add_log_record_processor(log_processor)

    return TelemetryPipeline(
        tracer_provider=tracer_provider,
        logger_provider=logger_provider,
        registry=registry,
        propagator=propagator or ContextPropagator(),
    )


def _batch_pipeline(
    settings: TelemetrySettings,
    span_exporter: SpanExporter,
    log_exporter: LogExporter,
) -> TelemetryPipeline:
    return build_pipeline(
        settings,
        span_processor=BatchSpanProcessor(span_exporter),
        log_processor=BatchLogRecordProcessor(log_exporter),
    )


def init_otlp_layer(settings: Optional[TelemetrySettings] = None) -> Optional[TelemetryPipeline]:
    """
    Inicializa o pipeline OTLP/HTTP para o Honeycomb.

    Args:
        settings: Configurações (default: carregadas do ambiente)

    Returns:
        Pipeline pronto, ou None quando o exporter não pôde ser configurado
        (instrumentação segue funcionando como no-op).

    Raises:
        MissingCredentialError: HONEYCOMB_API_KEY ausente.
    """
    settings = settings or TelemetrySettings()
    auth_headers(settings)

    try:
        span_exporter = build_span_exporter(settings)
        log_exporter = build_log_exporter(settings)
    except ExporterConfigurationError as e:
        logger.warning(
            "Tracing desativado: exporter não configurado",
            endpoint=e.details.get("endpoint"),
            error=e.details.get("error"),
        )
        return None

    logger.info(
        "Tracing inicializado",
        endpoint=settings.otel_exporter_otlp_endpoint,
        service_name=settings.otel_service_name,
        sample_ratio=settings.sample_ratio,
    )
    return _batch_pipeline(settings, span_exporter, log_exporter)
