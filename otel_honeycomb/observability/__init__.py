"""Módulo de observabilidade: exportação OTLP de traces e logs para o Honeycomb."""
from otel_honeycomb.observability.tracing import (
    TelemetryPipeline,
    build_pipeline,
    build_sampler,
    init_otlp_layer,
)

__all__ = [
    "TelemetryPipeline",
    "build_pipeline",
    "build_sampler",
    "init_otlp_layer",
]
