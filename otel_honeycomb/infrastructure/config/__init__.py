"""Configuração da camada de telemetria."""
from otel_honeycomb.infrastructure.config.settings import (
    DEFAULT_ENDPOINT,
    TelemetrySettings,
    package_name,
    package_version,
)

__all__ = ["DEFAULT_ENDPOINT", "TelemetrySettings", "package_name", "package_version"]
