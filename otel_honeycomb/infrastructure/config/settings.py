"""
Configurações de telemetria.
Carrega variáveis de ambiente; a instância é passada explicitamente para init_otlp_layer.
"""

from importlib import metadata
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings

DISTRIBUTION_NAME = "asgi-otel-honeycomb"
DEFAULT_ENDPOINT = "https://api.eu1.honeycomb.io/"


def package_name() -> str:
    """Nome da distribuição segundo os metadados instalados (ou 'unknown')."""
    try:
        return metadata.metadata(DISTRIBUTION_NAME)["Name"]
    except metadata.PackageNotFoundError:
        return "unknown"


def package_version() -> str:
    try:
        return metadata.version(DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError:
        return "0.0.0"


class TelemetrySettings(BaseSettings):
    """Configurações de exportação carregadas do ambiente."""

    # Honeycomb
    honeycomb_api_key: Optional[str] = Field(
        default=None,
        description="API key do ambiente Honeycomb (obrigatória)"
    )
    otel_exporter_otlp_endpoint: str = Field(
        default=DEFAULT_ENDPOINT,
        description="Endpoint base OTLP/HTTP"
    )
    otel_service_name: str = Field(default_factory=package_name)

    # Amostragem: fração de traces raiz exportados
    sample_ratio: float = Field(
        default=1.0,
        ge=0.0,
        le=1.0,
        validation_alias=AliasChoices("sample_ratio", "otel_traces_sampler_arg"),
    )

    # Aplicação
    environment: str = "production"
    log_level: str = "INFO"
    export_timeout_seconds: float = 10.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    @property
    def service_version(self) -> str:
        """Versão do pacote instalado, usada no resource."""
        return package_version()
