"""
Exceções customizadas da camada de telemetria.
"""

from typing import Any, Optional


class TelemetryException(Exception):
    """Exceção base para erros de configuração de telemetria."""

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None
    ):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class MissingCredentialError(TelemetryException):
    """Credencial obrigatória ausente. Fatal: não há destino para os traces."""

    def __init__(self, variable: str):
        super().__init__(
            message=f"Variável de ambiente {variable} ausente",
            details={"variable": variable}
        )


class ExporterConfigurationError(TelemetryException):
    """Exporter não pôde ser construído. Recuperável: tracing é desativado."""

    def __init__(self, endpoint: str, error: str):
        super().__init__(
            message=f"Erro ao configurar exporter para {endpoint!r}: {error}",
            details={"endpoint": endpoint, "error": error}
        )
