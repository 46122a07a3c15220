"""Testes para as configurações de telemetria."""
import pytest
from pydantic import ValidationError

from otel_honeycomb.infrastructure.config.settings import (
    DEFAULT_ENDPOINT,
    TelemetrySettings,
    package_name,
)

ENV_VARS = (
    "HONEYCOMB_API_KEY",
    "OTEL_EXPORTER_OTLP_ENDPOINT",
    "OTEL_SERVICE_NAME",
    "OTEL_TRACES_SAMPLER_ARG",
    "SAMPLE_RATIO",
    "ENVIRONMENT",
    "LOG_LEVEL",
    "EXPORT_TIMEOUT_SECONDS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestTelemetrySettingsDefaults:
    """Valores padrão sem nenhuma variável de ambiente."""

    def test_api_key_absent_by_default(self):
        settings = TelemetrySettings(_env_file=None)
        assert settings.honeycomb_api_key is None

    def test_endpoint_default(self):
        """Endpoint padrão é o Honeycomb EU."""
        settings = TelemetrySettings(_env_file=None)
        assert settings.otel_exporter_otlp_endpoint == DEFAULT_ENDPOINT

    def test_service_name_defaults_to_package_name(self):
        settings = TelemetrySettings(_env_file=None)
        assert settings.otel_service_name == package_name()

    def test_sampling_and_application_defaults(self):
        settings = TelemetrySettings(_env_file=None)
        assert settings.sample_ratio == 1.0
        assert settings.environment == "production"
        assert settings.log_level == "INFO"
        assert settings.export_timeout_seconds == 10.0


class TestTelemetrySettingsFromEnvironment:
    """Leitura das variáveis de ambiente."""

    def test_reads_honeycomb_variables(self, monkeypatch):
        monkeypatch.setenv("HONEYCOMB_API_KEY", "hc-key")
        monkeypatch.setenv("OTEL_EXPORTER_OTLP_ENDPOINT", "https://api.honeycomb.io/")
        monkeypatch.setenv("OTEL_SERVICE_NAME", "checkout")

        settings = TelemetrySettings(_env_file=None)

        assert settings.honeycomb_api_key == "hc-key"
        assert settings.otel_exporter_otlp_endpoint == "https://api.honeycomb.io/"
        assert settings.otel_service_name == "checkout"

    def test_sampler_arg_sets_ratio(self, monkeypatch):
        """OTEL_TRACES_SAMPLER_ARG é aceito como fração de amostragem."""
        monkeypatch.setenv("OTEL_TRACES_SAMPLER_ARG", "0.25")

        settings = TelemetrySettings(_env_file=None)

        assert settings.sample_ratio == 0.25

    def test_sample_ratio_variable(self, monkeypatch):
        monkeypatch.setenv("SAMPLE_RATIO", "0.1")

        assert TelemetrySettings(_env_file=None).sample_ratio == 0.1

    def test_variable_names_are_case_insensitive(self, monkeypatch):
        monkeypatch.setenv("honeycomb_api_key", "lower")

        assert TelemetrySettings(_env_file=None).honeycomb_api_key == "lower"

    def test_reads_dotenv_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("HONEYCOMB_API_KEY=from-file\nENVIRONMENT=staging\n")

        settings = TelemetrySettings(_env_file=env_file)

        assert settings.honeycomb_api_key == "from-file"
        assert settings.environment == "staging"


class TestTelemetrySettingsValidation:

    @pytest.mark.parametrize("ratio", [-0.1, 1.5])
    def test_ratio_out_of_range_is_rejected(self, ratio):
        with pytest.raises(ValidationError):
            TelemetrySettings(_env_file=None, sample_ratio=ratio)

    @pytest.mark.parametrize("ratio", [0.0, 1.0])
    def test_ratio_bounds_are_accepted(self, ratio):
        assert TelemetrySettings(_env_file=None, sample_ratio=ratio).sample_ratio == ratio

    def test_service_version_is_a_string(self):
        assert isinstance(TelemetrySettings(_env_file=None).service_version, str)
