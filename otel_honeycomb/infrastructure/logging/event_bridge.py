"""
Ponte entre os eventos structlog e os logs OpenTelemetry.

O EventLogBridge é um processor structlog: para cada evento monta um
LogRecord (target, nome do evento, severidade, localização, campos) e anexa
a descrição de cada span aberto que envolve o evento, da raiz até o span
corrente (span.{i}, span.{i}.location, span.{i}.name). O registro é emitido
para o LoggerProvider, independente da exportação de traces, e o evento
segue inalterado pelo restante da cadeia de processors.

Usage:
    bridge = EventLogBridge(logger_provider, registry)
    setup_logging("INFO", extra_processors=[bridge])
"""
import contextvars
import logging
import re
import time
from typing import Any, MutableMapping, Optional, Union

from opentelemetry import context, trace
from opentelemetry._logs import SeverityNumber
from opentelemetry.sdk._logs import LoggerProvider, LogRecord
from structlog.processors import CallsiteParameter, CallsiteParameterAdder

from otel_honeycomb.infrastructure.config.settings import package_version
from otel_honeycomb.infrastructure.logging.span_registry import (
    SpanRegistry,
    format_field_value,
)

INSTRUMENTATION_LIBRARY_NAME = "otel_honeycomb"

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

AttributeValue = Union[str, bool, int, float]

_log = logging.getLogger(__name__)

# Eventos gerados enquanto um registro é emitido não são reenviados
_bridging = contextvars.ContextVar("otel_honeycomb_bridging", default=False)

# Tabela fixa e monotônica: método structlog -> severidade
_SEVERITY_BY_METHOD = {
    "notset": (SeverityNumber.TRACE, "TRACE"),
    "trace": (SeverityNumber.TRACE, "TRACE"),
    "debug": (SeverityNumber.DEBUG, "DEBUG"),
    "info": (SeverityNumber.INFO, "INFO"),
    "msg": (SeverityNumber.INFO, "INFO"),
    "warn": (SeverityNumber.WARN, "WARN"),
    "warning": (SeverityNumber.WARN, "WARN"),
    "error": (SeverityNumber.ERROR, "ERROR"),
    "err": (SeverityNumber.ERROR, "ERROR"),
    "exception": (SeverityNumber.ERROR, "ERROR"),
    "critical": (SeverityNumber.ERROR, "ERROR"),
    "fatal": (SeverityNumber.ERROR, "ERROR"),
}

# Campos consumidos pelo próprio registro (não viram atributos)
_RESERVED_FIELDS = frozenset({"event", "message", "body", "logger", "logger_name"})

# Atributos calculados pela ponte; campos do evento com esses nomes são descartados
_COMPUTED_FIELDS = frozenset({"target", "location", "event.name"})
_SPAN_FIELD = re.compile(r"^span\.\d+(\.(location|name))?$")


def severity_of_method(method_name: str) -> tuple[SeverityNumber, str]:
    return _SEVERITY_BY_METHOD.get(method_name.lower(), (SeverityNumber.INFO, "INFO"))


def to_attribute_value(value: Any) -> AttributeValue:
    """str, bool, float e int de 64 bits mantêm o tipo; o resto vira repr()."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return value
    if isinstance(value, int):
        if INT64_MIN <= value <= INT64_MAX:
            return value
        return repr(value)
    return repr(value)


class EventLogBridge:
    """Processor structlog que espelha cada evento como LogRecord OpenTelemetry."""

    def __init__(
        self,
        logger_provider: LoggerProvider,
        registry: SpanRegistry,
    ):
        self.logger = logger_provider.get_logger(
            INSTRUMENTATION_LIBRARY_NAME, package_version()
        )
        self.registry = registry
        self._callsite = CallsiteParameterAdder(
            parameters=[CallsiteParameter.PATHNAME, CallsiteParameter.LINENO],
            additional_ignores=[__name__],
        )

    def __call__(
        self, logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
    ) -> MutableMapping[str, Any]:
        if _bridging.get():
            return event_dict
        token = _bridging.set(True)
        try:
            self.logger.emit(self.build_record(logger, method_name, event_dict))
        except Exception:
            _log.warning("Falha ao emitir registro de log OpenTelemetry", exc_info=True)
        finally:
            _bridging.reset(token)
        return event_dict

    def build_record(
        self, logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
    ) -> LogRecord:
        severity_number, severity_text = severity_of_method(method_name)
        event = event_dict.get("event")

        attributes: dict[str, AttributeValue] = {
            "target": self._target(logger, event_dict),
            "location": self._location(logger, method_name, event_dict),
        }
        if event is not None:
            attributes["event.name"] = format_field_value(event)

        body: Optional[str] = None
        if event is not None:
            body = format_field_value(event)
        if "message" in event_dict:
            body = format_field_value(event_dict["message"])
        if "body" in event_dict:
            body = format_field_value(event_dict["body"])

        for key, value in event_dict.items():
            if key in _RESERVED_FIELDS or key.startswith("_"):
                continue
            if key in _COMPUTED_FIELDS or _SPAN_FIELD.match(key):
                continue
            attributes[key] = to_attribute_value(value)

        current = context.get_current()
        span_context = trace.get_current_span(current).get_span_context()
        for i, entry in enumerate(self.registry.scope(span_context)):
            attributes[f"span.{i}"] = entry.extension.span_str
            attributes[f"span.{i}.location"] = entry.extension.location
            attributes[f"span.{i}.name"] = entry.name

        return LogRecord(
            timestamp=time.time_ns(),
            context=current,
            severity_text=severity_text,
            severity_number=severity_number,
            body=body,
            resource=getattr(self.logger, "resource", None),
            attributes=attributes,
        )

    @staticmethod
    def _target(logger: Any, event_dict: MutableMapping[str, Any]) -> str:
        target = (
            event_dict.get("logger_name")
            or event_dict.get("logger")
            or getattr(logger, "name", None)
        )
        return str(target) if target else ""

    def _location(
        self, logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
    ) -> str:
        origin = {
            key: event_dict[key]
            for key in ("_record", "_from_structlog")
            if key in event_dict
        }
        callsite = self._callsite(logger, method_name, origin)
        return "{}:{}".format(
            callsite.get("pathname") or "UNKNOWN", callsite.get("lineno") or 0
        )
