"""
Registro dos spans abertos e da descrição textual de cada um.

A descrição (SpanExtension) é renderizada uma única vez, quando o span é
aberto, e removida junto com o span quando ele termina. O EventLogBridge
lê o registro para anexar a cadeia de spans a cada registro de log.

Spans amostrados entram pelo SpanExtensionProcessor. O SDK não chama os
processors para spans descartados pelo sampler, então o TrackingTracer
registra esses spans diretamente.
"""
import contextlib
import sys
import threading
from dataclasses import dataclass
from typing import Any, Iterator, Mapping, Optional

from opentelemetry import trace
from opentelemetry.context import Context
from opentelemetry.sdk.trace import ReadableSpan, SpanProcessor
from opentelemetry.trace import NonRecordingSpan, Span, SpanContext, SpanKind, Tracer

UNKNOWN_LOCATION = "UNKNOWN:0"

# Frames ignorados ao procurar quem abriu o span
_IGNORED_MODULE_PREFIXES = ("opentelemetry", "contextlib", __name__)


@dataclass(frozen=True)
class SpanExtension:
    """Snapshot imutável do span no momento da abertura."""
    span_str: str
    location: str


@dataclass(frozen=True)
class RegisteredSpan:
    span: Span
    extension: SpanExtension
    parent: Optional[SpanContext] = None

    @property
    def name(self) -> str:
        """Nome atual do span (pode mudar após a abertura)."""
        return self.span.name


def format_field_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (bool, int, float)):
        return str(value)
    return repr(value)


def find_caller() -> tuple[str, str]:
    """Módulo e 'arquivo:linha' do primeiro frame fora do OpenTelemetry."""
    frame = sys._getframe(1)
    while frame is not None:
        module = frame.f_globals.get("__name__", "")
        if not module.startswith(_IGNORED_MODULE_PREFIXES):
            return module, f"{frame.f_code.co_filename}:{frame.f_lineno}"
        frame = frame.f_back
    return "", UNKNOWN_LOCATION


def render_span(
    name: str, attributes: Optional[Mapping[str, Any]], module: str, location: str
) -> str:
    parts = [
        f"Name: '{name}', {{ module: '{module}', location: '{location}'"
    ]
    for key, value in (attributes or {}).items():
        parts.append(f", {key}: '{format_field_value(value)}'")
    parts.append(" }")
    return "".join(parts)


def _key(span_context: SpanContext) -> tuple[int, int]:
    return span_context.trace_id, span_context.span_id


class SpanRegistry:
    """Mapa thread-safe (trace_id, span_id) -> span aberto + extensão."""

    def __init__(self):
        self._entries: dict[tuple[int, int], RegisteredSpan] = {}
        self._lock = threading.Lock()

    def register(
        self,
        span: Span,
        extension: SpanExtension,
        parent: Optional[SpanContext] = None,
    ) -> None:
        entry = RegisteredSpan(span, extension, parent)
        with self._lock:
            self._entries[_key(span.get_span_context())] = entry

    def remove(self, span_context: SpanContext) -> None:
        with self._lock:
            self._entries.pop(_key(span_context), None)

    def get(self, span_context: Optional[SpanContext]) -> Optional[RegisteredSpan]:
        if span_context is None or not span_context.is_valid:
            return None
        with self._lock:
            return self._entries.get(_key(span_context))

    def scope(self, span_context: Optional[SpanContext]) -> list[RegisteredSpan]:
        """
        Cadeia de spans abertos que envolve span_context, da raiz até ele.

        A subida para no primeiro ancestral que não está registrado
        (span remoto, já encerrado ou criado por outro provider).
        """
        chain = []
        entry = self.get(span_context)
        while entry is not None:
            chain.append(entry)
            parent = entry.parent
            if parent is None or parent.is_remote:
                break
            entry = self.get(parent)
        chain.reverse()
        return chain

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class SpanExtensionProcessor(SpanProcessor):
    """SpanProcessor que mantém o SpanRegistry em sincronia com os spans abertos."""

    def __init__(self, registry: SpanRegistry):
        self.registry = registry

    def on_start(self, span: Span, parent_context: Optional[Context] = None) -> None:
        self.registry.register(span, describe(span.name, span.attributes), span.parent)

    def on_end(self, span: ReadableSpan) -> None:
        self.registry.remove(span.get_span_context())


def describe(name: str, attributes: Optional[Mapping[str, Any]]) -> SpanExtension:
    """Renderiza a extensão do span a partir de quem o abriu."""
    module, location = find_caller()
    return SpanExtension(
        span_str=render_span(name, attributes, module, location),
        location=location,
    )


class UnsampledSpan(NonRecordingSpan):
    """Span descartado pelo sampler que continua visível no SpanRegistry."""

    def __init__(self, span_context: SpanContext, name: str, registry: SpanRegistry):
        super().__init__(span_context)
        self.name = name
        self._registry = registry

    def update_name(self, name: str) -> None:
        self.name = name

    def end(self, end_time: Optional[int] = None) -> None:
        self._registry.remove(self.get_span_context())


class TrackingTracer(Tracer):
    """
    Tracer que registra também os spans não amostrados.

    Spans amostrados seguem pelo SpanExtensionProcessor do provider; os
    descartados voltam do SDK como NonRecordingSpan e são trocados por um
    UnsampledSpan registrado, para que a cadeia de spans dos logs continue
    completa com qualquer fração de amostragem.
    """

    def __init__(self, tracer: Tracer, registry: SpanRegistry):
        self._tracer = tracer
        self.registry = registry

    def start_span(
        self,
        name: str,
        context: Optional[Context] = None,
        kind: SpanKind = SpanKind.INTERNAL,
        attributes=None,
        links=None,
        start_time: Optional[int] = None,
        record_exception: bool = True,
        set_status_on_exception: bool = True,
    ) -> Span:
        span = self._tracer.start_span(
            name,
            context=context,
            kind=kind,
            attributes=attributes,
            links=links,
            start_time=start_time,
            record_exception=record_exception,
            set_status_on_exception=set_status_on_exception,
        )
        span_context = span.get_span_context()
        if span.is_recording() or not span_context.is_valid:
            return span

        parent = trace.get_current_span(context).get_span_context()
        unsampled = UnsampledSpan(span_context, name, self.registry)
        self.registry.register(
            unsampled,
            describe(name, attributes),
            parent if parent.is_valid else None,
        )
        return unsampled

    @contextlib.contextmanager
    def start_as_current_span(
        self,
        name: str,
        context: Optional[Context] = None,
        kind: SpanKind = SpanKind.INTERNAL,
        attributes=None,
        links=None,
        start_time: Optional[int] = None,
        record_exception: bool = True,
        set_status_on_exception: bool = True,
        end_on_exit: bool = True,
    ) -> Iterator[Span]:
        span = self.start_span(
            name,
            context=context,
            kind=kind,
            attributes=attributes,
            links=links,
            start_time=start_time,
            record_exception=record_exception,
            set_status_on_exception=set_status_on_exception,
        )
        with trace.use_span(
            span,
            end_on_exit=end_on_exit,
            record_exception=record_exception,
            set_status_on_exception=set_status_on_exception,
        ) as current:
            yield current
