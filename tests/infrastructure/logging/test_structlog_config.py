import json

import structlog
from opentelemetry import trace

from otel_honeycomb.infrastructure.logging.structlog_config import (
    add_trace_context,
    get_logger,
    setup_logging,
)


def test_add_trace_context_inside_span(tracer):
    with tracer.start_as_current_span("op") as span:
        event_dict = add_trace_context(None, "info", {"event": "e"})

    assert event_dict["trace_id"] == trace.format_trace_id(span.get_span_context().trace_id)
    assert event_dict["span_id"] == trace.format_span_id(span.get_span_context().span_id)


def test_add_trace_context_outside_span():
    assert add_trace_context(None, "info", {"event": "e"}) == {"event": "e"}


def test_add_trace_context_keeps_explicit_values(tracer):
    with tracer.start_as_current_span("op"):
        event_dict = add_trace_context(None, "info", {"event": "e", "trace_id": "mine"})

    assert event_dict["trace_id"] == "mine"


def test_setup_logging_renders_json(capsys):
    """Fora de DEBUG os eventos saem em JSON com nível e timestamp"""
    setup_logging("INFO")

    get_logger("tests.json").info("order_created", order_id=7)

    line = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert line["event"] == "order_created"
    assert line["order_id"] == 7
    assert line["level"] == "info"
    assert line["logger_name"] == "tests.json"
    assert "timestamp" in line


def test_setup_logging_filters_below_level(capsys):
    setup_logging("WARNING")

    get_logger("tests.level").info("hidden")

    assert "hidden" not in capsys.readouterr().out


def test_setup_logging_runs_extra_processors_first(capsys):
    seen = []

    def spy(logger, method_name, event_dict):
        seen.append((method_name, dict(event_dict)))
        return event_dict

    setup_logging("INFO", extra_processors=[spy])
    structlog.contextvars.bind_contextvars(request_id="req-1")
    try:
        get_logger("tests.extra").warning("slow_query")
    finally:
        structlog.contextvars.clear_contextvars()

    method_name, event_dict = seen[0]
    assert method_name == "warning"
    assert event_dict["request_id"] == "req-1"
    assert "level" not in event_dict
    assert "timestamp" not in event_dict


def test_setup_logging_adds_trace_context(capsys, tracer):
    setup_logging("INFO")

    with tracer.start_as_current_span("op") as span:
        get_logger("tests.trace").info("traced")

    line = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert line["trace_id"] == trace.format_trace_id(span.get_span_context().trace_id)
