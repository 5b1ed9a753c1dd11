from __future__ import annotations

import io
import logging

import pytest
from rich.console import Console

from good_emitter import Emitter, EventRegistry, EventTracer


def _recording_tracer(**kwargs) -> tuple[EventTracer, io.StringIO]:
    buffer = io.StringIO()
    console = Console(file=buffer, force_terminal=False, width=200)
    return EventTracer(console=console, **kwargs), buffer


def test_disabled_tracer_prints_nothing() -> None:
    tracer, buffer = _recording_tracer()
    registry = EventRegistry(tracer=tracer)
    registry.subscribe("trace:event", lambda: 1)

    registry.emit("trace:event")

    assert buffer.getvalue() == ""


def test_rich_trace_line_includes_event_and_listener_count() -> None:
    tracer, buffer = _recording_tracer(enabled=True)
    registry = EventRegistry(tracer=tracer)
    registry.subscribe("trace:event", lambda value: value)
    registry.subscribe("trace:event", lambda value: value)

    registry.emit("trace:event", "payload")

    output = buffer.getvalue()
    assert "trace:event" in output
    assert "listeners: 2" in output
    assert "'payload'" in output


def test_trace_reports_errors_and_missing_listeners() -> None:
    tracer, buffer = _recording_tracer(enabled=True)
    registry = EventRegistry(tracer=tracer)

    def failing() -> None:
        raise RuntimeError("traced")

    registry.emit("trace:empty")
    registry.subscribe("trace:error", failing)
    registry.emit("trace:error")

    output = buffer.getvalue()
    assert "no listeners" in output
    assert "errors: 1" in output


def test_verbose_trace_adds_detail_table() -> None:
    tracer, buffer = _recording_tracer(enabled=True, verbosity=2)
    registry = EventRegistry(tracer=tracer)
    registry.subscribe("trace:verbose", lambda value: value * 2)

    registry.emit("trace:verbose", 21)

    output = buffer.getvalue()
    assert "arg:0" in output
    assert "result:0" in output
    assert "42" in output


def test_plain_trace_goes_to_logger(caplog: pytest.LogCaptureFixture) -> None:
    tracer = EventTracer(enabled=True, use_rich=False)
    registry = EventRegistry(tracer=tracer)
    registry.subscribe("trace:plain", lambda: "ok")

    with caplog.at_level(logging.DEBUG, logger="good_emitter"):
        registry.emit("trace:plain")

    (record,) = [r for r in caplog.records if "[EVENT TRACE]" in r.message]
    assert "event='trace:plain'" in record.message
    assert "listeners=1" in record.message


def test_emitter_set_event_trace_toggles_channels_too(caplog: pytest.LogCaptureFixture) -> None:
    emitter = Emitter()
    channel = emitter.channel("audit")
    channel.subscribe("trace:channel", lambda: None)

    with caplog.at_level(logging.DEBUG, logger="good_emitter"):
        emitter.set_event_trace(True, use_rich=False)
        assert emitter.event_trace_enabled
        channel.emit("trace:channel")
        emitter.set_event_trace(False, use_rich=False)
        channel.emit("trace:channel")

    traces = [r for r in caplog.records if "[EVENT TRACE]" in r.message]
    assert len(traces) == 1
    assert not emitter.event_trace_enabled
    emitter.close()
