from __future__ import annotations

import logging

import pytest

from notemath.core.diagnostics import (
    MARKDOWN_RENDERED,
    MATH_CONVERSION_FAILED,
    LoggingEmitter,
    NullEmitter,
    describe_event,
    ensure_emitter,
)
from notemath.core.exceptions import MathConversionError, exception_hint, exception_messages
from notemath.ui.cli.diagnostics import CliEmitter
from notemath.ui.cli.state import CLIState


def _raise_nested_error() -> None:
    try:
        raise ValueError("Missing \\right")
    except ValueError as exc:
        raise MathConversionError("math failed", source="\\left(", display=True) from exc


def test_null_emitter_is_noop(caplog: pytest.LogCaptureFixture) -> None:
    emitter = NullEmitter()
    with caplog.at_level(logging.DEBUG):
        emitter.warning("nothing to see")
        emitter.event(MARKDOWN_RENDERED, {"inline": 1})
    assert not caplog.records
    assert emitter.debug_enabled is False


def test_logging_emitter_logs_warnings(caplog: pytest.LogCaptureFixture) -> None:
    emitter = LoggingEmitter()
    with caplog.at_level(logging.WARNING):
        emitter.warning("boom", ValueError("bad"))

    [record] = caplog.records
    assert record.levelno == logging.WARNING
    assert record.message == "boom"
    assert record.exc_info is None


def test_logging_emitter_attaches_exception_in_debug(caplog: pytest.LogCaptureFixture) -> None:
    emitter = LoggingEmitter(debug_enabled=True)
    error = ValueError("bad")
    with caplog.at_level(logging.WARNING):
        emitter.warning("boom", error)

    [record] = caplog.records
    assert record.exc_info is not None
    assert record.exc_info[1] is error


def test_logging_emitter_summarises_known_events(caplog: pytest.LogCaptureFixture) -> None:
    emitter = LoggingEmitter()
    with caplog.at_level(logging.INFO):
        emitter.event(MARKDOWN_RENDERED, {"inline": 2, "block": 1})
        emitter.event("custom", {"value": 3})

    assert [record.message for record in caplog.records] == [
        "Rendered 2 inline and 1 block math expression(s)"
    ]


def test_ensure_emitter_defaults_to_logging() -> None:
    assert isinstance(ensure_emitter(None), LoggingEmitter)
    null = NullEmitter()
    assert ensure_emitter(null) is null


def test_describe_conversion_failure_truncates_source() -> None:
    message = describe_event(
        MATH_CONVERSION_FAILED,
        {"source": "x" * 60, "display": True, "reason": "ValueError"},
    )

    assert message == f"Replaced display math '{'x' * 37}...' with an error marker: ValueError"


def test_describe_render_counts_failures() -> None:
    message = describe_event(MARKDOWN_RENDERED, {"inline": 3, "block": 0, "errors": 2})

    assert message == "Rendered 3 inline and 0 block math expression(s), 2 failed"


def test_describe_unknown_event_returns_none() -> None:
    assert describe_event("other", {}) is None


def test_exception_messages_follow_causes() -> None:
    with pytest.raises(MathConversionError) as excinfo:
        _raise_nested_error()

    assert exception_messages(excinfo.value) == ["math failed", "Missing \\right"]
    assert exception_hint(excinfo.value) == "Missing \\right"


def test_cli_emitter_keeps_failures(monkeypatch: pytest.MonkeyPatch) -> None:
    state = CLIState()
    messages: list[str] = []
    monkeypatch.setattr("notemath.ui.cli.diagnostics.emit_info", messages.append)
    emitter = CliEmitter(state)

    failure = {"source": "\\frac", "display": False, "reason": "bad"}
    emitter.event(MATH_CONVERSION_FAILED, failure)
    emitter.event(MARKDOWN_RENDERED, {"inline": 1, "block": 0})
    emitter.event("custom", {"value": 3})

    assert state.failures == [failure]
    assert messages == [
        "Replaced inline math '\\frac' with an error marker: bad",
        "Rendered 1 inline and 0 block math expression(s)",
    ]


def test_cli_emitter_forwards_warnings(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[tuple[str, BaseException | None]] = []

    def fake_warning(message: str, *, exception: BaseException | None = None) -> None:
        seen.append((message, exception))

    monkeypatch.setattr("notemath.ui.cli.diagnostics.emit_warning", fake_warning)
    error = ValueError("bad")
    CliEmitter(CLIState()).warning("replaced", error)

    assert seen == [("replaced", error)]


def test_cli_emitter_inherits_debug_flag() -> None:
    assert CliEmitter(CLIState(show_tracebacks=True)).debug_enabled is True
    assert CliEmitter(CLIState()).debug_enabled is False
