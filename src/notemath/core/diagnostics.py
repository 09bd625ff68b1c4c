"""Diagnostics raised while rendering math.

The renderer and the Markdown façade report through a
:class:`DiagnosticEmitter`. Two kinds of reports exist: warnings, raised
when an expression is replaced by an error marker, and named events
carrying a small payload (see :data:`MATH_CONVERSION_FAILED` and
:data:`MARKDOWN_RENDERED`).
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
import logging
from typing import Any, Protocol, runtime_checkable


logger = logging.getLogger(__name__)

MATH_CONVERSION_FAILED = "math_conversion_failed"
MARKDOWN_RENDERED = "markdown_rendered"

_SOURCE_PREVIEW = 40


@runtime_checkable
class DiagnosticEmitter(Protocol):
    """Sink for math warnings and rendering events."""

    debug_enabled: bool

    def warning(self, message: str, exc: BaseException | None = None) -> None: ...

    def event(self, name: str, payload: Mapping[str, Any]) -> None: ...


class NullEmitter:
    """Discard every report."""

    debug_enabled: bool = False

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        return

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        return


class LoggingEmitter:
    """Report through :mod:`logging`. Events with a description log at INFO."""

    def __init__(
        self, target: logging.Logger | None = None, *, debug_enabled: bool = False
    ) -> None:
        self.logger = target or logger
        self.debug_enabled = debug_enabled

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        self.logger.warning(message, exc_info=exc if self.debug_enabled else None)

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        description = describe_event(name, payload)
        if description is None:
            self.logger.debug("event %s %r", name, dict(payload))
        else:
            self.logger.info(description)


def _preview(source: str) -> str:
    source = " ".join(source.split())
    if len(source) > _SOURCE_PREVIEW:
        return f"{source[: _SOURCE_PREVIEW - 3]}..."
    return source


def _describe_failure(payload: Mapping[str, Any]) -> str:
    mode = "display" if payload.get("display") else "inline"
    source = _preview(str(payload.get("source") or ""))
    text = f"Replaced {mode} math '{source}' with an error marker"
    reason = payload.get("reason")
    return f"{text}: {reason}" if reason else text


def _describe_render(payload: Mapping[str, Any]) -> str:
    text = (
        f"Rendered {payload.get('inline', 0)} inline and "
        f"{payload.get('block', 0)} block math expression(s)"
    )
    errors = payload.get("errors", 0)
    return f"{text}, {errors} failed" if errors else text


_DESCRIBERS: dict[str, Callable[[Mapping[str, Any]], str]] = {
    MATH_CONVERSION_FAILED: _describe_failure,
    MARKDOWN_RENDERED: _describe_render,
}


def describe_event(name: str, payload: Mapping[str, Any]) -> str | None:
    """Return a one-line description of a known event, ``None`` otherwise."""
    describer = _DESCRIBERS.get(name)
    return describer(payload) if describer is not None else None


def ensure_emitter(emitter: DiagnosticEmitter | None) -> DiagnosticEmitter:
    return emitter if emitter is not None else LoggingEmitter()


__all__ = [
    "MARKDOWN_RENDERED",
    "MATH_CONVERSION_FAILED",
    "DiagnosticEmitter",
    "LoggingEmitter",
    "NullEmitter",
    "describe_event",
    "ensure_emitter",
]
