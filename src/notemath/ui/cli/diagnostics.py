"""Emitter printing math diagnostics on the CLI consoles."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from notemath.core.diagnostics import MATH_CONVERSION_FAILED, describe_event

from .state import CLIState, emit_info, emit_warning, get_cli_state


class CliEmitter:
    """Print warnings on stderr and keep math failures for the summary.

    Event descriptions are only shown with ``--verbose``.
    """

    def __init__(self, state: CLIState | None = None) -> None:
        self.state = state or get_cli_state()
        self.debug_enabled = self.state.show_tracebacks

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        emit_warning(message, exception=exc)

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        if name == MATH_CONVERSION_FAILED:
            self.state.failures.append(dict(payload))
        description = describe_event(name, payload)
        if description is not None:
            emit_info(description)


__all__ = ["CliEmitter"]
