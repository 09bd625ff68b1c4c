"""Per-invocation state of the ``notemath`` command line.

Each command run gets one :class:`CLIState`, stored as the ``obj`` of the
root Click context. It holds the verbosity and traceback flags set by the
root callback, the Rich consoles, and the math failures reported while
rendering so the summary can list them.
"""

from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass, field
import sys
from typing import Any, TextIO

import click
from rich.console import Console
from rich.text import Text

from notemath.core.exceptions import exception_messages


__all__ = [
    "CLIState",
    "emit_error",
    "emit_info",
    "emit_warning",
    "get_cli_state",
    "set_cli_state",
]

_LEVEL_STYLES = {"warning": "yellow", "error": "red"}


@dataclass(slots=True)
class CLIState:
    verbosity: int = 0
    show_tracebacks: bool = False
    failures: list[dict[str, Any]] = field(default_factory=list)
    _consoles: dict[bool, Console] = field(default_factory=dict, init=False, repr=False)

    def _console_for(self, stream: TextIO, *, stderr: bool) -> Console:
        # Test runners swap the process streams between invocations.
        console = self._consoles.get(stderr)
        if console is None or console.file is not stream:
            console = Console(file=stream, highlight=not stderr)
            self._consoles[stderr] = console
        return console

    @property
    def console(self) -> Console:
        return self._console_for(sys.stdout, stderr=False)

    @property
    def err_console(self) -> Console:
        return self._console_for(sys.stderr, stderr=True)


_ACTIVE: ContextVar[CLIState | None] = ContextVar("notemath_cli_state", default=None)


def get_cli_state(ctx: click.Context | None = None) -> CLIState:
    """Return the state of the running command, creating it on first use."""
    ctx = ctx or click.get_current_context(silent=True)
    if ctx is not None:
        root = ctx.find_root()
        if not isinstance(root.obj, CLIState):
            root.obj = CLIState()
        _ACTIVE.set(root.obj)
        return root.obj

    state = _ACTIVE.get()
    if state is None:
        state = CLIState()
        _ACTIVE.set(state)
    return state


def set_cli_state(
    *,
    ctx: click.Context | None = None,
    verbosity: int | None = None,
    debug: bool | None = None,
) -> CLIState:
    state = get_cli_state(ctx)
    if verbosity is not None:
        state.verbosity = max(0, verbosity)
    if debug is not None:
        state.show_tracebacks = debug
    return state


def _report(level: str, message: str, exception: BaseException | None) -> None:
    state = get_cli_state()
    style = _LEVEL_STYLES[level]
    text = Text.assemble((f"{level}: ", f"bold {style}"), (message, style))

    if exception is not None and state.verbosity >= 1:
        # The first entry repeats the exception itself.
        causes = exception_messages(exception)[1:]
        details = [f"type: {type(exception).__name__}"]
        if state.verbosity >= 2:
            details.extend(f"caused by: {cause}" for cause in causes)
        text.append("\n" + "\n".join(details), style=style)

    state.err_console.print(text)


def emit_warning(message: str, *, exception: BaseException | None = None) -> None:
    _report("warning", message, exception)


def emit_error(message: str, *, exception: BaseException | None = None) -> None:
    _report("error", message, exception)


def emit_info(message: str) -> None:
    """Print ``message`` to stderr when running with ``--verbose``."""
    state = get_cli_state()
    if state.verbosity >= 1:
        state.err_console.print(message, style="dim")
