"""Console output of the ``rules`` listing and the render summary."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from rich import box
from rich.console import Console
from rich.table import Table
import typer

from .state import CLIState


RULE_COLUMNS = ("Chain", "Name", "Priority", "Before", "After", "Interrupts", "Interrupt Priority")


def _get_console(state: CLIState) -> Console | None:
    """Return the stdout console, or ``None`` when output is piped."""
    console = state.console
    return console if console.is_terminal else None


def _priority(value: object) -> str:
    if value is None:
        return ""
    return f"{value:g}" if isinstance(value, float) else str(value)


def _names(entry: Mapping[str, Any], key: str) -> str:
    return ", ".join(entry.get(key) or ())


def _rule_table(rules: Sequence[Mapping[str, Any]]) -> Table:
    table = Table(title="Parser Rules", box=box.SQUARE, header_style="bold cyan")
    for column in RULE_COLUMNS:
        table.add_column(column)
    for entry in rules:
        table.add_row(
            str(entry["chain"]),
            str(entry["name"]),
            _priority(entry.get("priority")),
            _names(entry, "before"),
            _names(entry, "after"),
            _names(entry, "alt"),
            _priority(entry.get("interrupt_priority")),
        )
    return table


def _rule_line(entry: Mapping[str, Any]) -> str:
    line = (
        f"  - {entry['chain']}: {entry['name']} "
        f"(priority={_priority(entry.get('priority'))}, "
        f"before=[{_names(entry, 'before')}], after=[{_names(entry, 'after')}])"
    )
    if entry.get("alt"):
        line += (
            f" interrupts=[{_names(entry, 'alt')}]"
            f" at {_priority(entry.get('interrupt_priority'))}"
        )
    return line


def present_rule_descriptions(state: CLIState, rules: Sequence[Mapping[str, Any]]) -> None:
    """Show where the math rules sit in the parser chains."""
    if not rules:
        typer.echo("No notemath rules are installed.")
        return

    console = _get_console(state)
    if console is not None:
        console.print(_rule_table(rules))
        return

    typer.echo("Parser Rules:")
    for entry in rules:
        typer.echo(_rule_line(entry))


def present_math_summary(state: CLIState, stats: Mapping[str, int]) -> None:
    """With ``--verbose``, count the rendered expressions and list failures."""
    if state.verbosity < 1:
        return
    console = state.err_console
    summary = f"{stats.get('inline', 0)} inline, {stats.get('block', 0)} block math expression(s)"
    errors = stats.get("errors", 0)
    if errors:
        summary += f", {errors} replaced by error markers"
    console.print(summary, style="dim")
    for failure in state.failures:
        mode = "display" if failure.get("display") else "inline"
        console.print(f"  {mode}: {failure.get('source', '')}", style="dim", markup=False)


__all__ = ["present_math_summary", "present_rule_descriptions"]
