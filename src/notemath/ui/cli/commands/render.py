"""Implementation of the ``notemath render`` command."""

from __future__ import annotations

from pathlib import Path

import typer

from notemath.adapters.markdown import render_markdown, resolve_markdown_extensions
from notemath.core.exceptions import MathConversionError, NotemathError

from .._options import (
    DisableMarkdownExtensionsOption,
    ErrorPolicy,
    FrontMatterOption,
    InputPathArgument,
    MarkdownExtensionsOption,
    OnErrorOption,
    OutputPathOption,
)
from ..diagnostics import CliEmitter
from ..presenter import present_math_summary
from ..state import emit_error, get_cli_state


def _failure_message(note: Path, exc: NotemathError) -> str:
    if isinstance(exc, MathConversionError):
        mode = "display" if exc.display else "inline"
        return f"{note.name}: cannot convert {mode} math {exc.source!r}"
    return f"{note.name}: {exc}"


def render(
    ctx: typer.Context,
    input_path: InputPathArgument,
    output: OutputPathOption = None,
    on_error: OnErrorOption = ErrorPolicy.RAISE,
    front_matter: FrontMatterOption = False,
    enable_extensions: MarkdownExtensionsOption = None,
    disable_extensions: DisableMarkdownExtensionsOption = None,
) -> None:
    """Render a Markdown note with math into an HTML fragment."""
    state = get_cli_state(ctx)
    extensions = resolve_markdown_extensions(enable_extensions, disable_extensions)

    try:
        document = render_markdown(
            input_path.read_text(encoding="utf-8"),
            extensions,
            math_config={"on_error": on_error.value},
            emitter=CliEmitter(state),
            front_matter=front_matter,
        )
    except NotemathError as exc:
        if state.show_tracebacks:
            raise
        emit_error(_failure_message(input_path, exc), exception=exc)
        raise typer.Exit(code=1) from exc

    if output is None:
        typer.echo(document.html)
    else:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(f"{document.html}\n", encoding="utf-8")
    present_math_summary(state, document.math)


__all__ = ["render"]
