"""Typer application for the ``notemath`` command."""

from __future__ import annotations

import typer

from notemath.adapters.markdown import DEFAULT_MARKDOWN_EXTENSIONS
from notemath.version import get_version

from ._options import DebugOption, ListExtensionsOption, VerboseOption, VersionOption
from .commands import render, rules
from .state import set_cli_state


app = typer.Typer(
    help="Render Markdown notes with $$ inline and $$$ block math to HTML and MathML.",
    no_args_is_help=False,
)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: VerboseOption = 0,
    debug: DebugOption = False,
    list_extensions: ListExtensionsOption = False,
    show_version: VersionOption = False,
) -> None:
    """Set the diagnostics level for the command that follows."""
    set_cli_state(ctx=ctx, verbosity=verbose, debug=debug)

    if show_version:
        typer.echo(get_version())
    elif list_extensions:
        typer.echo("\n".join(DEFAULT_MARKDOWN_EXTENSIONS))
    elif ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
    else:
        return
    raise typer.Exit()


app.command()(render)
app.command()(rules)


def main() -> None:
    """Console script entry point."""
    app(prog_name="notemath")


__all__ = ["app", "main"]
