"""Typer parameter types shared by the ``render`` and ``rules`` commands."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Annotated

import typer


MATH_PANEL = "Math"
MARKDOWN_PANEL = "Markdown Pipeline"
DIAGNOSTICS_PANEL = "Diagnostics"


class ErrorPolicy(str, Enum):
    """What ``render`` does with an expression latex2mathml rejects."""

    RAISE = "raise"
    MARKER = "marker"


def _extension_list(flag: str, short: str, verb: str) -> typer.models.OptionInfo:
    return typer.Option(
        flag,
        short,
        help=f"Markdown extension to {verb}. Repeat the option or separate names with commas.",
        show_default=False,
        rich_help_panel=MARKDOWN_PANEL,
    )


InputPathArgument = Annotated[
    Path,
    typer.Argument(
        metavar="NOTE",
        help="Markdown note containing $$ inline or $$$ block math.",
        exists=True,
        dir_okay=False,
        readable=True,
        resolve_path=True,
    ),
]

OutputPathOption = Annotated[
    Path | None,
    typer.Option("--output", "-o", help="Write the HTML fragment here instead of stdout."),
]

OnErrorOption = Annotated[
    ErrorPolicy,
    typer.Option(
        "--on-error",
        case_sensitive=False,
        help="'raise' stops on the first invalid expression, 'marker' replaces it and goes on.",
        rich_help_panel=MATH_PANEL,
    ),
]

FrontMatterOption = Annotated[
    bool,
    typer.Option(
        "--front-matter/--no-front-matter",
        help="Drop a leading YAML header instead of rendering it as Markdown.",
        rich_help_panel=MARKDOWN_PANEL,
    ),
]

MarkdownExtensionsOption = Annotated[
    list[str] | None, _extension_list("--enable-extension", "-x", "enable")
]

DisableMarkdownExtensionsOption = Annotated[
    list[str] | None, _extension_list("--disable-extension", "-d", "disable")
]

VerboseOption = Annotated[
    int,
    typer.Option(
        "--verbose",
        "-v",
        count=True,
        help="Report math counts and failures on stderr. Repeat for exception causes.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]

DebugOption = Annotated[
    bool,
    typer.Option(
        "--debug/--no-debug",
        help="Let conversion errors propagate with their traceback.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]

ListExtensionsOption = Annotated[
    bool,
    typer.Option(
        "--list-extensions",
        help="Print the default Markdown extensions and exit.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]

VersionOption = Annotated[
    bool,
    typer.Option("--version", help="Print the notemath version and exit."),
]
