"""Implementation of the ``notemath rules`` command."""

from __future__ import annotations

import typer

from notemath.adapters.markdown import describe_pipeline_rules, resolve_markdown_extensions

from .._options import DisableMarkdownExtensionsOption, MarkdownExtensionsOption
from ..presenter import present_rule_descriptions
from ..state import get_cli_state


def rules(
    ctx: typer.Context,
    enable_extensions: MarkdownExtensionsOption = None,
    disable_extensions: DisableMarkdownExtensionsOption = None,
) -> None:
    """Show where the math rules sit in the Markdown parser chains."""
    state = get_cli_state(ctx)
    extensions = resolve_markdown_extensions(enable_extensions, disable_extensions)
    present_rule_descriptions(state, describe_pipeline_rules(extensions))


__all__ = ["rules"]
