"""CLI command implementations exposed via `notemath.ui.cli`.

Re-exports the Typer command functions defined in the sibling modules so they
can be imported using dotted paths (e.g. ``notemath.ui.cli.commands.render``).
"""

from __future__ import annotations

from .render import render
from .rules import rules


__all__ = ["render", "rules"]
