"""Markdown math syntax: ``$$...$$`` inline and ``$$$`` fenced blocks rendered as MathML."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version as _pkg_version

from notemath.adapters.markdown import MarkdownDocument, render_markdown, split_front_matter
from notemath.core.config import MathConfig
from notemath.core.exceptions import (
    MarkdownConversionError,
    MathConversionError,
    NotemathError,
    RuleOrderingError,
)
from notemath.core.rules import MarkdownRule, RuleChain, RuleRegistry
from notemath.extensions.math import MathExtension, MathRenderer, makeExtension
from notemath.version import get_version


try:
    __version__ = _pkg_version("notemath")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "MarkdownConversionError",
    "MarkdownDocument",
    "MarkdownRule",
    "MathConfig",
    "MathConversionError",
    "MathExtension",
    "MathRenderer",
    "NotemathError",
    "RuleChain",
    "RuleOrderingError",
    "RuleRegistry",
    "__version__",
    "get_version",
    "makeExtension",
    "render_markdown",
    "split_front_matter",
]
