"""Public entry points for the math Markdown extension."""

from __future__ import annotations

from .markdown import MathExtension, makeExtension
from .renderer import MathRenderer, latex_to_mathml


__all__ = ["MathExtension", "MathRenderer", "latex_to_mathml", "makeExtension"]
