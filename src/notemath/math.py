"""Public entry points for the math Markdown extension."""

from __future__ import annotations

from .extensions.math import MathExtension, MathRenderer, makeExtension


__all__ = ["MathExtension", "MathRenderer", "makeExtension"]
