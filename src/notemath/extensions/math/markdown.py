"""Markdown extension wiring ``$$`` inline and ``$$$`` block math."""

from __future__ import annotations

from typing import Any

from markdown import Markdown
from markdown.extensions import Extension

from notemath.core.config import MathConfig
from notemath.core.rules import MarkdownRule, RuleChain, RuleRegistry

from .block import MathBlockProcessor, MathInterruptProcessor
from .inline import MathInlineProcessor
from .renderer import MathRenderer, latex_to_mathml


INLINE_RULE = "math_inline"
BLOCK_RULE = "math_block"
MATHML_TAG = "math"


def build_rules(renderer: MathRenderer) -> RuleRegistry:
    """Declare the math parser rules against the host processor names."""
    registry = RuleRegistry()
    registry.register(
        MarkdownRule(
            name=INLINE_RULE,
            chain=RuleChain.INLINE,
            factory=lambda md: MathInlineProcessor(md, renderer),
            before=("escape",),
            after=("backtick",),
        )
    )
    registry.register(
        MarkdownRule(
            name=BLOCK_RULE,
            chain=RuleChain.BLOCK,
            factory=lambda md: MathBlockProcessor(md.parser, renderer),
            after=("quote",),
            alt=("paragraph", "reference", "blockquote", "list"),
            interrupt_factory=lambda md, **kwargs: MathInterruptProcessor(md.parser, **kwargs),
        )
    )
    return registry


class MathExtension(Extension):
    """Register the math processors and their MathML renderer."""

    def __init__(self, **kwargs: Any) -> None:
        self.config = {
            "on_error": [
                "raise",
                "Conversion failure policy: 'raise' or 'marker'.",
            ],
            "error_class": ["math-error", "CSS class applied to error markers."],
            "escape_dollar": [True, "Treat '\\$' as a backslash escape."],
            "converter": [
                latex_to_mathml,
                "Callable receiving (source, display) and returning markup.",
            ],
        }
        super().__init__(**kwargs)
        self.renderer: MathRenderer | None = None
        self.rules: RuleRegistry | None = None

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        options = self.getConfigs()
        config = MathConfig.from_mapping(
            {key: options[key] for key in ("on_error", "error_class", "escape_dollar")}
        )
        self.renderer = MathRenderer(options["converter"], config=config)
        self.rules = build_rules(self.renderer)
        self.rules.install(md)

        if config.escape_dollar and "$" not in md.ESCAPED_CHARS:
            md.ESCAPED_CHARS.append("$")

        # Inline math is phrasing content: a paragraph holding only "$$x$$"
        # must keep its <p> when the raw HTML placeholder is restored.
        if MATHML_TAG in md.block_level_elements:
            md.block_level_elements.remove(MATHML_TAG)

        md.notemath_rules = self.rules  # type: ignore[attr-defined]
        md.registerExtension(self)

    def reset(self) -> None:
        """Reset per-document counters before each conversion."""
        if self.renderer is not None:
            self.renderer.reset()


def makeExtension(  # noqa: N802 - Markdown expects this entry point name
    **kwargs: Any,
) -> MathExtension:  # pragma: no cover - entry point
    return MathExtension(**kwargs)


__all__ = [
    "BLOCK_RULE",
    "INLINE_RULE",
    "MATHML_TAG",
    "MathExtension",
    "build_rules",
    "makeExtension",
]
