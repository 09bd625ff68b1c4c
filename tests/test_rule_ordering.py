from __future__ import annotations

import markdown
from markdown.blockprocessors import BlockProcessor
import pytest

from notemath.core.exceptions import RuleOrderingError
from notemath.core.rules import (
    MarkdownRule,
    RuleChain,
    RuleRegistry,
    host_registry,
    resolve_priority,
)
from notemath.extensions.math import MathExtension


def _noop(md):
    return BlockProcessor(md.parser)


def test_rules_sorted_by_constraints() -> None:
    registry = RuleRegistry()
    registry.register(MarkdownRule(name="b", chain=RuleChain.BLOCK, factory=_noop, after=("a",)))
    registry.register(MarkdownRule(name="a", chain=RuleChain.BLOCK, factory=_noop, after=("x",)))
    registry.register(
        MarkdownRule(name="c", chain=RuleChain.BLOCK, factory=_noop, before=("a",))
    )

    names = [rule.name for rule in registry.rules_for_chain(RuleChain.BLOCK)]
    assert names == ["c", "a", "b"]


def test_cycle_is_reported() -> None:
    registry = RuleRegistry()
    registry.register(MarkdownRule(name="a", chain=RuleChain.BLOCK, factory=_noop, before=("b",)))

    with pytest.raises(RuleOrderingError, match="Cyclic parser rule dependencies"):
        registry.register(
            MarkdownRule(name="b", chain=RuleChain.BLOCK, factory=_noop, before=("a",))
        )


def test_duplicate_rule_name_rejected() -> None:
    registry = RuleRegistry()
    registry.register(MarkdownRule(name="a", chain=RuleChain.BLOCK, factory=_noop, after=("x",)))

    with pytest.raises(RuleOrderingError, match="already registered"):
        registry.register(
            MarkdownRule(name="a", chain=RuleChain.BLOCK, factory=_noop, after=("y",))
        )


def test_rule_requires_anchor() -> None:
    with pytest.raises(RuleOrderingError, match="at least one"):
        MarkdownRule(name="a", chain=RuleChain.INLINE, factory=_noop)


def test_alt_only_allowed_on_block_rules() -> None:
    with pytest.raises(RuleOrderingError, match="only block rules"):
        MarkdownRule(
            name="a",
            chain=RuleChain.INLINE,
            factory=_noop,
            after=("backtick",),
            alt=("paragraph",),
            interrupt_factory=_noop,
        )


def test_alt_requires_interrupt_factory() -> None:
    with pytest.raises(RuleOrderingError, match="interrupt factory"):
        MarkdownRule(
            name="a", chain=RuleChain.BLOCK, factory=_noop, after=("quote",), alt=("paragraph",)
        )


def test_host_alternatives_expand_construct_names() -> None:
    rule = MarkdownRule(
        name="a",
        chain=RuleChain.BLOCK,
        factory=_noop,
        after=("quote",),
        alt=("paragraph", "list", "blockquote"),
        interrupt_factory=_noop,
    )

    assert rule.host_alternatives() == ("paragraph", "olist", "ulist", "quote")


def test_resolve_priority_between_anchors() -> None:
    md = markdown.Markdown()

    assert resolve_priority(md.inlinePatterns, before=("escape",), after=("backtick",)) == 185
    assert resolve_priority(md.parser.blockprocessors, after=("quote",)) == 17.5
    assert resolve_priority(md.parser.blockprocessors, before=("olist", "paragraph")) == 45


def test_resolve_priority_ignores_missing_names() -> None:
    md = markdown.Markdown()

    assert resolve_priority(md.parser.blockprocessors, after=("quote", "nope")) == 17.5


def test_resolve_priority_requires_a_known_anchor() -> None:
    md = markdown.Markdown()

    with pytest.raises(RuleOrderingError, match="None of the anchors"):
        resolve_priority(md.parser.blockprocessors, after=("missing",))


def test_resolve_priority_rejects_empty_interval() -> None:
    md = markdown.Markdown()

    with pytest.raises(RuleOrderingError, match="Cannot place"):
        resolve_priority(md.parser.blockprocessors, before=("hr",), after=("quote",))


def test_math_extension_installs_rules() -> None:
    md = markdown.Markdown(extensions=[MathExtension()])

    inline = host_registry(md, RuleChain.INLINE)
    blocks = host_registry(md, RuleChain.BLOCK)
    assert "math_inline" in inline
    assert "math_block" in blocks
    assert "math_block_interrupt" in blocks

    priorities = {item.name: item.priority for item in blocks._priority}
    assert priorities["math_block"] == 17.5
    assert priorities["math_block_interrupt"] == 45


def test_describe_reports_installed_priorities() -> None:
    md = markdown.Markdown(extensions=[MathExtension()])

    entries = {entry["name"]: entry for entry in md.notemath_rules.describe()}

    assert entries["math_inline"]["chain"] == "inline"
    assert entries["math_inline"]["priority"] == 185
    assert entries["math_inline"]["interrupt_priority"] is None
    assert entries["math_block"]["chain"] == "block"
    assert entries["math_block"]["after"] == ["quote"]
    assert entries["math_block"]["alt"] == ["paragraph", "reference", "blockquote", "list"]
    assert entries["math_block"]["interrupt_priority"] == 45


def test_install_fails_when_nothing_can_be_interrupted() -> None:
    md = markdown.Markdown()
    registry = RuleRegistry()
    registry.register(
        MarkdownRule(
            name="fence",
            chain=RuleChain.BLOCK,
            factory=_noop,
            after=("quote",),
            alt=("definition",),
            interrupt_factory=lambda md, **_: BlockProcessor(md.parser),
        )
    )

    with pytest.raises(RuleOrderingError, match="cannot interrupt"):
        registry.install(md)
