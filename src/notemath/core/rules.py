"""Rule declaration and installation for the Markdown parser chains.

Extensions describe their parser rules as :class:`MarkdownRule` records instead
of hard-coding numeric priorities. Each rule names the host processors it must
run ``before`` or ``after`` and, for block rules, the host constructs it is
allowed to interrupt (``alt``).

Architecture

`Declaration layer`
: :class:`MarkdownRule` captures the chain, the factory building the processor,
  and the ordering constraints.

`Registry layer`
: :class:`RuleRegistry` collates rules per :class:`RuleChain` and orders them
  deterministically using their mutual before/after constraints.

`Installation layer`
: :meth:`RuleRegistry.install` resolves each rule against the host registry of
  a :class:`markdown.Markdown` instance, translating the symbolic constraints
  into a free priority slot via :func:`resolve_priority`.

Host processors are addressed by their registry names. Rule authors may use the
construct names of :data:`HOST_BLOCK_KINDS` in ``alt`` declarations; they are
expanded to the matching Python-Markdown block processors.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from markdown import Markdown, util

from .exceptions import RuleOrderingError


class RuleChain(Enum):
    """Parser chains a rule may join."""

    INLINE = "inline"
    """Inline patterns run over the text of each element."""

    BLOCK = "block"
    """Block processors run over blank-line separated chunks."""


HOST_BLOCK_KINDS: dict[str, tuple[str, ...]] = {
    "paragraph": ("paragraph",),
    "reference": ("reference",),
    "blockquote": ("quote",),
    "list": ("olist", "ulist"),
}
"""Block construct names mapped onto Python-Markdown processor names."""

INTERRUPT_SUFFIX = "_interrupt"

RuleFactory = Callable[[Markdown], Any]
InterruptFactory = Callable[..., Any]


@dataclass
class MarkdownRule:
    """Parser rule registered against one of the host chains."""

    name: str
    chain: RuleChain
    factory: RuleFactory
    before: tuple[str, ...] = ()
    after: tuple[str, ...] = ()
    alt: tuple[str, ...] = ()
    interrupt_factory: InterruptFactory | None = None
    priority: float | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        self.before = tuple(self.before)
        self.after = tuple(self.after)
        self.alt = tuple(self.alt)
        if not self.before and not self.after:
            msg = f"Rule '{self.name}' must declare at least one before/after anchor."
            raise RuleOrderingError(msg)
        if self.alt and self.chain is not RuleChain.BLOCK:
            msg = f"Rule '{self.name}' declares 'alt' but only block rules may interrupt."
            raise RuleOrderingError(msg)
        if self.alt and self.interrupt_factory is None:
            msg = f"Rule '{self.name}' declares 'alt' without an interrupt factory."
            raise RuleOrderingError(msg)

    def host_alternatives(self) -> tuple[str, ...]:
        """Expand ``alt`` construct names into host processor names."""
        names: list[str] = []
        for kind in self.alt:
            for host_name in HOST_BLOCK_KINDS.get(kind, (kind,)):
                if host_name not in names:
                    names.append(host_name)
        return tuple(names)


def host_registry(md: Markdown, chain: RuleChain) -> util.Registry[Any]:
    """Return the host registry backing ``chain``."""
    if chain is RuleChain.INLINE:
        return md.inlinePatterns
    return md.parser.blockprocessors


def resolve_priority(
    registry: util.Registry[Any],
    *,
    before: Iterable[str] = (),
    after: Iterable[str] = (),
) -> float:
    """Pick a free priority placing an item before/after the named entries.

    Higher priorities run first, so "before X" means a priority above X.
    Names absent from ``registry`` are ignored. The slot is the midpoint
    between the tightest bound and its nearest registered neighbour.
    """
    priorities = {item.name: item.priority for item in registry._priority}  # noqa: SLF001
    floor = max((priorities[name] for name in before if name in priorities), default=None)
    ceiling = min((priorities[name] for name in after if name in priorities), default=None)

    if floor is None and ceiling is None:
        anchors = ", ".join([*before, *after]) or "<none>"
        raise RuleOrderingError(f"None of the anchors are registered: {anchors}.")
    if floor is not None and ceiling is not None and floor >= ceiling:
        raise RuleOrderingError(
            f"Cannot place a rule above priority {floor} and below priority {ceiling}."
        )

    taken = sorted(set(priorities.values()))
    if floor is not None:
        neighbour = min((value for value in taken if value > floor), default=floor + 10)
        if ceiling is not None:
            neighbour = min(neighbour, ceiling)
        return (floor + neighbour) / 2

    assert ceiling is not None
    neighbour = max((value for value in taken if value < ceiling), default=ceiling - 10)
    return (ceiling + neighbour) / 2


class RuleRegistry:
    """Container used to gather parser rules before installation."""

    def __init__(self) -> None:
        self._rules: dict[RuleChain, list[MarkdownRule]] = {}
        self._interrupts: dict[str, float] = {}

    def register(self, rule: MarkdownRule) -> None:
        """Register a rule, keeping each chain ordered."""
        bucket = self._rules.setdefault(rule.chain, [])
        if any(existing.name == rule.name for existing in bucket):
            raise RuleOrderingError(f"Rule '{rule.name}' is already registered.")
        bucket.append(rule)
        bucket[:] = self._sort_rules(bucket)

    def rules_for_chain(self, chain: RuleChain) -> tuple[MarkdownRule, ...]:
        """Return the ordered rules for the requested chain."""
        return tuple(self._rules.get(chain, ()))

    def __iter__(self) -> Iterator[MarkdownRule]:
        for chain in RuleChain:
            yield from self._rules.get(chain, ())

    def install(self, md: Markdown) -> None:
        """Register every rule's processor with the host pipeline.

        Block rules with ``alt`` constructs also get a companion processor that
        splits those constructs where a line would open the rule.
        """
        for chain in RuleChain:
            registry = host_registry(md, chain)
            for rule in self.rules_for_chain(chain):
                rule.priority = resolve_priority(registry, before=rule.before, after=rule.after)
                registry.register(rule.factory(md), rule.name, rule.priority)
                if rule.alt:
                    self._install_interrupt(md, registry, rule)

    def describe(self) -> list[dict[str, object]]:
        """Return a serialisable snapshot of the registered rules."""
        entries: list[dict[str, object]] = []
        for chain in RuleChain:
            for order, rule in enumerate(self.rules_for_chain(chain)):
                entries.append(
                    {
                        "chain": chain.value,
                        "name": rule.name,
                        "priority": rule.priority,
                        "before": list(rule.before),
                        "after": list(rule.after),
                        "alt": list(rule.alt),
                        "interrupt_priority": self._interrupts.get(rule.name),
                        "order": order,
                    }
                )
        return entries

    def _install_interrupt(
        self, md: Markdown, registry: util.Registry[Any], rule: MarkdownRule
    ) -> None:
        alternatives = rule.host_alternatives()
        present = [name for name in alternatives if name in registry]
        if not present:
            raise RuleOrderingError(
                f"Rule '{rule.name}' cannot interrupt any of: {', '.join(alternatives)}."
            )
        name = f"{rule.name}{INTERRUPT_SUFFIX}"
        priority = resolve_priority(registry, before=present)
        assert rule.interrupt_factory is not None
        processor = rule.interrupt_factory(md, name=name, interrupts=present, skip=(rule.name,))
        registry.register(processor, name, priority)
        self._interrupts[rule.name] = priority

    def _sort_rules(self, rules: Sequence[MarkdownRule]) -> list[MarkdownRule]:
        """Return rules ordered deterministically using before/after constraints."""
        if len(rules) <= 1:
            return list(rules)

        name_to_index = {rule.name: index for index, rule in enumerate(rules)}
        adjacency: dict[int, set[int]] = {index: set() for index in range(len(rules))}
        indegree: dict[int, int] = dict.fromkeys(range(len(rules)), 0)

        def _add_edge(source: int, target: int) -> None:
            if target in adjacency[source]:
                return
            adjacency[source].add(target)
            indegree[target] += 1

        for current_index, rule in enumerate(rules):
            for target_name in rule.before:
                target_index = name_to_index.get(target_name)
                if target_index is not None:
                    _add_edge(current_index, target_index)
            for target_name in rule.after:
                target_index = name_to_index.get(target_name)
                if target_index is not None:
                    _add_edge(target_index, current_index)

        def _key(index: int) -> tuple[str, int]:
            return (rules[index].name, index)

        queue: deque[int] = deque(
            sorted((index for index, count in indegree.items() if count == 0), key=_key)
        )
        ordered: list[int] = []

        while queue:
            current = queue.popleft()
            ordered.append(current)
            for neighbour in sorted(adjacency[current], key=_key):
                indegree[neighbour] -= 1
                if indegree[neighbour] == 0:
                    queue.append(neighbour)
            queue = deque(sorted(queue, key=_key))

        if len(ordered) != len(rules):
            cycle_names = sorted(
                rule.name for index, rule in enumerate(rules) if index not in ordered
            )
            raise RuleOrderingError(
                "Cyclic parser rule dependencies detected: " + ", ".join(cycle_names)
            )

        return [rules[index] for index in ordered]


__all__ = [
    "HOST_BLOCK_KINDS",
    "INTERRUPT_SUFFIX",
    "MarkdownRule",
    "RuleChain",
    "RuleRegistry",
    "host_registry",
    "resolve_priority",
]
