"""Block ``$$$`` math fences.

Two forms are recognised. ``$$$ expr $$$`` opens and closes on one line.
Otherwise the fence opens a block that runs until a closing ``$$$`` line.
The closing line must be indented less than four characters past the
block base (a tab counts as one character).
An unterminated block is closed implicitly at the end of the available
range, or at the first non-blank line indented less than the block base.
"""

from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass
from xml.etree import ElementTree

from markdown.blockparser import BlockParser
from markdown.blockprocessors import BlockProcessor

from notemath.core.source import Span
from notemath.core.state import MATH_BLOCK, BlockState

from .delimiters import BLOCK_FENCE
from .renderer import MathRenderer


@dataclass(frozen=True, slots=True)
class BlockScanResult:
    """Outcome of scanning a fence starting at a given line."""

    next_line: int
    closed: bool
    content: str


def _fence_offset(state: BlockState, line: int) -> int | None:
    """Return the offset right after an opening fence on ``line``, if any."""
    pos = state.b_marks[line] + state.t_shift[line]
    if not state.buffer.startswith(BLOCK_FENCE, pos, state.e_marks[line]):
        return None
    return pos + len(BLOCK_FENCE)


def scan_math_block(state: BlockState, start_line: int, end_line: int) -> BlockScanResult | None:
    """Scan the fence opening at ``start_line`` without touching ``state``.

    Returns ``None`` when ``start_line`` does not open a fence.
    """
    pos = _fence_offset(state, start_line)
    if pos is None:
        return None

    first_fragment = state.buffer.slice(Span(pos, state.e_marks[start_line]))
    if first_fragment.strip().endswith(BLOCK_FENCE):
        inner = first_fragment.strip()[: -len(BLOCK_FENCE)]
        return BlockScanResult(next_line=start_line + 1, closed=True, content=inner.strip())

    closed = False
    last_fragment = ""
    next_line = start_line
    while True:
        next_line += 1
        if next_line >= end_line:
            break

        line = state.line_span(next_line)
        if len(line) and state.t_shift[next_line] < state.blk_indent:
            # The enclosing construct ended.
            break

        if not state.buffer.slice(line).strip().endswith(BLOCK_FENCE):
            continue
        if state.t_shift[next_line] - state.blk_indent >= 4:
            continue

        fence_at = state.buffer.rfind(BLOCK_FENCE, line.start, line.end)
        tail = state.skip_spaces(fence_at + len(BLOCK_FENCE))
        if tail < line.end:
            continue

        last_fragment = state.buffer.slice(Span(line.start, fence_at))
        closed = True
        break

    resume = next_line + 1 if closed else next_line
    indent = state.t_shift[start_line]
    content = (
        (f"{first_fragment}\n" if first_fragment.strip() else "")
        + state.get_lines(start_line + 1, next_line, indent, True)
        + (last_fragment if last_fragment.strip() else "")
    )
    return BlockScanResult(next_line=resume, closed=closed, content=content)


def math_block(state: BlockState, start_line: int, end_line: int, silent: bool) -> bool:
    """Block rule: push a ``math_block`` token for a fence at ``start_line``.

    In ``silent`` mode only the opening fence is checked, so competing rules
    can check whether a line would start a math block.
    """
    if _fence_offset(state, start_line) is None:
        return False
    if silent:
        return True

    result = scan_math_block(state, start_line, end_line)
    if result is None:  # pragma: no cover - guarded by _fence_offset
        return False

    state.line = result.next_line
    token = state.push(MATH_BLOCK, BLOCK_FENCE)
    token.content = result.content
    token.map = (start_line, result.next_line - 1)
    return True


def _append_raw(processor: BlockProcessor, parent: ElementTree.Element, placeholder: str) -> None:
    """Attach a raw HTML placeholder after the last child of ``parent``."""
    sibling = processor.lastChild(parent)
    if sibling is not None:
        if sibling.tail and sibling.tail.strip():
            sibling.tail = f"{sibling.tail}\n{placeholder}"
        else:
            sibling.tail = f"\n{placeholder}"
    elif parent.text and parent.text.strip():
        parent.text = f"{parent.text}\n{placeholder}"
    else:
        parent.text = placeholder


class MathBlockProcessor(BlockProcessor):
    """Bridge :func:`math_block` onto Python-Markdown's block parser.

    The fence may span several blank-line separated chunks, so the remaining
    chunks are rejoined into one line table, scanned, and the unconsumed
    lines are handed back to the parser.
    """

    def __init__(self, parser: BlockParser, renderer: MathRenderer) -> None:
        super().__init__(parser)
        self.renderer = renderer

    def test(self, parent: ElementTree.Element, block: str) -> bool:
        state = BlockState(block)
        return math_block(state, 0, state.line_max, silent=True)

    def run(self, parent: ElementTree.Element, blocks: list[str]) -> bool | None:
        state = BlockState("\n\n".join(blocks))
        if not math_block(state, 0, state.line_max, silent=False):
            return False

        md = self.parser.md
        markup = self.renderer.render(state.tokens[-1], getattr(md, "notemath_emitter", None))
        _append_raw(self, parent, md.htmlStash.store(markup))

        remainder = ""
        if state.line < state.line_max:
            remainder = state.src[state.b_marks[state.line] :].lstrip("\n")
        blocks[:] = remainder.split("\n\n") if remainder else []
        return None


class MathInterruptProcessor(BlockProcessor):
    """Cut a block short where one of its later lines opens a math fence.

    Only blocks claimed by one of the ``interrupts`` processors are split.
    The lines before the fence are parsed as their own block. The fence and
    everything after it go back to the parser as the next block.
    """

    def __init__(
        self,
        parser: BlockParser,
        *,
        name: str,
        interrupts: Collection[str],
        skip: Collection[str] = (),
    ) -> None:
        super().__init__(parser)
        self.name = name
        self.interrupts = frozenset(interrupts)
        self.skip = frozenset(skip)

    def test(self, parent: ElementTree.Element, block: str) -> bool:
        if self._split_line(block) is None:
            return False
        return self._head_kind(parent, block) in self.interrupts

    def run(self, parent: ElementTree.Element, blocks: list[str]) -> None:
        block = blocks.pop(0)
        line = self._split_line(block)
        if line is None:  # pragma: no cover - guarded by test()
            blocks.insert(0, block)
            return

        state = BlockState(block)
        before = block[: state.b_marks[line] - 1]
        after = block[state.b_marks[line] :]
        self.parser.parseBlocks(parent, [before])
        blocks.insert(0, after)

    def _split_line(self, block: str) -> int | None:
        state = BlockState(block)
        if math_block(state, 0, state.line_max, silent=True):
            return None
        for line in range(1, state.line_max):
            if state.t_shift[line] - state.blk_indent >= 4:
                continue
            if math_block(state, line, state.line_max, silent=True):
                return line
        return None

    def _head_kind(self, parent: ElementTree.Element, block: str) -> str | None:
        """Return the name of the processor that would claim ``block`` after us."""
        registry = self.parser.blockprocessors
        reached = False
        entries = registry._priority  # noqa: SLF001
        for item in sorted(entries, key=lambda entry: entry.priority, reverse=True):
            if item.name == self.name:
                reached = True
                continue
            if not reached or item.name in self.skip:
                continue
            if registry[item.name].test(parent, block):
                return item.name
        return None


__all__ = [
    "BlockScanResult",
    "MathBlockProcessor",
    "MathInterruptProcessor",
    "math_block",
    "scan_math_block",
]
