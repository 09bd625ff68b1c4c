"""Parser state objects lent to the math recognizers for a single parse.

Python-Markdown hands inline processors a flat ``data`` string and block
processors a list of blank-line separated chunks. The recognizers expect a
richer contract (cursor, line tables, nested-token skipping, token pushing),
so each invocation wraps the host data in a fresh :class:`InlineState` or
:class:`BlockState`. A state object belongs to exactly one parse and is
discarded afterwards; nothing is carried between invocations.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from markdown import util

from .source import SourceBuffer, Span


__all__ = [
    "DEFAULT_ESCAPABLE",
    "MATH_BLOCK",
    "MATH_INLINE",
    "BlockState",
    "InlineState",
    "MathToken",
]


MATH_INLINE = "math_inline"
MATH_BLOCK = "math_block"

# Python-Markdown's stock escapable characters plus the dollar sign.
DEFAULT_ESCAPABLE = frozenset("\\`*_{}[]()>#+-.!$")


@dataclass(slots=True)
class MathToken:
    """Token emitted by a recognizer and consumed by the renderer hooks."""

    kind: str
    markup: str
    content: str = ""
    block: bool = False
    map: tuple[int, int] | None = None


class InlineState:
    """Cursor over one run of inline text.

    ``pos_max`` is the inline scanning boundary. Characters accepted as
    literal text without emitting a token accumulate in ``pending``.
    """

    def __init__(
        self,
        src: str,
        pos: int = 0,
        pos_max: int | None = None,
        *,
        escapable: Iterable[str] = DEFAULT_ESCAPABLE,
    ) -> None:
        self.buffer = SourceBuffer(src)
        self.src = src
        self.pos = pos
        self.pos_max = len(src) if pos_max is None else pos_max
        self.pending = ""
        self.tokens: list[MathToken] = []
        self._escapable = frozenset(escapable)

    def push(self, kind: str, markup: str) -> MathToken:
        token = MathToken(kind=kind, markup=markup)
        self.tokens.append(token)
        return token

    def is_escaped(self, offset: int) -> bool:
        """Return True when the character at ``offset`` follows an odd run of backslashes."""
        char = self.buffer.char_at(offset)
        if char is None or char not in self._escapable:
            return False
        count = 0
        cursor = offset - 1
        while cursor >= 0 and self.src[cursor] == "\\":
            count += 1
            cursor -= 1
        return count % 2 == 1

    def skip_token(self) -> None:
        """Advance the cursor past one nested token.

        Stashed placeholders (code spans and other nodes the host resolved
        before us) and backslash escapes are atomic. Anything else is a single
        character. The cursor always moves forward by at least one position.
        """
        char = self.buffer.char_at(self.pos)
        if char == util.STX:
            closing = self.src.find(util.ETX, self.pos + 1, self.pos_max)
            if closing != -1:
                self.pos = closing + 1
                return
        elif char == "\\":
            following = self.buffer.char_at(self.pos + 1)
            escapable = following is not None and following in self._escapable
            if escapable and self.pos + 1 < self.pos_max:
                self.pos += 2
                return
        self.pos += 1


class BlockState:
    """Line-table view over a chunk of block source.

    ``b_marks``/``e_marks`` hold the start and end offsets of every line
    (newline excluded) and ``t_shift`` the number of leading space or tab
    characters. Indentation checks compare these character counts, so a tab
    counts as one, while :meth:`get_lines` expands tabs to four-column stops
    when stripping. ``blk_indent`` is the base indentation of the enclosing
    construct, in the same character units.
    """

    def __init__(self, src: str, *, blk_indent: int = 0) -> None:
        self.buffer = SourceBuffer(src)
        self.src = src
        self.b_marks: list[int] = []
        self.e_marks: list[int] = []
        self.t_shift: list[int] = []

        offset = 0
        for line in src.split("\n"):
            self.b_marks.append(offset)
            self.e_marks.append(offset + len(line))
            self.t_shift.append(len(line) - len(line.lstrip(" \t")))
            offset += len(line) + 1

        self.line_max = len(self.b_marks)
        self.blk_indent = blk_indent
        self.line = 0
        self.tokens: list[MathToken] = []

    def push(self, kind: str, markup: str) -> MathToken:
        token = MathToken(kind=kind, markup=markup, block=True)
        self.tokens.append(token)
        return token

    def line_span(self, line: int, *, with_indent: bool = False) -> Span:
        """Return the span of ``line``, starting after its indentation by default."""
        start = self.b_marks[line] if with_indent else self.b_marks[line] + self.t_shift[line]
        return Span(start, self.e_marks[line])

    def is_blank(self, line: int) -> bool:
        return self.b_marks[line] + self.t_shift[line] >= self.e_marks[line]

    def skip_spaces(self, pos: int) -> int:
        while pos < len(self.src) and self.src[pos] in " \t":
            pos += 1
        return pos

    def get_lines(self, begin: int, end: int, indent: int, keep_last_line: bool) -> str:
        """Join lines ``[begin, end)`` stripping up to ``indent`` columns from each."""
        if begin >= end:
            return ""

        chunks: list[str] = []
        for line in range(begin, end):
            first = self.b_marks[line]
            last = self.e_marks[line]
            column = 0
            while first < last and column < indent:
                char = self.src[first]
                if char == "\t":
                    column += 4 - column % 4
                elif char == " ":
                    column += 1
                else:
                    break
                first += 1

            text = self.src[first:last]
            if column > indent:
                # A tab overshot the requested indent; keep the remainder.
                text = " " * (column - indent) + text
            if line + 1 < end or keep_last_line:
                text += "\n"
            chunks.append(text)

        return "".join(chunks)
