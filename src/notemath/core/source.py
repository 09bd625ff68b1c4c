"""Immutable source buffer and cursor helpers shared by the math scanners.

The recognizers never slice raw strings directly. They address the text
through :class:`SourceBuffer`, which treats every out-of-range lookup as a
boundary instead of raising, and through :class:`Span`, a half-open
``[start, end)`` range over the buffer.
"""

from __future__ import annotations

from dataclasses import dataclass


__all__ = [
    "WHITESPACE_CODEPOINTS",
    "SourceBuffer",
    "Span",
    "is_whitespace",
]


WHITESPACE_CODEPOINTS = frozenset(
    {
        0x09,
        0x0A,
        0x0B,
        0x0C,
        0x0D,
        0x20,
        0xA0,
        0x1680,
        *range(0x2000, 0x200B),
        0x202F,
        0x205F,
        0x3000,
    }
)


def is_whitespace(char: str | None) -> bool:
    """Return True for whitespace characters and for document boundaries.

    ``None`` stands for a position outside the buffer (start or end of line)
    and is treated as whitespace.
    """
    if char is None:
        return True
    return ord(char) in WHITESPACE_CODEPOINTS


@dataclass(frozen=True, slots=True)
class Span:
    """Half-open range ``[start, end)`` over a :class:`SourceBuffer`."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid span [{self.start}, {self.end}).")

    def __len__(self) -> int:
        return self.end - self.start

    def shrink(self, head: int = 0, tail: int = 0) -> Span:
        """Return the span with ``head`` and ``tail`` characters removed."""
        return Span(self.start + head, self.end - tail)


@dataclass(frozen=True, slots=True)
class SourceBuffer:
    """Read-only view of the text handed over by the host pipeline."""

    text: str

    def __len__(self) -> int:
        return len(self.text)

    def char_at(self, offset: int) -> str | None:
        """Return the character at ``offset`` or ``None`` outside the buffer."""
        if 0 <= offset < len(self.text):
            return self.text[offset]
        return None

    def startswith(self, marker: str, offset: int, limit: int | None = None) -> bool:
        """Return whether ``marker`` starts at ``offset`` and ends before ``limit``."""
        end = offset + len(marker)
        if offset < 0 or end > (len(self.text) if limit is None else limit):
            return False
        return self.text.startswith(marker, offset)

    def slice(self, span: Span) -> str:
        return self.text[span.start : span.end]

    def rfind(self, marker: str, start: int, end: int) -> int:
        """Return the last offset of ``marker`` inside ``[start, end)`` or ``-1``."""
        return self.text.rfind(marker, start, end)
