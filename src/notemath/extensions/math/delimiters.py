"""Delimiter run eligibility for the math markers."""

from __future__ import annotations

from dataclasses import dataclass

from notemath.core.source import is_whitespace
from notemath.core.state import InlineState


INLINE_DELIMITER = "$$"
BLOCK_FENCE = "$$$"


@dataclass(frozen=True, slots=True)
class DelimiterRun:
    """Fixed-length marker at ``start`` with its open/close eligibility."""

    start: int
    length: int
    can_open: bool
    can_close: bool


def scan_delims(state: InlineState, start: int, length: int) -> DelimiterRun:
    """Classify the delimiter of ``length`` characters found at ``start``.

    A run can open when the character right after it is not whitespace and
    can close when the character right before it is not whitespace. Line
    boundaries (``start == 0`` or the end of the inline range) count as
    whitespace.
    """
    after = start + length
    last_char = state.buffer.char_at(start - 1) if start > 0 else None
    next_char = state.buffer.char_at(after) if after < state.pos_max else None
    return DelimiterRun(
        start=start,
        length=length,
        can_open=not is_whitespace(next_char),
        can_close=not is_whitespace(last_char),
    )


__all__ = ["BLOCK_FENCE", "INLINE_DELIMITER", "DelimiterRun", "scan_delims"]
