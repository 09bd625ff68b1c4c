"""Custom exception hierarchy for the math rendering pipeline."""

from __future__ import annotations


class NotemathError(RuntimeError):
    """Base exception for notemath failures."""


class MathConversionError(NotemathError):
    """Raised when the math converter rejects an expression."""

    def __init__(self, message: str, *, source: str, display: bool) -> None:
        super().__init__(message)
        self.source = source
        self.display = display


class RuleOrderingError(NotemathError):
    """Raised when parser rule constraints cannot be satisfied."""


class MarkdownConversionError(NotemathError):
    """Raised when Markdown cannot be converted into HTML."""


def exception_messages(exc: BaseException) -> list[str]:
    """Return the collected message chain for an exception and its causes."""
    messages: list[str] = []
    visited: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in visited:
        visited.add(id(current))
        text = str(current).strip()
        if text:
            first_line = text.splitlines()[0].strip()
            if first_line:
                messages.append(first_line)
        current = current.__cause__ or current.__context__
    return messages


def exception_hint(exc: BaseException) -> str | None:
    """Return the most specific message available for an exception chain."""
    messages = exception_messages(exc)
    return messages[-1] if messages else None


__all__ = [
    "MarkdownConversionError",
    "MathConversionError",
    "NotemathError",
    "RuleOrderingError",
    "exception_hint",
    "exception_messages",
]
