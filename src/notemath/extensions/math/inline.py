"""Inline ``$$...$$`` math recognition."""

from __future__ import annotations

from html import unescape
import re
from xml.etree import ElementTree

from markdown import Markdown, util
from markdown.inlinepatterns import InlineProcessor

from notemath.core.source import Span
from notemath.core.state import MATH_INLINE, InlineState

from .delimiters import INLINE_DELIMITER, scan_delims
from .renderer import MathRenderer


INLINE_MATH_PATTERN = r"\$\$"


def math_inline(state: InlineState, silent: bool) -> bool:
    """Consume a ``$$...$$`` span at the cursor.

    Validation-only (``silent``) calls always fail: inline math is never
    matched without being emitted.

    A ``$$`` that cannot open is accepted as literal text and appended to
    ``state.pending``. When no closing ``$$`` is found before ``pos_max`` the
    cursor is rolled back and the call fails.
    """
    start = state.pos
    pos_max = state.pos_max
    width = len(INLINE_DELIMITER)

    if not state.buffer.startswith(INLINE_DELIMITER, start, pos_max):
        return False
    if silent:
        return False

    opener = scan_delims(state, start, width)
    if not opener.can_open:
        state.pos += opener.length
        state.pending += state.buffer.slice(Span(start, state.pos))
        return True

    state.pos = start + width
    found = False
    while state.pos < pos_max:
        if state.buffer.startswith(INLINE_DELIMITER, state.pos, pos_max):
            if scan_delims(state, state.pos, width).can_close:
                found = True
                break
        state.skip_token()

    if not found:
        state.pos = start
        return False

    closing = state.pos
    token = state.push(MATH_INLINE, INLINE_DELIMITER)
    token.content = state.buffer.slice(Span(start, closing + width).shrink(width, width))
    state.pos = closing + width
    state.pos_max = pos_max
    return True


class MathInlineProcessor(InlineProcessor):
    """Bridge :func:`math_inline` onto Python-Markdown's inline pipeline."""

    def __init__(self, md: Markdown, renderer: MathRenderer) -> None:
        super().__init__(INLINE_MATH_PATTERN, md)
        self.renderer = renderer

    def handleMatch(  # type: ignore[override]  # noqa: N802 - Markdown API requires camelCase
        self,
        match: re.Match[str],
        data: str,
    ) -> tuple[ElementTree.Element | str | None, int | None, int | None]:
        start = match.start(0)
        state = InlineState(data, start, escapable=self.md.ESCAPED_CHARS)
        if state.is_escaped(start) or not math_inline(state, silent=False):
            # Step over a single "$" so the next scan may start inside this run.
            return None, start, start + 1

        if not state.tokens:
            # Literal "$$": step over it and leave the text untouched.
            return None, start, state.pos

        token = state.tokens[-1]
        token.content = self._restore_placeholders(token.content)
        markup = self.renderer.render(token, getattr(self.md, "notemath_emitter", None))
        return self.md.htmlStash.store(markup), start, state.pos

    def _restore_placeholders(self, content: str) -> str:
        """Put back the source of code spans the host stashed before us."""
        if util.INLINE_PLACEHOLDER_PREFIX not in content:
            return content
        stash = getattr(self.md.treeprocessors["inline"], "stashed_nodes", {})

        def _replace(match: re.Match[str]) -> str:
            node = stash.get(match.group(1))
            if isinstance(node, str):
                return node
            if node is not None and node.tag == "code":
                return f"`{unescape(node.text or '')}`"
            return match.group(0)

        return util.INLINE_PLACEHOLDER_RE.sub(_replace, content)


__all__ = ["INLINE_MATH_PATTERN", "MathInlineProcessor", "math_inline"]
