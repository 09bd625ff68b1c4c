"""Renderer hooks converting math tokens into MathML markup."""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable
from html import escape
import logging

import latex2mathml.converter

from notemath.core.config import MathConfig
from notemath.core.diagnostics import MATH_CONVERSION_FAILED, DiagnosticEmitter, ensure_emitter
from notemath.core.exceptions import MathConversionError
from notemath.core.state import MATH_BLOCK, MATH_INLINE, MathToken


logger = logging.getLogger(__name__)

MathConverter = Callable[[str, bool], str]
RenderHook = Callable[[MathToken, DiagnosticEmitter | None], str]


def latex_to_mathml(source: str, display: bool) -> str:
    """Convert a LaTeX expression into a ``<math>`` element string."""
    return latex2mathml.converter.convert(source, display="block" if display else "inline")


class MathRenderer:
    """Map ``math_inline``/``math_block`` tokens onto converter output.

    The returned markup is raw HTML; callers insert it without escaping.
    """

    def __init__(
        self,
        converter: MathConverter = latex_to_mathml,
        *,
        config: MathConfig | None = None,
        emitter: DiagnosticEmitter | None = None,
    ) -> None:
        self.converter = converter
        self.config = config or MathConfig()
        self.emitter = emitter
        self.stats: Counter[str] = Counter()
        self.rules: dict[str, RenderHook] = {
            MATH_INLINE: self.render_math_inline,
            MATH_BLOCK: self.render_math_block,
        }

    def render(self, token: MathToken, emitter: DiagnosticEmitter | None = None) -> str:
        try:
            hook = self.rules[token.kind]
        except KeyError as exc:
            raise ValueError(f"No math renderer registered for token '{token.kind}'.") from exc
        return hook(token, emitter)

    def render_math_inline(
        self, token: MathToken, emitter: DiagnosticEmitter | None = None
    ) -> str:
        self.stats["inline"] += 1
        return self._convert(token, display=False, emitter=emitter)

    def render_math_block(
        self, token: MathToken, emitter: DiagnosticEmitter | None = None
    ) -> str:
        self.stats["block"] += 1
        return f"{self._convert(token, display=True, emitter=emitter)}\n"

    def reset(self) -> None:
        self.stats.clear()

    def _convert(
        self, token: MathToken, *, display: bool, emitter: DiagnosticEmitter | None
    ) -> str:
        try:
            return self.converter(token.content, display)
        except Exception as exc:  # noqa: BLE001 - converter failures have no common base
            mode = "display" if display else "inline"
            error = MathConversionError(
                f"Failed to convert {mode} math expression {token.content!r}: "
                f"{type(exc).__name__}",
                source=token.content,
                display=display,
            )
            if self.config.on_error == "raise":
                raise error from exc

            active = ensure_emitter(emitter or self.emitter)
            active.warning(str(error), exc)
            active.event(
                MATH_CONVERSION_FAILED,
                {"source": token.content, "display": display, "reason": type(exc).__name__},
            )
            self.stats["errors"] += 1
            return self._error_marker(token, display=display, reason=type(exc).__name__)

    def _error_marker(self, token: MathToken, *, display: bool, reason: str) -> str:
        tag = "div" if display else "span"
        logger.debug("Substituting %s error marker for %r", tag, token.content)
        return (
            f'<{tag} class="{escape(self.config.error_class)}" '
            f'title="{escape(reason)}">{escape(token.content, quote=False)}</{tag}>'
        )


__all__ = ["MathConverter", "MathRenderer", "latex_to_mathml"]
