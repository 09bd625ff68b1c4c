"""Markdown conversion utilities for notemath."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
import re
from threading import Lock
from typing import Any

import markdown
import yaml

from notemath.core.diagnostics import MARKDOWN_RENDERED, DiagnosticEmitter, ensure_emitter
from notemath.core.exceptions import MarkdownConversionError, MathConversionError
from notemath.extensions.math import MathExtension


__all__ = [
    "DEFAULT_MARKDOWN_EXTENSIONS",
    "MATH_EXTENSION",
    "MarkdownConversionError",
    "MarkdownDocument",
    "deduplicate_markdown_extensions",
    "describe_pipeline_rules",
    "normalize_markdown_extensions",
    "render_markdown",
    "resolve_markdown_extensions",
    "split_front_matter",
]


MATH_EXTENSION = "notemath.math:MathExtension"

DEFAULT_MARKDOWN_EXTENSIONS = [
    "pymdownx.superfences",
    "pymdownx.tilde",
    "pymdownx.tasklist",
    "tables",
    MATH_EXTENSION,
]


@dataclass(slots=True)
class MarkdownDocument:
    """Result of converting Markdown into HTML."""

    html: str
    front_matter: dict[str, Any] = field(default_factory=dict)
    math: dict[str, int] = field(default_factory=dict)


class _MarkdownCacheEntry:
    __slots__ = ("lock", "processor")

    def __init__(self, processor: Any) -> None:
        self.processor = processor
        self.lock = Lock()


_MARKDOWN_CACHE: dict[
    tuple[tuple[str, ...], tuple[tuple[str, Any], ...]],
    _MarkdownCacheEntry,
] = {}
_MARKDOWN_CACHE_GUARD = Lock()


def resolve_markdown_extensions(
    requested: Iterable[str] | None,
    disabled: Iterable[str] | None,
) -> list[str]:
    """Return the active Markdown extension list after applying overrides."""
    enabled = normalize_markdown_extensions(requested)
    disabled_normalized = {
        extension.lower() for extension in normalize_markdown_extensions(disabled)
    }

    combined = deduplicate_markdown_extensions(list(DEFAULT_MARKDOWN_EXTENSIONS) + enabled)

    if not disabled_normalized:
        return combined

    return [extension for extension in combined if extension.lower() not in disabled_normalized]


def deduplicate_markdown_extensions(values: Iterable[str]) -> list[str]:
    """Remove duplicate extensions while preserving order and case."""
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        if not isinstance(value, str):
            continue
        key = value.lower()
        if key in seen:
            continue
        seen.add(key)
        result.append(value)
    return result


def normalize_markdown_extensions(
    values: Iterable[str] | str | None,
) -> list[str]:
    """Normalise extension names from CLI-friendly strings into a flat list."""
    if values is None:
        return []

    if isinstance(values, str):
        candidates: Iterable[str] = [values]
    else:
        candidates = values

    normalized: list[str] = []
    for value in candidates:
        if not isinstance(value, str):
            continue
        chunks = re.split(r"[,\s\x00]+", value)
        normalized.extend(chunk for chunk in chunks if chunk)
    return normalized


def render_markdown(
    source: str,
    extensions: Sequence[str] | None = None,
    *,
    math_config: Mapping[str, Any] | None = None,
    emitter: DiagnosticEmitter | None = None,
    front_matter: bool = False,
) -> MarkdownDocument:
    """Convert Markdown source into HTML.

    The source is rendered as-is by default, so a leading ``---`` line is a
    thematic break. With ``front_matter`` enabled a leading YAML header is
    split off first and returned as :attr:`MarkdownDocument.front_matter`.

    Math conversion failures raised under the ``"raise"`` policy propagate
    unchanged. Any other failure is wrapped in :class:`MarkdownConversionError`.
    """
    metadata: dict[str, Any] = {}
    markdown_body = source
    if front_matter:
        metadata, markdown_body = split_front_matter(source)

    active_extensions = list(DEFAULT_MARKDOWN_EXTENSIONS if extensions is None else extensions)
    extensions_key = tuple(active_extensions)
    config_key = tuple(sorted((math_config or {}).items()))

    entry = _resolve_markdown_entry(extensions_key, config_key)
    active_emitter = ensure_emitter(emitter)

    try:
        with entry.lock:
            processor = entry.processor
            processor.reset()
            processor.notemath_emitter = active_emitter
            try:
                html = processor.convert(markdown_body)
            finally:
                processor.notemath_emitter = None
            stats = _math_stats(processor)
    except (MarkdownConversionError, MathConversionError):
        raise
    except Exception as exc:  # pragma: no cover - library-controlled
        raise MarkdownConversionError(f"Failed to convert Markdown source: {exc}") from exc

    if stats:
        active_emitter.event(MARKDOWN_RENDERED, stats)
    return MarkdownDocument(html=html, front_matter=metadata, math=stats)


def describe_pipeline_rules(extensions: Sequence[str] | None = None) -> list[dict[str, object]]:
    """Return the resolved parser rules for the given extension list."""
    active_extensions = list(DEFAULT_MARKDOWN_EXTENSIONS if extensions is None else extensions)
    entry = _resolve_markdown_entry(tuple(active_extensions), ())
    rules = getattr(entry.processor, "notemath_rules", None)
    if rules is None:
        return []
    return rules.describe()


def split_front_matter(source: str) -> tuple[dict[str, Any], str]:
    """Split YAML front matter from Markdown content, returning metadata and body."""
    candidate = source.lstrip("\ufeff")
    prefix_len = len(source) - len(candidate)
    lines = candidate.splitlines()
    if not lines or lines[0].strip() != "---":
        return {}, source

    front_matter_lines: list[str] = []
    closing_index: int | None = None
    for idx, line in enumerate(lines[1:], start=1):
        stripped = line.strip()
        if stripped in {"---", "..."}:
            closing_index = idx
            break
        front_matter_lines.append(line)

    if closing_index is None:
        return {}, source

    raw_block = "\n".join(front_matter_lines)
    try:
        metadata = yaml.safe_load(raw_block) or {}
    except yaml.YAMLError:
        return {}, source

    if not isinstance(metadata, dict):
        metadata = {}

    body_lines = lines[closing_index + 1 :]
    body = "\n".join(body_lines)
    if source.endswith("\n"):
        body += "\n"

    prefix = source[:prefix_len]
    return metadata, prefix + body


def _math_stats(processor: Any) -> dict[str, int]:
    for extension in getattr(processor, "registeredExtensions", []):
        if isinstance(extension, MathExtension) and extension.renderer is not None:
            return dict(extension.renderer.stats)
    return {}


def _resolve_markdown_entry(
    extensions_key: tuple[str, ...],
    config_key: tuple[tuple[str, Any], ...],
) -> _MarkdownCacheEntry:
    cache_key = (extensions_key, config_key)
    entry = _MARKDOWN_CACHE.get(cache_key)
    if entry is not None:
        return entry
    with _MARKDOWN_CACHE_GUARD:
        entry = _MARKDOWN_CACHE.get(cache_key)
        if entry is None:
            processor = _build_markdown_processor(extensions_key, dict(config_key))
            entry = _MarkdownCacheEntry(processor)
            _MARKDOWN_CACHE[cache_key] = entry
    return entry


def _build_markdown_processor(
    extensions_key: tuple[str, ...],
    math_config: dict[str, Any],
) -> markdown.Markdown:
    active_extensions = list(extensions_key)
    extension_configs: dict[str, dict[str, Any]] = {}
    if math_config:
        for name in active_extensions:
            if _normalise_extension_name(name) in {"notemath.math", "notemath.extensions.math"}:
                extension_configs[name] = dict(math_config)

    try:
        return markdown.Markdown(extensions=active_extensions, extension_configs=extension_configs)
    except Exception as exc:  # pragma: no cover - library-controlled
        raise MarkdownConversionError(f"Failed to initialize Markdown processor: {exc}") from exc


def _normalise_extension_name(value: str | object) -> str:
    if not isinstance(value, str):
        return ""
    return value.split(":", 1)[0].lower()
