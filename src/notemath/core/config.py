"""Configuration model for the math extension.

MathConfig

`on_error` (`"raise" | "marker"`)
: Policy applied when the math converter rejects an expression. `"raise"`
  aborts the whole render with a `MathConversionError` (default). `"marker"`
  logs a warning and substitutes an element carrying `error_class` with the
  escaped source.

`error_class` (`str`)
: CSS class set on the substituted error marker.

`escape_dollar` (`bool`)
: Register `$` as a backslash-escapable character so `\$$` is read as a
  literal dollar followed by `$`.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MathConfig(BaseModel):
    """Options accepted by :class:`~notemath.extensions.math.MathExtension`."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    on_error: Literal["raise", "marker"] = "raise"
    error_class: str = Field(default="math-error", description="Error marker class")
    escape_dollar: bool = True

    @field_validator("error_class")
    @classmethod
    def _validate_error_class(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("error_class must not be empty")
        return cleaned

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any] | None) -> MathConfig:
        """Build a config from Markdown extension options, ignoring ``None`` values."""
        payload = {key: value for key, value in (values or {}).items() if value is not None}
        return cls.model_validate(payload)


__all__ = ["MathConfig"]
