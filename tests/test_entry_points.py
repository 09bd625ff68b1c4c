from __future__ import annotations

from importlib.metadata import entry_points

import markdown
import pytest

from notemath.math import MathExtension, makeExtension


def test_extension_loads_by_dotted_name() -> None:
    html = markdown.markdown("$$x$$", extensions=["notemath.math"])

    assert html.startswith("<p><math")


def test_make_extension_passes_config() -> None:
    extension = makeExtension(on_error="marker")

    assert isinstance(extension, MathExtension)
    assert extension.getConfig("on_error") == "marker"


def test_extension_is_advertised_to_markdown() -> None:
    registered = entry_points(group="markdown.extensions")
    names = {entry.name: entry.value for entry in registered}
    if "notemath_math" not in names:
        pytest.skip("notemath is not installed")

    assert names["notemath_math"] == "notemath.math:MathExtension"
    html = markdown.markdown("$$$ y $$$", extensions=["notemath_math"])
    assert 'display="block"' in html
