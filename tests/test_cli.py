from __future__ import annotations

from pathlib import Path

import click
import pytest
from typer.testing import CliRunner

from notemath.adapters.markdown import DEFAULT_MARKDOWN_EXTENSIONS
from notemath.core.exceptions import MathConversionError
from notemath.ui.cli import app
import notemath.ui.cli.state as cli_state


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def _write(tmp_path: Path, text: str, name: str = "doc.md") -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def test_render_writes_html_to_stdout(runner: CliRunner, tmp_path: Path) -> None:
    source = _write(tmp_path, "Euler $$e^{i\\pi}+1=0$$\n\n$$$\nx^2\n$$$\n")

    result = runner.invoke(app, ["render", str(source)])

    assert result.exit_code == 0, result.output
    assert '<math xmlns="http://www.w3.org/1998/Math/MathML" display="inline">' in result.stdout
    assert 'display="block"' in result.stdout


def test_render_writes_output_file(runner: CliRunner, tmp_path: Path) -> None:
    source = _write(tmp_path, "Area $$\\pi r^2$$\n")
    target = tmp_path / "build" / "doc.html"

    result = runner.invoke(app, ["render", str(source), "-o", str(target)])

    assert result.exit_code == 0, result.output
    html = target.read_text(encoding="utf-8")
    assert html.startswith("<p>Area <math")
    assert html.endswith("</p>\n")


def test_render_fails_on_invalid_math(runner: CliRunner, tmp_path: Path) -> None:
    source = _write(tmp_path, "Broken $$\\right)$$\n")

    result = runner.invoke(app, ["render", str(source)])

    assert result.exit_code == 1
    assert "<math" not in result.stdout
    assert "doc.md: cannot convert inline math" in result.output


def test_render_debug_propagates_conversion_error(runner: CliRunner, tmp_path: Path) -> None:
    source = _write(tmp_path, "Broken $$\\right)$$\n")

    result = runner.invoke(app, ["--debug", "render", str(source)])

    assert isinstance(result.exception, MathConversionError)
    assert result.exception.source == "\\right)"


def test_render_marker_policy(runner: CliRunner, tmp_path: Path) -> None:
    source = _write(tmp_path, "Broken $$\\right)$$\n")

    result = runner.invoke(app, ["render", str(source), "--on-error", "marker"])

    assert result.exit_code == 0, result.output
    assert 'class="math-error"' in result.stdout


def test_render_verbose_lists_failures(runner: CliRunner, tmp_path: Path) -> None:
    source = _write(tmp_path, "Broken $$\\right)$$ and $$x$$\n")

    result = runner.invoke(app, ["-v", "render", str(source), "--on-error", "marker"])

    assert result.exit_code == 0, result.output
    assert "2 inline, 0 block math expression(s), 1 replaced by error markers" in result.output
    assert "  inline: \\right)" in result.output


def test_leading_rule_is_rendered_by_default(runner: CliRunner, tmp_path: Path) -> None:
    source = _write(tmp_path, "---\ntitle: $$x$$\n---\nbody\n")

    result = runner.invoke(app, ["render", str(source)])

    assert result.exit_code == 0, result.output
    assert result.stdout.startswith("<hr")
    assert "title: <math" in result.stdout


def test_render_front_matter_option(runner: CliRunner, tmp_path: Path) -> None:
    source = _write(tmp_path, "---\ntitle: $$x$$\n---\nbody\n")

    result = runner.invoke(app, ["render", str(source), "--front-matter"])

    assert result.exit_code == 0, result.output
    assert result.stdout.strip() == "<p>body</p>"


def test_render_can_disable_math(runner: CliRunner, tmp_path: Path) -> None:
    source = _write(tmp_path, "Cost $$5$$\n")

    result = runner.invoke(
        app, ["render", str(source), "-d", "notemath.math:MathExtension"]
    )

    assert result.exit_code == 0, result.output
    assert result.stdout.strip() == "<p>Cost $$5$$</p>"


def test_render_rejects_missing_input(runner: CliRunner, tmp_path: Path) -> None:
    result = runner.invoke(app, ["render", str(tmp_path / "missing.md")])

    assert result.exit_code != 0


def test_list_extensions(runner: CliRunner) -> None:
    result = runner.invoke(app, ["--list-extensions"])

    assert result.exit_code == 0
    assert result.stdout.split() == DEFAULT_MARKDOWN_EXTENSIONS


def test_rules_command_plain_output(runner: CliRunner) -> None:
    result = runner.invoke(app, ["rules"])

    assert result.exit_code == 0, result.output
    lines = result.stdout.splitlines()
    assert lines[0] == "Parser Rules:"
    assert any("inline: math_inline" in line and "after=[backtick]" in line for line in lines)
    assert any(
        "block: math_block" in line
        and "interrupts=[paragraph, reference, blockquote, list]" in line
        for line in lines
    )


def test_rules_command_without_math(runner: CliRunner) -> None:
    result = runner.invoke(app, ["rules", "-d", "notemath.math:MathExtension"])

    assert result.exit_code == 0
    assert result.stdout.strip() == "No notemath rules are installed."


def test_no_command_prints_help(runner: CliRunner) -> None:
    result = runner.invoke(app, [])

    assert result.exit_code == 0
    assert "render" in result.stdout


def test_cli_state_per_context_isolated() -> None:
    command = click.Command("demo")
    ctx_a = click.Context(command)
    ctx_b = click.Context(command)

    state_a = cli_state.get_cli_state(ctx_a)
    state_a.verbosity = 5

    state_b = cli_state.get_cli_state(ctx_b)
    assert state_b.verbosity == 0

    state_b.verbosity = 2
    assert cli_state.get_cli_state(ctx_b).verbosity == 2
    assert cli_state.get_cli_state(ctx_a).verbosity == 5


def test_set_cli_state_clamps_verbosity() -> None:
    ctx = click.Context(click.Command("demo"))

    state = cli_state.set_cli_state(ctx=ctx, verbosity=-3, debug=True)

    assert state.verbosity == 0
    assert state.show_tracebacks is True
