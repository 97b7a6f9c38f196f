"""CLI utilities."""

from pathlib import Path

import click

from semchange.config.loader import load_config
from semchange.config.models import SemchangeConfig
from semchange.core.errors import SemchangeError
from semchange.formatters import OutputFormat, render, write_github_output
from semchange.pipeline.runner import AnalysisResult


def find_repo_root(start_path: Path | None = None) -> Path:
    """Walk up from ``start_path`` (default: cwd) to the directory holding ``.git``.

    Raises:
        click.ClickException: If not inside a git repository
    """
    if start_path is None:
        start_path = Path.cwd()

    current = start_path.resolve()
    while current != current.parent:
        if (current / ".git").exists():
            return current
        current = current.parent
    if (current / ".git").exists():
        return current

    raise click.ClickException(
        f"Not inside a git repository: {start_path}\n"
        "Pass --repo PATH or run semchange from within a git repository."
    )


def load_cli_config(
    root: Path,
    config_path: Path | None,
    timeout_ms: int | None = None,
    max_concurrency: int | None = None,
) -> SemchangeConfig:
    """Load config and apply runner overrides given on the command line."""
    try:
        config = load_config(root, config_path)
    except SemchangeError as e:
        raise click.ClickException(str(e)) from e

    runner_updates: dict[str, int] = {}
    if timeout_ms is not None:
        runner_updates["timeout_ms"] = timeout_ms
    if max_concurrency is not None:
        runner_updates["max_concurrency"] = max_concurrency
    if runner_updates:
        config = config.model_copy(
            update={"runner": config.runner.model_copy(update=runner_updates)}
        )
    return config


def emit_report(result: AnalysisResult, fmt: OutputFormat, output: Path | None) -> None:
    """Write the rendered report to ``output`` or stdout."""
    text = render(result, fmt)
    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text + "\n", encoding="utf-8")
    elif text:
        click.echo(text)
    if fmt == "github-actions":
        write_github_output(result.requires_tests)
