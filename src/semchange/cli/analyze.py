"""semchange analyze command - analyze files changed between two refs."""

import asyncio
import sys
from pathlib import Path

import click

from semchange.cli.utils import emit_report, find_repo_root, load_cli_config
from semchange.core.errors import SemchangeError
from semchange.core.logging import configure_logging
from semchange.git.repo import WORKING_TREE, GitRepository
from semchange.pipeline.runner import run_analysis

FORMAT_CHOICES = ["console", "json", "github-actions", "machine"]


@click.command()
@click.argument("files", nargs=-1)
@click.option("--base", "base_ref", default="HEAD", show_default=True, help="Base revision")
@click.option(
    "--head",
    "head_ref",
    default=WORKING_TREE,
    show_default=True,
    help="Head revision ('.' is the working tree)",
)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(FORMAT_CHOICES),
    default="console",
    show_default=True,
)
@click.option("--output", type=click.Path(dir_okay=False, path_type=Path), help="Write report here")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Config file (default: .semchange.yaml in the repo)",
)
@click.option("--timeout-ms", type=click.IntRange(min=1), help="Per-file analysis timeout")
@click.option("--max-concurrency", type=click.IntRange(min=1), help="Worker processes")
@click.option(
    "--repo",
    "repo_path",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Repository root (default: auto-detect)",
)
@click.option("--stdin", "from_stdin", is_flag=True, help="Read file paths from stdin")
@click.option("--label", "labels", multiple=True, help="Change-request label (repeatable)")
@click.pass_context
def analyze_command(
    ctx: click.Context,
    files: tuple[str, ...],
    base_ref: str,
    head_ref: str,
    fmt: str,
    output: Path | None,
    config_path: Path | None,
    timeout_ms: int | None,
    max_concurrency: int | None,
    repo_path: Path | None,
    from_stdin: bool,
    labels: tuple[str, ...],
) -> None:
    """Detect semantic changes in FILES between --base and --head.

    With no FILES, every file changed between the two refs is considered.
    """
    repo_root = repo_path.resolve() if repo_path is not None else find_repo_root()
    config = load_cli_config(repo_root, config_path, timeout_ms, max_concurrency)
    if not (ctx.obj or {}).get("verbose"):
        configure_logging(config=config.logging)

    paths = list(files)
    if from_stdin:
        paths.extend(line.strip() for line in sys.stdin if line.strip())

    try:
        repo = GitRepository(repo_root)
        result = asyncio.run(
            run_analysis(repo, base_ref, head_ref, paths or None, config, labels)
        )
    except SemchangeError as e:
        raise click.ClickException(str(e)) from e

    emit_report(result, fmt, output)  # type: ignore[arg-type]
