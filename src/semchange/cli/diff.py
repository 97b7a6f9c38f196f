"""semchange diff command - compare two files on disk."""

from pathlib import Path

import click

from semchange.cli.analyze import FORMAT_CHOICES
from semchange.cli.utils import emit_report, load_cli_config
from semchange.core.errors import SemchangeError
from semchange.pipeline.runner import FailedFile, FileChange, build_result
from semchange.pipeline.worker import analyze_file_pair


@click.command()
@click.argument("base_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("head_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
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
    help="Config file (default: .semchange.yaml in the current directory)",
)
def diff_command(
    base_file: Path,
    head_file: Path,
    fmt: str,
    output: Path | None,
    config_path: Path | None,
) -> None:
    """Detect semantic changes from BASE_FILE to HEAD_FILE.

    The head file's extension selects the grammar. No git access is needed.
    """
    config = load_cli_config(Path.cwd(), config_path)
    label = str(head_file)
    changes: list[FileChange] = []
    failed: list[FailedFile] = []
    try:
        found = analyze_file_pair(
            label,
            base_file.read_text(encoding="utf-8"),
            head_file.read_text(encoding="utf-8"),
            config.analyzer,
        )
    except SemchangeError as e:
        failed.append(FailedFile(label, e.message))
    else:
        changes = [FileChange(label, change) for change in found]

    result = build_result(changes, 0 if failed else 1, failed, config.analyzer)
    emit_report(result, fmt, output)  # type: ignore[arg-type]
