"""GitHub Actions workflow-command annotations."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Literal

import structlog

from semchange.analysis.changes import Severity
from semchange.pipeline.runner import AnalysisResult

log = structlog.get_logger(__name__)

AnnotationLevel = Literal["notice", "warning", "error"]

_LEVELS: dict[Severity, AnnotationLevel] = {
    Severity.LOW: "notice",
    Severity.MEDIUM: "warning",
    Severity.HIGH: "error",
}
_NEWLINE = re.compile(r"\r?\n")


def annotation_level(severity: Severity) -> AnnotationLevel:
    return _LEVELS.get(severity, "notice")


def escape_command(value: str) -> str:
    """Escape the command separator and line breaks."""
    return _NEWLINE.sub("%0A", value.replace("::", "%3A%3A"))


def format_annotation(
    level: AnnotationLevel,
    file: str,
    line: int,
    title: str,
    message: str,
    end_line: int | None = None,
) -> str:
    command = f"::{level} file={file},line={line}"
    if end_line is not None:
        command += f",endLine={end_line}"
    return f"{command},title={escape_command(title)}::{escape_command(message)}"


def format_github_actions(result: AnalysisResult) -> list[str]:
    """One annotation per change, in report order."""
    return [
        format_annotation(
            annotation_level(item.change.severity),
            item.file,
            item.change.line,
            item.change.kind.value,
            item.change.detail,
        )
        for item in result.changes
    ]


def write_github_output(requires_tests: bool, output_path: str | None = None) -> bool:
    """Append ``requires-tests=<bool>`` to the step output file.

    Uses ``$GITHUB_OUTPUT`` when no path is given. Returns False when there
    is nowhere to write.
    """
    target = output_path or os.environ.get("GITHUB_OUTPUT")
    if not target:
        return False
    try:
        with Path(target).open("a", encoding="utf-8") as f:
            f.write(f"requires-tests={str(requires_tests).lower()}\n")
    except OSError:
        log.warning("github_output_write_failed", path=target, exc_info=True)
        return False
    return True
