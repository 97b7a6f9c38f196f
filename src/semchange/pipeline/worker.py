"""Per-file analysis executed inside worker processes.

Everything here is module-level so the spawn start method can pickle it.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from semchange.analysis.changes import ChangeKind, SemanticChange, Severity
from semchange.analysis.detector import apply_policy, detect_with_config
from semchange.analysis.scoping import DiffHunk
from semchange.config.models import AnalyzerConfig
from semchange.context.builder import build_context
from semchange.context.models import SemanticContext
from semchange.parsing.treesitter import TreeSitterParser


@dataclass(frozen=True, slots=True)
class FileTask:
    """One file to analyze: its two versions plus the settings to use.

    ``None`` for a version means the file does not exist on that side.
    """

    file_path: str
    base_source: str | None
    head_source: str | None
    config: AnalyzerConfig = field(default_factory=AnalyzerConfig)
    hunks: tuple[DiffHunk, ...] = ()


def analyze_new_file(head: SemanticContext, config: AnalyzerConfig) -> list[SemanticChange]:
    """Changes for a file that has no base version.

    Every export is a new public surface (high). Functions that are not
    exported are reported individually (medium).
    """
    changes: list[SemanticChange] = []
    exported = {export.name for export in head.exports}
    for export in head.exports:
        changes.append(
            SemanticChange(
                kind=ChangeKind.EXPORT_ADDED,
                severity=Severity.HIGH,
                line=export.line,
                column=export.column,
                detail=f"New export '{export.name}' added",
                ast_node=export.type,
                context=f"Export type: {export.type}",
            )
        )
    for func in head.functions:
        if func.name in exported:
            continue
        changes.append(
            SemanticChange(
                kind=ChangeKind.FUNCTION_ADDED,
                severity=Severity.MEDIUM,
                line=func.line,
                column=func.column,
                detail=f"New function '{func.name}' added",
                ast_node="FunctionDeclaration",
            )
        )
    return apply_policy(changes, config)


def analyze_file_pair(
    path: str,
    base_source: str | None,
    head_source: str | None,
    config: AnalyzerConfig | None = None,
    hunks: list[DiffHunk] | None = None,
) -> list[SemanticChange]:
    """Detect semantic changes between two versions of one file.

    A deleted file (no head) yields nothing. Raises ``ParseError`` when
    either version cannot be parsed.
    """
    config = config or AnalyzerConfig()
    if head_source is None:
        return []
    parser = TreeSitterParser()
    head = build_context(parser.parse(path, head_source), config)
    if base_source is None:
        return analyze_new_file(head, config)
    base = build_context(parser.parse(path, base_source), config)
    return detect_with_config(base, head, config, hunks)


def run_file_task(task: FileTask) -> list[SemanticChange]:
    """Worker entry point for :func:`semchange.pipeline.concurrency.run_all`."""
    return analyze_file_pair(
        task.file_path,
        task.base_source,
        task.head_source,
        task.config,
        list(task.hunks) or None,
    )
