"""Batch runner: select files, fan out per-file analysis, aggregate a report."""

from __future__ import annotations

import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from typing import Any

import structlog

from semchange.analysis.changes import ChangeKind, SemanticChange, Severity
from semchange.analysis.detector import requires_tests
from semchange.config.models import AnalyzerConfig, SemchangeConfig
from semchange.core.errors import SemchangeError
from semchange.core.logging import set_run_id
from semchange.git.repo import WORKING_TREE, ChangedFile, GitRepository
from semchange.pipeline.concurrency import TaskResult, run_all
from semchange.pipeline.worker import FileTask, run_file_task

log = structlog.get_logger(__name__)

CRITICAL_CHANGES_LIMIT = 20
TOP_CHANGE_TYPES_LIMIT = 10


@dataclass(frozen=True, slots=True)
class FileChange:
    """A change together with the file it was found in."""

    file: str
    change: SemanticChange

    def to_dict(self) -> dict[str, Any]:
        return {"file": self.file, **self.change.to_dict()}


@dataclass(frozen=True, slots=True)
class FailedFile:
    file_path: str
    error: str

    def to_dict(self) -> dict[str, Any]:
        return {"file_path": self.file_path, "error": self.error}


@dataclass(frozen=True, slots=True)
class ChangeTypeStat:
    kind: ChangeKind
    count: int
    max_severity: Severity

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "count": self.count,
            "max_severity": self.max_severity.value,
        }


@dataclass
class AnalysisResult:
    """Aggregated report for one batch run."""

    requires_tests: bool
    summary: str
    files_analyzed: int
    total_changes: int
    severity_breakdown: dict[Severity, int]
    top_change_types: list[ChangeTypeStat] = field(default_factory=list)
    critical_changes: list[FileChange] = field(default_factory=list)
    changes: list[FileChange] = field(default_factory=list)
    failed_files: list[FailedFile] = field(default_factory=list)
    has_react_changes: bool = False
    analysis_time_ms: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "requires_tests": self.requires_tests,
            "summary": self.summary,
            "files_analyzed": self.files_analyzed,
            "total_changes": self.total_changes,
            "severity_breakdown": {
                severity.value: self.severity_breakdown.get(severity, 0) for severity in Severity
            },
            "top_change_types": [stat.to_dict() for stat in self.top_change_types],
            "critical_changes": [c.to_dict() for c in self.critical_changes],
            "changes": [c.to_dict() for c in self.changes],
            "failed_files": [f.to_dict() for f in self.failed_files],
            "has_react_changes": self.has_react_changes,
            "analysis_time_ms": self.analysis_time_ms,
        }


def path_matches(path: str, pattern: str) -> bool:
    """Glob match where a leading ``**/`` also matches top-level paths."""
    if fnmatchcase(path, pattern):
        return True
    return pattern.startswith("**/") and fnmatchcase(path, pattern[3:])


def should_analyze(path: str, config: AnalyzerConfig) -> bool:
    """Included, not excluded, and not a test file."""
    if not any(path_matches(path, p) for p in config.include):
        return False
    if any(path_matches(path, p) for p in config.exclude):
        return False
    return not any(path_matches(path, p) for p in config.test_globs)


def select_files(paths: Iterable[str], config: AnalyzerConfig) -> list[str]:
    """Apply include / exclude / test globs, keeping order and dropping repeats."""
    selected: list[str] = []
    for path in dict.fromkeys(paths):
        if should_analyze(path, config):
            selected.append(path)
        else:
            log.debug("file_filtered", path=path)
    return selected


def summarize(total: int, breakdown: dict[Severity, int], tests_required: bool) -> str:
    if total == 0:
        return "No semantic changes detected"
    return ", ".join(
        [
            f"{total} semantic changes detected",
            f"{breakdown[Severity.HIGH]} high-severity",
            f"{breakdown[Severity.MEDIUM]} medium-severity",
            f"{breakdown[Severity.LOW]} low-severity",
            "Tests required" if tests_required else "No tests required",
        ]
    )


def top_change_types(changes: Iterable[FileChange]) -> list[ChangeTypeStat]:
    """Per-kind counts with the highest severity seen, most frequent first."""
    counts: dict[ChangeKind, int] = {}
    worst: dict[ChangeKind, Severity] = {}
    for item in changes:
        kind = item.change.kind
        counts[kind] = counts.get(kind, 0) + 1
        if kind not in worst or item.change.severity.rank > worst[kind].rank:
            worst[kind] = item.change.severity
    stats = [ChangeTypeStat(kind, count, worst[kind]) for kind, count in counts.items()]
    stats.sort(key=lambda stat: stat.count, reverse=True)
    return stats[:TOP_CHANGE_TYPES_LIMIT]


def build_result(
    changes: list[FileChange],
    files_analyzed: int,
    failed_files: list[FailedFile],
    config: AnalyzerConfig,
    labels: Sequence[str] = (),
    analysis_time_ms: int = 0,
) -> AnalysisResult:
    """Aggregate per-file changes into an :class:`AnalysisResult`.

    A label listed in ``bypass_labels`` waives the test requirement.
    """
    breakdown = {severity: 0 for severity in Severity}
    for item in changes:
        breakdown[item.change.severity] += 1

    tests_required = requires_tests((item.change for item in changes), config)
    bypass = next((label for label in labels if label in config.bypass_labels), None)
    if tests_required and bypass is not None:
        log.info("test_requirement_bypassed", label=bypass)
        tests_required = False

    return AnalysisResult(
        requires_tests=tests_required,
        summary=summarize(len(changes), breakdown, tests_required),
        files_analyzed=files_analyzed,
        total_changes=len(changes),
        severity_breakdown=breakdown,
        top_change_types=top_change_types(changes),
        critical_changes=[c for c in changes if c.change.severity is Severity.HIGH][
            :CRITICAL_CHANGES_LIMIT
        ],
        changes=changes,
        failed_files=failed_files,
        has_react_changes=any(item.change.kind.is_react for item in changes),
        analysis_time_ms=analysis_time_ms,
    )


def _plan_tasks(
    repo: GitRepository,
    base_ref: str,
    head_ref: str,
    files: Sequence[str] | None,
    config: AnalyzerConfig,
) -> tuple[list[FileTask], list[FailedFile]]:
    deltas: dict[str, ChangedFile] = {
        delta.path: delta for delta in repo.changed_files(base_ref, head_ref)
    }
    candidates = [repo.normalize_path(f) for f in files] if files else list(deltas)
    tasks: list[FileTask] = []
    failed: list[FailedFile] = []

    for path in select_files(candidates, config):
        delta = deltas.get(path)
        if delta is None or not delta.hunks:
            log.debug("file_skipped_no_diff", path=path)
            continue
        try:
            base_source = (
                None
                if delta.status == "added"
                else repo.read_file(base_ref, delta.old_path or path)
            )
            head_source = repo.read_file(head_ref, path)
        except SemchangeError as e:
            log.warning("file_read_failed", path=path, error=e.message)
            failed.append(FailedFile(path, e.message))
            continue
        tasks.append(
            FileTask(
                file_path=path,
                base_source=base_source,
                head_source=head_source,
                config=config,
                hunks=delta.hunks,
            )
        )
    return tasks, failed


async def run_analysis(
    repo: GitRepository,
    base_ref: str,
    head_ref: str = WORKING_TREE,
    files: Sequence[str] | None = None,
    config: SemchangeConfig | None = None,
    labels: Sequence[str] = (),
) -> AnalysisResult:
    """Analyze every selected file changed between ``base_ref`` and ``head_ref``.

    Args:
        repo: Repository to read file versions and diffs from.
        base_ref: Base revision.
        head_ref: Head revision, or ``"."`` for the working tree.
        files: Paths to consider. Defaults to every changed file.
        config: Full configuration. Defaults to built-in defaults.
        labels: Change-request labels checked against ``bypass_labels``.

    Returns:
        The aggregated report. Files that fail (read, parse, timeout or
        crash) are listed in ``failed_files`` and do not abort the run.
    """
    config = config or SemchangeConfig()
    run_id = set_run_id()
    started = time.monotonic()
    log.info("analysis_started", run_id=run_id, base=base_ref, head=head_ref)

    tasks, failed = _plan_tasks(repo, base_ref, head_ref, files, config.analyzer)
    results: list[TaskResult] = await run_all(
        tasks,
        run_file_task,
        max_concurrency=config.runner.max_concurrency,
        timeout_ms=config.runner.timeout_ms,
    )

    changes: list[FileChange] = []
    files_analyzed = 0
    for result in results:
        if result.ok:
            files_analyzed += 1
            changes.extend(FileChange(result.file_path, change) for change in result.changes)
        else:
            failed.append(FailedFile(result.file_path, result.error or "Unknown analysis error"))

    elapsed_ms = int((time.monotonic() - started) * 1000)
    report = build_result(
        changes, files_analyzed, failed, config.analyzer, labels, analysis_time_ms=elapsed_ms
    )
    log.info(
        "analysis_finished",
        files=files_analyzed,
        changes=report.total_changes,
        failed=len(failed),
        elapsed_ms=elapsed_ms,
    )
    return report
