"""Colon-separated output for shell pipelines (sed, awk, cut)."""

from __future__ import annotations

from semchange.analysis.changes import Severity
from semchange.pipeline.runner import AnalysisResult


def escape_field(value: object) -> str:
    if value is None:
        return ""
    return str(value).replace(":", "\\:").replace("\n", "\\n").replace("\r", "\\r")


def format_machine(result: AnalysisResult) -> list[str]:
    """Render ``SUMMARY``, ``CHANGE``, ``FAILED`` and ``CHANGETYPE`` lines."""
    b = result.severity_breakdown
    counts = (b.get(severity, 0) for severity in (Severity.HIGH, Severity.MEDIUM, Severity.LOW))
    lines = [
        ":".join(
            [
                "SUMMARY",
                str(result.requires_tests).lower(),
                str(result.files_analyzed),
                str(result.total_changes),
                *(str(n) for n in counts),
            ]
        )
    ]
    for item in result.changes:
        c = item.change
        lines.append(
            ":".join(
                [
                    "CHANGE",
                    escape_field(item.file),
                    str(c.line),
                    str(c.column),
                    c.severity.value,
                    escape_field(c.kind.value),
                    escape_field(c.detail),
                    escape_field(c.ast_node),
                    escape_field(c.context),
                ]
            )
        )
    for failed in result.failed_files:
        lines.append(f"FAILED:{escape_field(failed.file_path)}:{escape_field(failed.error)}")
    for stat in result.top_change_types:
        lines.append(
            f"CHANGETYPE:{escape_field(stat.kind.value)}:{stat.count}:{stat.max_severity.value}"
        )
    return lines
