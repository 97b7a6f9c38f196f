"""File-wide complexity analyzer."""

from __future__ import annotations

from semchange.analysis.changes import ChangeKind, SemanticChange, Severity
from semchange.config.models import AnalyzerConfig
from semchange.context.models import SemanticContext

COMPLEXITY_INCREASE_THRESHOLD = 5


def analyze_complexity(
    base: SemanticContext,
    head: SemanticContext,
    config: AnalyzerConfig,  # noqa: ARG001
) -> list[SemanticChange]:
    delta = head.complexity - base.complexity
    if delta <= COMPLEXITY_INCREASE_THRESHOLD:
        return []
    return [
        SemanticChange(
            kind=ChangeKind.COMPLEXITY_INCREASED,
            severity=Severity.MEDIUM,
            line=1,
            column=1,
            detail=f"Overall complexity increased significantly (+{delta})",
            ast_node="SourceFile",
        )
    ]
