"""Run every category analyzer over one (base, head) context pair.

``detect`` is the raw aggregator: it concatenates analyzer outputs in a
fixed order. ``detect_with_config`` layers the configurable policy on top
(group and kind filters, severity overrides, de-duplication and diff-hunk
scoping).
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

import structlog

from semchange.analysis.changes import ChangeKind, SemanticChange, Severity, group_of
from semchange.analysis.complexity import analyze_complexity
from semchange.analysis.control_flow import (
    analyze_conditionals,
    analyze_loops,
    analyze_promises,
    analyze_ternaries,
    analyze_throws,
    analyze_try_catch,
)
from semchange.analysis.data_flow import (
    analyze_array_mutations,
    analyze_destructuring,
    analyze_object_mutations,
    analyze_spreads,
    analyze_variable_assignments,
    analyze_variables,
)
from semchange.analysis.declarations import (
    analyze_classes,
    analyze_functions,
    analyze_interfaces,
    analyze_type_aliases,
)
from semchange.analysis.modules import analyze_exports, analyze_imports
from semchange.analysis.operators import (
    analyze_comparison_operators,
    analyze_logical_operators,
)
from semchange.analysis.react import analyze_hooks, analyze_state_hooks, analyze_ui_elements
from semchange.analysis.scoping import DiffHunk, scope_to_hunks
from semchange.analysis.side_effects import analyze_function_calls, analyze_side_effects
from semchange.config.models import AnalyzerConfig, TestRequirementsConfig
from semchange.context.models import SemanticContext

log = structlog.get_logger(__name__)

Analyzer = Callable[[SemanticContext, SemanticContext, AnalyzerConfig], list[SemanticChange]]

# Output order of detect().
ANALYZERS: tuple[tuple[str, Analyzer], ...] = (
    ("array_mutations", analyze_array_mutations),
    ("classes", analyze_classes),
    ("comparison_operators", analyze_comparison_operators),
    ("complexity", analyze_complexity),
    ("conditionals", analyze_conditionals),
    ("destructuring", analyze_destructuring),
    ("exports", analyze_exports),
    ("function_calls", analyze_function_calls),
    ("functions", analyze_functions),
    ("imports", analyze_imports),
    ("interfaces", analyze_interfaces),
    ("ui_elements", analyze_ui_elements),
    ("logical_operators", analyze_logical_operators),
    ("loops", analyze_loops),
    ("object_mutations", analyze_object_mutations),
    ("promises", analyze_promises),
    ("hooks", analyze_hooks),
    ("side_effects", analyze_side_effects),
    ("spreads", analyze_spreads),
    ("state_hooks", analyze_state_hooks),
    ("ternaries", analyze_ternaries),
    ("throws", analyze_throws),
    ("try_catch", analyze_try_catch),
    ("type_aliases", analyze_type_aliases),
    ("variable_assignments", analyze_variable_assignments),
    ("variables", analyze_variables),
)


def detect(
    base: SemanticContext,
    head: SemanticContext,
    config: AnalyzerConfig | None = None,
    analyzers: Iterable[tuple[str, Analyzer]] = ANALYZERS,
) -> list[SemanticChange]:
    """Run every analyzer on the same context pair and concatenate results.

    No de-duplication or cross-category suppression happens here: one edit
    may surface in several categories. An analyzer that raises contributes
    nothing and is logged; the others still run.
    """
    config = config or AnalyzerConfig()
    changes: list[SemanticChange] = []
    for name, analyzer in analyzers:
        try:
            found = analyzer(base, head, config)
        except Exception:
            log.warning("analyzer_failed", analyzer=name, path=head.path, exc_info=True)
            continue
        changes.extend(found)
    return changes


def is_kind_enabled(kind: ChangeKind, config: AnalyzerConfig) -> bool:
    """Apply ``disabled_change_kinds`` and the group allow/deny lists."""
    if kind in config.disabled_change_kinds:
        return False
    group = group_of(kind)
    groups = config.change_kind_groups
    if group in groups.disabled:
        return False
    if groups.enabled:
        return group in groups.enabled
    return True


def effective_severity(change: SemanticChange, config: AnalyzerConfig) -> Severity:
    if config.jsx.treat_as_low_severity and change.kind.is_ui:
        return Severity.LOW
    return config.severity_overrides.get(change.kind, change.severity)


def deduplicate(changes: Iterable[SemanticChange]) -> list[SemanticChange]:
    """Drop repeats of the same ``(kind, line, column, detail)``."""
    seen: set[tuple[ChangeKind, int, int, str]] = set()
    unique = []
    for change in changes:
        key = (change.kind, change.line, change.column, change.detail)
        if key in seen:
            continue
        seen.add(key)
        unique.append(change)
    return unique


def apply_policy(
    changes: Iterable[SemanticChange],
    config: AnalyzerConfig,
    hunks: list[DiffHunk] | None = None,
) -> list[SemanticChange]:
    """Filter, re-rate, de-duplicate and hunk-scope raw analyzer output."""
    kept = []
    for change in changes:
        if not is_kind_enabled(change.kind, config):
            continue
        severity = effective_severity(change, config)
        if severity != change.severity:
            change = SemanticChange(
                kind=change.kind,
                severity=severity,
                line=change.line,
                column=change.column,
                detail=change.detail,
                ast_node=change.ast_node,
                context=change.context,
            )
        kept.append(change)
    return scope_to_hunks(deduplicate(kept), hunks)


def detect_with_config(
    base: SemanticContext,
    head: SemanticContext,
    config: AnalyzerConfig,
    hunks: list[DiffHunk] | None = None,
) -> list[SemanticChange]:
    """:func:`detect` followed by :func:`apply_policy`."""
    return apply_policy(detect(base, head, config), config, hunks)


def change_requires_tests(
    kind: ChangeKind, severity: Severity, policy: TestRequirementsConfig
) -> bool:
    """Test requirement for one change.

    Explicit kind lists win over severity. Without a configured minimum,
    only high severity requires tests.
    """
    if kind in policy.always_require_tests:
        return True
    if kind in policy.never_require_tests:
        return False
    if policy.minimum_severity_for_tests is not None:
        return severity.at_least(policy.minimum_severity_for_tests)
    return severity is Severity.HIGH


def requires_tests(changes: Iterable[SemanticChange], config: AnalyzerConfig) -> bool:
    return any(
        change_requires_tests(change.kind, change.severity, config.test_requirements)
        for change in changes
    )
