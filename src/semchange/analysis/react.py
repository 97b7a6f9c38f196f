"""React analyzers: state hooks, hook call sites and JSX markup."""

from __future__ import annotations

from collections import Counter
from operator import attrgetter

from semchange.analysis.changes import ChangeKind, SemanticChange, Severity
from semchange.analysis.matching import FifoMultimap, match_buckets
from semchange.config.models import AnalyzerConfig
from semchange.context.models import STATE_HOOKS, HookCallEntity, SemanticContext


def analyze_state_hooks(
    base: SemanticContext,
    head: SemanticContext,
    config: AnalyzerConfig,  # noqa: ARG001
) -> list[SemanticChange]:
    """Emit one record when the number of useState / useReducer calls changes.

    The record points at the first call of the last hook type whose count
    changed: in head when the count grew, in base when it shrank.
    """
    base_counts = Counter(hook.type for hook in base.state_hooks)
    head_counts = Counter(hook.type for hook in head.state_hooks)
    labels = []
    line, column = 1, 1

    for hook_type in STATE_HOOKS:
        before = base_counts[hook_type]
        after = head_counts[hook_type]
        if before == after:
            continue
        labels.append(f"{hook_type}: {before} -> {after}")
        source = head if after > before else base
        first = next(h for h in source.state_hooks if h.type == hook_type)
        line, column = first.line, first.column

    if not labels:
        return []
    return [
        SemanticChange(
            kind=ChangeKind.STATE_MANAGEMENT_CHANGED,
            severity=Severity.HIGH,
            line=line,
            column=column,
            detail=f"State management hooks changed: {', '.join(labels)}",
            ast_node="CallExpression",
        )
    ]


def _hook_key(hook: HookCallEntity) -> str:
    return f"{hook.type}:{hook.name}"


def _removed_context(hook: HookCallEntity) -> str | None:
    if not hook.dependencies:
        return None
    return f"dependencies were [{', '.join(hook.dependencies)}]"


def analyze_hooks(
    base: SemanticContext,
    head: SemanticContext,
    config: AnalyzerConfig,  # noqa: ARG001
) -> list[SemanticChange]:
    """Pair hook calls by type and name and compare dependency lists.

    Dependency lists are compared as sorted lists. Extra useState calls in
    a file that already had one are left to :func:`analyze_state_hooks`.
    """
    buckets: FifoMultimap[str, HookCallEntity] = FifoMultimap.from_items(base.hooks, _hook_key)
    base_use_state = sum(1 for hook in base.hooks if hook.type == "useState")
    changes: list[SemanticChange] = []

    for hook in head.hooks:
        base_hook = buckets.pop_front(_hook_key(hook))
        if base_hook is not None:
            if sorted(base_hook.dependencies) != sorted(hook.dependencies):
                changes.append(
                    SemanticChange(
                        kind=ChangeKind.HOOK_DEPENDENCY_CHANGED,
                        severity=Severity.HIGH,
                        line=hook.line,
                        column=hook.column,
                        detail=f"Hook dependencies changed: {hook.name}",
                        ast_node="CallExpression",
                        context=(
                            f"{', '.join(base_hook.dependencies)} -> "
                            f"{', '.join(hook.dependencies)}"
                        ),
                    )
                )
            continue

        if hook.type == "useState" and base_use_state > 0:
            continue

        if hook.type == "useEffect":
            changes.append(
                SemanticChange(
                    kind=ChangeKind.EFFECT_ADDED,
                    severity=Severity.MEDIUM,
                    line=hook.line,
                    column=hook.column,
                    detail="Effect added via useEffect",
                    ast_node="CallExpression",
                )
            )
        else:
            changes.append(
                SemanticChange(
                    kind=ChangeKind.HOOK_ADDED,
                    severity=Severity.MEDIUM,
                    line=hook.line,
                    column=hook.column,
                    detail=f"React hook added: {hook.name}",
                    ast_node="CallExpression",
                )
            )

    for base_hook in buckets.remaining():
        if base_hook.type == "useEffect":
            changes.append(
                SemanticChange(
                    kind=ChangeKind.EFFECT_REMOVED,
                    severity=Severity.HIGH,
                    line=base_hook.line,
                    column=base_hook.column,
                    detail="Effect removed: useEffect call missing",
                    ast_node="CallExpression",
                    context=_removed_context(base_hook),
                )
            )
        else:
            changes.append(
                SemanticChange(
                    kind=ChangeKind.HOOK_REMOVED,
                    severity=Severity.MEDIUM,
                    line=base_hook.line,
                    column=base_hook.column,
                    detail=f"React hook removed: {base_hook.name}",
                    ast_node="CallExpression",
                    context=_removed_context(base_hook),
                )
            )
    return changes


def analyze_ui_elements(
    base: SemanticContext, head: SemanticContext, config: AnalyzerConfig
) -> list[SemanticChange]:
    """Compare JSX elements tag by tag.

    Elements with the same tag pair up in encounter order. A paired element
    whose prop names differ is a props change. A component tag that the
    other version never renders is also reported as a component reference
    change.
    """
    if not config.jsx.enabled:
        return []

    match = match_buckets(base.ui_elements, head.ui_elements, attrgetter("tag_name"))
    base_tags = {el.tag_name for el in base.ui_elements}
    head_tags = {el.tag_name for el in head.ui_elements}
    changes: list[SemanticChange] = []

    for base_el, el in match.pairs:
        if base_el.prop_names == el.prop_names:
            continue
        added = sorted(el.prop_names - base_el.prop_names)
        removed = sorted(base_el.prop_names - el.prop_names)
        parts = []
        if added:
            parts.append(f"added {', '.join(added)}")
        if removed:
            parts.append(f"removed {', '.join(removed)}")
        changes.append(
            SemanticChange(
                kind=ChangeKind.JSX_PROPS_CHANGED,
                severity=Severity.LOW,
                line=el.line,
                column=el.column,
                detail=f"JSX props changed on <{el.tag_name}>: {'; '.join(parts)}",
                ast_node="JsxAttributes",
            )
        )

    reported: set[str] = set()
    for el in match.added:
        changes.append(
            SemanticChange(
                kind=ChangeKind.JSX_ELEMENT_ADDED,
                severity=Severity.LOW,
                line=el.line,
                column=el.column,
                detail=f"JSX element added: {el.tag_name}",
                ast_node="JsxElement",
            )
        )
        if el.is_component and el.tag_name not in base_tags and el.tag_name not in reported:
            reported.add(el.tag_name)
            changes.append(
                SemanticChange(
                    kind=ChangeKind.COMPONENT_REFERENCE_CHANGED,
                    severity=Severity.MEDIUM,
                    line=el.line,
                    column=el.column,
                    detail=f"Component reference added: {el.tag_name}",
                    ast_node="JsxElement",
                )
            )

    for el in match.removed:
        changes.append(
            SemanticChange(
                kind=ChangeKind.JSX_ELEMENT_REMOVED,
                severity=Severity.LOW,
                line=el.line,
                column=el.column,
                detail=f"JSX element removed: {el.tag_name}",
                ast_node="JsxElement",
            )
        )
        if el.is_component and el.tag_name not in head_tags and el.tag_name not in reported:
            reported.add(el.tag_name)
            changes.append(
                SemanticChange(
                    kind=ChangeKind.COMPONENT_REFERENCE_CHANGED,
                    severity=Severity.MEDIUM,
                    line=el.line,
                    column=el.column,
                    detail=f"Component reference removed: {el.tag_name}",
                    ast_node="JsxElement",
                )
            )
    return changes
