"""Change records, severities and the change-kind taxonomy."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import StrEnum
from typing import Any


class Severity(StrEnum):
    """How likely a change is to alter runtime behavior or break callers."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    def at_least(self, other: Severity) -> bool:
        return self.rank >= other.rank


_SEVERITY_RANK = {Severity.LOW: 0, Severity.MEDIUM: 1, Severity.HIGH: 2}


class ChangeKind(StrEnum):
    """Closed set of change identifiers emitted in reports and annotations.

    Values are stable: they appear verbatim in CI annotation titles and in
    machine-readable output.
    """

    ARRAY_MUTATION = "arrayMutation"
    ASYNC_AWAIT_ADDED = "asyncAwaitAdded"
    ASYNC_AWAIT_REMOVED = "asyncAwaitRemoved"
    CLASS_STRUCTURE_CHANGED = "classStructureChanged"
    COMPARISON_OPERATOR_CHANGED = "comparisonOperatorChanged"
    COMPLEXITY_INCREASED = "complexityIncreased"
    COMPONENT_REFERENCE_CHANGED = "componentReferenceChanged"
    CONDITIONAL_ADDED = "conditionalAdded"
    CONDITIONAL_MODIFIED = "conditionalModified"
    CONDITIONAL_REMOVED = "conditionalRemoved"
    DESTRUCTURING_ADDED = "destructuringAdded"
    DESTRUCTURING_REMOVED = "destructuringRemoved"
    EFFECT_ADDED = "effectAdded"
    EFFECT_REMOVED = "effectRemoved"
    EXPORT_ADDED = "exportAdded"
    EXPORT_REMOVED = "exportRemoved"
    EXPORT_SIGNATURE_CHANGED = "exportSignatureChanged"
    FUNCTION_ADDED = "functionAdded"
    FUNCTION_CALL_ADDED = "functionCallAdded"
    FUNCTION_CALL_CHANGED = "functionCallChanged"
    FUNCTION_CALL_MODIFIED = "functionCallModified"
    FUNCTION_CALL_REMOVED = "functionCallRemoved"
    FUNCTION_COMPLEXITY_CHANGED = "functionComplexityChanged"
    FUNCTION_REMOVED = "functionRemoved"
    FUNCTION_SIGNATURE_CHANGED = "functionSignatureChanged"
    HOOK_ADDED = "hookAdded"
    HOOK_DEPENDENCY_CHANGED = "hookDependencyChanged"
    HOOK_REMOVED = "hookRemoved"
    IMPORT_ADDED = "importAdded"
    IMPORT_REMOVED = "importRemoved"
    IMPORT_STRUCTURE_CHANGED = "importStructureChanged"
    INTERFACE_MODIFIED = "interfaceModified"
    JSX_ELEMENT_ADDED = "jsxElementAdded"
    JSX_ELEMENT_REMOVED = "jsxElementRemoved"
    JSX_PROPS_CHANGED = "jsxPropsChanged"
    LOGICAL_OPERATOR_CHANGED = "logicalOperatorChanged"
    LOOP_ADDED = "loopAdded"
    LOOP_MODIFIED = "loopModified"
    LOOP_REMOVED = "loopRemoved"
    OBJECT_MUTATION = "objectMutation"
    PROMISE_ADDED = "promiseAdded"
    PROMISE_REMOVED = "promiseRemoved"
    SIDE_EFFECT_IMPORT_ADDED = "sideEffectImportAdded"
    SPREAD_OPERATOR_ADDED = "spreadOperatorAdded"
    SPREAD_OPERATOR_REMOVED = "spreadOperatorRemoved"
    STATE_MANAGEMENT_CHANGED = "stateManagementChanged"
    TERNARY_ADDED = "ternaryAdded"
    TERNARY_REMOVED = "ternaryRemoved"
    THROW_ADDED = "throwAdded"
    THROW_REMOVED = "throwRemoved"
    TRY_CATCH_ADDED = "tryCatchAdded"
    TRY_CATCH_MODIFIED = "tryCatchModified"
    TYPE_DEFINITION_CHANGED = "typeDefinitionChanged"
    VARIABLE_ASSIGNMENT_CHANGED = "variableAssignmentChanged"
    VARIABLE_DECLARATION_CHANGED = "variableDeclarationChanged"

    @property
    def is_ui(self) -> bool:
        """True for markup and component kinds (JSX rendering surface)."""
        return "jsx" in self.value or "component" in self.value

    @property
    def is_react(self) -> bool:
        return self.is_ui or "hook" in self.value.lower()


class ChangeKindGroup(StrEnum):
    """Logical groups used to switch families of change kinds on or off."""

    CORE_STRUCTURAL = "core-structural"
    DATA_FLOW = "data-flow"
    CONTROL_FLOW = "control-flow"
    REACT_HOOKS = "react-hooks"
    JSX_RENDERING = "jsx-rendering"
    IMPORTS_EXPORTS = "imports-exports"
    ASYNC_PATTERNS = "async-patterns"
    TYPE_SYSTEM = "type-system"
    SIDE_EFFECTS = "side-effects"
    COMPLEXITY = "complexity"
    ERROR_HANDLING = "error-handling"


CHANGE_KIND_GROUPS: dict[ChangeKindGroup, frozenset[ChangeKind]] = {
    ChangeKindGroup.CORE_STRUCTURAL: frozenset(
        {
            ChangeKind.FUNCTION_ADDED,
            ChangeKind.FUNCTION_REMOVED,
            ChangeKind.FUNCTION_SIGNATURE_CHANGED,
            ChangeKind.CLASS_STRUCTURE_CHANGED,
            ChangeKind.EXPORT_ADDED,
            ChangeKind.EXPORT_REMOVED,
            ChangeKind.EXPORT_SIGNATURE_CHANGED,
            ChangeKind.INTERFACE_MODIFIED,
        }
    ),
    ChangeKindGroup.DATA_FLOW: frozenset(
        {
            ChangeKind.VARIABLE_DECLARATION_CHANGED,
            ChangeKind.VARIABLE_ASSIGNMENT_CHANGED,
            ChangeKind.DESTRUCTURING_ADDED,
            ChangeKind.DESTRUCTURING_REMOVED,
            ChangeKind.ARRAY_MUTATION,
            ChangeKind.OBJECT_MUTATION,
        }
    ),
    ChangeKindGroup.CONTROL_FLOW: frozenset(
        {
            ChangeKind.CONDITIONAL_ADDED,
            ChangeKind.CONDITIONAL_MODIFIED,
            ChangeKind.CONDITIONAL_REMOVED,
            ChangeKind.LOOP_ADDED,
            ChangeKind.LOOP_MODIFIED,
            ChangeKind.LOOP_REMOVED,
            ChangeKind.LOGICAL_OPERATOR_CHANGED,
            ChangeKind.COMPARISON_OPERATOR_CHANGED,
            ChangeKind.TERNARY_ADDED,
            ChangeKind.TERNARY_REMOVED,
        }
    ),
    ChangeKindGroup.REACT_HOOKS: frozenset(
        {
            ChangeKind.HOOK_ADDED,
            ChangeKind.HOOK_REMOVED,
            ChangeKind.HOOK_DEPENDENCY_CHANGED,
            ChangeKind.STATE_MANAGEMENT_CHANGED,
        }
    ),
    ChangeKindGroup.JSX_RENDERING: frozenset(
        {
            ChangeKind.JSX_ELEMENT_ADDED,
            ChangeKind.JSX_ELEMENT_REMOVED,
            ChangeKind.JSX_PROPS_CHANGED,
            ChangeKind.COMPONENT_REFERENCE_CHANGED,
        }
    ),
    ChangeKindGroup.IMPORTS_EXPORTS: frozenset(
        {
            ChangeKind.IMPORT_ADDED,
            ChangeKind.IMPORT_REMOVED,
            ChangeKind.IMPORT_STRUCTURE_CHANGED,
            ChangeKind.SIDE_EFFECT_IMPORT_ADDED,
        }
    ),
    ChangeKindGroup.ASYNC_PATTERNS: frozenset(
        {
            ChangeKind.ASYNC_AWAIT_ADDED,
            ChangeKind.ASYNC_AWAIT_REMOVED,
            ChangeKind.PROMISE_ADDED,
            ChangeKind.PROMISE_REMOVED,
            ChangeKind.EFFECT_ADDED,
            ChangeKind.EFFECT_REMOVED,
        }
    ),
    ChangeKindGroup.TYPE_SYSTEM: frozenset({ChangeKind.TYPE_DEFINITION_CHANGED}),
    ChangeKindGroup.SIDE_EFFECTS: frozenset(
        {
            ChangeKind.FUNCTION_CALL_ADDED,
            ChangeKind.FUNCTION_CALL_CHANGED,
            ChangeKind.FUNCTION_CALL_MODIFIED,
            ChangeKind.FUNCTION_CALL_REMOVED,
        }
    ),
    ChangeKindGroup.COMPLEXITY: frozenset(
        {
            ChangeKind.FUNCTION_COMPLEXITY_CHANGED,
            ChangeKind.COMPLEXITY_INCREASED,
            ChangeKind.SPREAD_OPERATOR_ADDED,
            ChangeKind.SPREAD_OPERATOR_REMOVED,
        }
    ),
    ChangeKindGroup.ERROR_HANDLING: frozenset(
        {
            ChangeKind.THROW_ADDED,
            ChangeKind.THROW_REMOVED,
            ChangeKind.TRY_CATCH_ADDED,
            ChangeKind.TRY_CATCH_MODIFIED,
        }
    ),
}

_GROUP_BY_KIND: dict[ChangeKind, ChangeKindGroup] = {
    kind: group for group, kinds in CHANGE_KIND_GROUPS.items() for kind in kinds
}


def group_of(kind: ChangeKind) -> ChangeKindGroup:
    """Return the group a change kind belongs to."""
    return _GROUP_BY_KIND[kind]


@dataclass(frozen=True, slots=True)
class SemanticChange:
    """One detected semantic change.

    ``line`` is 1-indexed and ``column`` is the 1-indexed column of the
    construct's first token. Changes about removed constructs carry base
    positions, everything else head positions.
    """

    kind: ChangeKind
    severity: Severity
    line: int
    column: int
    detail: str
    ast_node: str
    context: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["kind"] = self.kind.value
        data["severity"] = self.severity.value
        return data
