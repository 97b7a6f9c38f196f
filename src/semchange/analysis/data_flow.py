"""Data-flow analyzers over bindings, assignments and in-place mutations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from semchange.analysis.changes import ChangeKind, SemanticChange, Severity
from semchange.analysis.matching import first_by, index_by_position, match_buckets
from semchange.analysis.normalize import normalize
from semchange.config.models import AnalyzerConfig
from semchange.context.builder import named_children
from semchange.context.models import SemanticContext

_PATTERN_KINDS = {
    "object_pattern": "ObjectBindingPattern",
    "array_pattern": "ArrayBindingPattern",
}


@dataclass(frozen=True, slots=True)
class Destructuring:
    key: str
    pattern: str
    initializer: str
    line: int
    column: int


def collect_destructuring(context: SemanticContext) -> list[Destructuring]:
    """Declarators binding an object or array pattern to an initializer."""
    result = context.tree
    found = []
    for node in context.nodes_of("variable_declarator"):
        pattern = node.child_by_field_name("name")
        value = node.child_by_field_name("value")
        if pattern is None or value is None or pattern.type not in _PATTERN_KINDS:
            continue
        line, column = result.position(node)
        key = (
            f"{_PATTERN_KINDS[pattern.type]}:{normalize(result.token_text(pattern))}"
            f"::{normalize(result.token_text(value))}"
        )
        found.append(
            Destructuring(
                key=key,
                pattern=normalize(result.text(pattern)),
                initializer=normalize(result.text(value)),
                line=line,
                column=column,
            )
        )
    return found


def analyze_destructuring(
    base: SemanticContext,
    head: SemanticContext,
    config: AnalyzerConfig,  # noqa: ARG001
) -> list[SemanticChange]:
    match = match_buckets(collect_destructuring(base), collect_destructuring(head), _key)
    changes = [
        SemanticChange(
            kind=ChangeKind.DESTRUCTURING_ADDED,
            severity=Severity.MEDIUM,
            line=info.line,
            column=info.column,
            detail=f"Destructuring added: {info.pattern} from {info.initializer}",
            ast_node="VariableDeclaration",
        )
        for info in match.added
    ]
    changes.extend(
        SemanticChange(
            kind=ChangeKind.DESTRUCTURING_REMOVED,
            severity=Severity.MEDIUM,
            line=info.line,
            column=info.column,
            detail=f"Destructuring removed: {info.pattern} from {info.initializer}",
            ast_node="VariableDeclaration",
        )
        for info in match.removed
    )
    return changes


@dataclass(frozen=True, slots=True)
class Spread:
    key: str
    display: str
    ast_node: str
    line: int
    column: int


def collect_spreads(context: SemanticContext) -> list[Spread]:
    """Spread elements inside object and array literals.

    Spreads in call arguments and JSX attributes are not collected.
    """
    result = context.tree
    spreads = []
    for node in context.nodes_of("spread_element"):
        parent = node.parent
        if parent is None or parent.type not in ("object", "array"):
            continue
        inner = named_children(node)
        if not inner:
            continue
        expression = normalize(result.token_text(inner[0]))
        line, column = result.position(node)
        if parent.type == "object":
            spread = Spread(
                key=f"object:{expression}",
                display=f"{{...{expression}}}",
                ast_node="SpreadAssignment",
                line=line,
                column=column,
            )
        else:
            spread = Spread(
                key=f"array:{expression}",
                display=f"...{expression}",
                ast_node="SpreadElement",
                line=line,
                column=column,
            )
        spreads.append(spread)
    return spreads


def analyze_spreads(
    base: SemanticContext,
    head: SemanticContext,
    config: AnalyzerConfig,  # noqa: ARG001
) -> list[SemanticChange]:
    match = match_buckets(collect_spreads(base), collect_spreads(head), _key)
    changes = [
        SemanticChange(
            kind=ChangeKind.SPREAD_OPERATOR_ADDED,
            severity=Severity.MEDIUM,
            line=spread.line,
            column=spread.column,
            detail=f"Spread operator added: {spread.display}",
            ast_node=spread.ast_node,
        )
        for spread in match.added
    ]
    changes.extend(
        SemanticChange(
            kind=ChangeKind.SPREAD_OPERATOR_REMOVED,
            severity=Severity.MEDIUM,
            line=spread.line,
            column=spread.column,
            detail=f"Spread operator removed: {spread.display}",
            ast_node=spread.ast_node,
        )
        for spread in match.removed
    )
    return changes


def analyze_variables(
    base: SemanticContext,
    head: SemanticContext,
    config: AnalyzerConfig,  # noqa: ARG001
) -> list[SemanticChange]:
    """New variables (low) and variables whose declared type changed (medium)."""
    changes = []
    for variable in head.variables:
        base_variable = first_by(base.variables, lambda v: v.name, variable.name)
        if base_variable is None:
            changes.append(
                SemanticChange(
                    kind=ChangeKind.VARIABLE_DECLARATION_CHANGED,
                    severity=Severity.LOW,
                    line=variable.line,
                    column=variable.column,
                    detail=f"Variable added: {variable.name}",
                    ast_node="VariableDeclaration",
                )
            )
        elif base_variable.type != variable.type:
            changes.append(
                SemanticChange(
                    kind=ChangeKind.VARIABLE_DECLARATION_CHANGED,
                    severity=Severity.MEDIUM,
                    line=variable.line,
                    column=variable.column,
                    detail=f"Variable type changed: {variable.name}",
                    ast_node="VariableDeclaration",
                    context=f"{base_variable.type} -> {variable.type}",
                )
            )
    return changes


# Assignments and mutations

ARRAY_MUTATION_METHODS = frozenset(
    {"push", "pop", "shift", "unshift", "splice", "sort", "reverse", "fill", "copyWithin"}
)
# Compound operators count as property writes; logical assignments (&&=, ||=, ??=) do not.
PROPERTY_WRITE_OPERATORS = frozenset(
    {"=", "+=", "-=", "*=", "**=", "/=", "%=", "<<=", ">>=", ">>>=", "|=", "^=", "&="}
)


@dataclass(frozen=True, slots=True)
class Mutation:
    key: str
    display: str
    line: int
    column: int


def collect_array_mutations(context: SemanticContext) -> list[Mutation]:
    """Calls of in-place array methods such as ``items.push(x)``."""
    result = context.tree
    mutations = []
    for node in context.nodes_of("call_expression"):
        callee = node.child_by_field_name("function")
        if callee is None or callee.type != "member_expression":
            continue
        target = callee.child_by_field_name("object")
        method = callee.child_by_field_name("property")
        if target is None or method is None:
            continue
        method_name = result.text(method)
        if method_name not in ARRAY_MUTATION_METHODS:
            continue
        line, column = result.position(node)
        mutations.append(
            Mutation(
                key=f"{normalize(result.token_text(target))}.{method_name}",
                display=f"{normalize(result.text(target))}.{method_name}()",
                line=line,
                column=column,
            )
        )
    return mutations


def analyze_array_mutations(
    base: SemanticContext,
    head: SemanticContext,
    config: AnalyzerConfig,  # noqa: ARG001
) -> list[SemanticChange]:
    """Report in-place array method calls that have no base counterpart.

    Calls pair up by target and method name, one-to-one in encounter order.
    Dropped mutations are not reported.
    """
    match = match_buckets(collect_array_mutations(base), collect_array_mutations(head), _key)
    return [
        SemanticChange(
            kind=ChangeKind.ARRAY_MUTATION,
            severity=Severity.MEDIUM,
            line=mutation.line,
            column=mutation.column,
            detail=f"Array mutation added via {mutation.display}",
            ast_node="CallExpression",
        )
        for mutation in match.added
    ]


def _is_property_write(node: Any) -> bool:
    left = node.child_by_field_name("left")
    if left is None or left.type not in ("member_expression", "subscript_expression"):
        return False
    if node.type == "assignment_expression":
        return True
    operator = node.child_by_field_name("operator")
    return operator is not None and operator.type in PROPERTY_WRITE_OPERATORS


def collect_object_mutations(context: SemanticContext) -> list[Mutation]:
    """Assignments whose target is a property access (``a.b = x``, ``a[k] += 1``)."""
    result = context.tree
    mutations = []
    for node in context.nodes_of("assignment_expression", "augmented_assignment_expression"):
        if not _is_property_write(node):
            continue
        left = node.child_by_field_name("left")
        line, column = result.position(node)
        mutations.append(
            Mutation(
                key=normalize(result.token_text(left)),
                display=normalize(result.text(left)),
                line=line,
                column=column,
            )
        )
    return mutations


def analyze_object_mutations(
    base: SemanticContext,
    head: SemanticContext,
    config: AnalyzerConfig,  # noqa: ARG001
) -> list[SemanticChange]:
    match = match_buckets(collect_object_mutations(base), collect_object_mutations(head), _key)
    return [
        SemanticChange(
            kind=ChangeKind.OBJECT_MUTATION,
            severity=Severity.MEDIUM,
            line=mutation.line,
            column=mutation.column,
            detail=f"Object property mutated: {mutation.display}",
            ast_node="BinaryExpression",
        )
        for mutation in match.added
    ]


@dataclass(frozen=True, slots=True)
class Assignment:
    assignee: str
    value: str
    display: str
    line: int
    column: int


def collect_assignments(context: SemanticContext) -> list[Assignment]:
    """Plain ``name = value`` assignments to a bare identifier."""
    result = context.tree
    assignments = []
    for node in context.nodes_of("assignment_expression"):
        left = node.child_by_field_name("left")
        right = node.child_by_field_name("right")
        if left is None or right is None or left.type != "identifier":
            continue
        line, column = result.position(node)
        assignments.append(
            Assignment(
                assignee=result.text(left),
                value=normalize(result.token_text(right)),
                display=normalize(result.text(right)),
                line=line,
                column=column,
            )
        )
    return assignments


def analyze_variable_assignments(
    base: SemanticContext,
    head: SemanticContext,
    config: AnalyzerConfig,  # noqa: ARG001
) -> list[SemanticChange]:
    """Report assignments whose right-hand side changed in place.

    Only an assignment to the same name at the same position is compared;
    new and deleted assignments are not reported here.
    """
    base_by_position = index_by_position(
        collect_assignments(base), lambda a: (a.line, a.column)
    )
    changes = []
    for assignment in collect_assignments(head):
        previous = base_by_position.get((assignment.line, assignment.column))
        if previous is None or previous.assignee != assignment.assignee:
            continue
        if previous.value == assignment.value:
            continue
        changes.append(
            SemanticChange(
                kind=ChangeKind.VARIABLE_ASSIGNMENT_CHANGED,
                severity=Severity.MEDIUM,
                line=assignment.line,
                column=assignment.column,
                detail=(
                    f"Assignment updated for {assignment.assignee}: "
                    f"{previous.display} -> {assignment.display}"
                ),
                ast_node="BinaryExpression",
            )
        )
    return changes


def _key(item: Destructuring | Spread | Mutation) -> str:
    return item.key
