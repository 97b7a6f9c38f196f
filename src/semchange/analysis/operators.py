"""Operator analyzers.

Binary expressions are keyed by the position of their operator token. An
operator change is reported only when both operands read the same, so an
edit that rewrites the whole expression stays with the other analyzers.
"""

from __future__ import annotations

from dataclasses import dataclass

from semchange.analysis.changes import ChangeKind, SemanticChange, Severity
from semchange.analysis.matching import index_by_position
from semchange.analysis.normalize import normalize
from semchange.config.models import AnalyzerConfig
from semchange.context.models import SemanticContext

COMPARISON_OPERATORS = frozenset({"==", "===", "!=", "!==", "<", "<=", ">", ">="})
LOGICAL_OPERATORS = frozenset({"&&", "||", "??"})


@dataclass(frozen=True, slots=True)
class BinaryOperation:
    operator: str
    left: str
    right: str
    line: int
    column: int


def collect_operations(
    context: SemanticContext, operators: frozenset[str]
) -> dict[tuple[int, int], BinaryOperation]:
    """Binary expressions using one of ``operators``, keyed by operator position."""
    result = context.tree
    operations = []
    for node in context.nodes_of("binary_expression"):
        operator = node.child_by_field_name("operator")
        left = node.child_by_field_name("left")
        right = node.child_by_field_name("right")
        if operator is None or left is None or right is None:
            continue
        if operator.type not in operators:
            continue
        line, column = result.position(operator)
        operations.append(
            BinaryOperation(
                operator=operator.type,
                left=normalize(result.token_text(left)),
                right=normalize(result.token_text(right)),
                line=line,
                column=column,
            )
        )
    return index_by_position(operations, lambda op: (op.line, op.column))


def _operator_changes(
    base: SemanticContext,
    head: SemanticContext,
    operators: frozenset[str],
    kind: ChangeKind,
    label: str,
) -> list[SemanticChange]:
    base_ops = collect_operations(base, operators)
    changes = []
    for position, head_op in collect_operations(head, operators).items():
        base_op = base_ops.get(position)
        if base_op is None or base_op.operator == head_op.operator:
            continue
        if base_op.left != head_op.left or base_op.right != head_op.right:
            continue
        changes.append(
            SemanticChange(
                kind=kind,
                severity=Severity.MEDIUM,
                line=head_op.line,
                column=head_op.column,
                detail=(
                    f"{label} operator changed from {base_op.operator} to {head_op.operator} "
                    f"between {head_op.left} and {head_op.right}"
                ),
                ast_node="BinaryExpression",
            )
        )
    return changes


def analyze_comparison_operators(
    base: SemanticContext,
    head: SemanticContext,
    config: AnalyzerConfig,  # noqa: ARG001
) -> list[SemanticChange]:
    return _operator_changes(
        base, head, COMPARISON_OPERATORS, ChangeKind.COMPARISON_OPERATOR_CHANGED, "Comparison"
    )


def analyze_logical_operators(
    base: SemanticContext,
    head: SemanticContext,
    config: AnalyzerConfig,  # noqa: ARG001
) -> list[SemanticChange]:
    return _operator_changes(
        base, head, LOGICAL_OPERATORS, ChangeKind.LOGICAL_OPERATOR_CHANGED, "Logical"
    )
