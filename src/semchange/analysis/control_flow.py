"""Control-flow analyzers: branches, loops, error handling and returned promises."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from semchange.analysis.changes import ChangeKind, SemanticChange, Severity
from semchange.analysis.matching import FifoMultimap, match_by_position
from semchange.analysis.normalize import normalize
from semchange.config.models import AnalyzerConfig
from semchange.context.builder import has_token, named_children, scope_name
from semchange.context.models import SemanticContext

LOOP_NODE_TYPES = ("for_statement", "for_in_statement", "while_statement", "do_statement")


@dataclass(frozen=True, slots=True)
class Statement:
    """A statement occurrence compared by position and comment-free text."""

    line: int
    column: int
    text: str
    label: str = ""
    ast_node: str = ""
    parts: tuple[str, ...] = ()

    @property
    def position(self) -> tuple[int, int]:
        return self.line, self.column


def _pos(item: Statement) -> tuple[int, int]:
    return item.position


def _text(item: Statement) -> str:
    return item.text


def _unwrap_parens(node: Any) -> Any:
    if node.type == "parenthesized_expression":
        inner = named_children(node)
        if len(inner) == 1:
            return inner[0]
    return node


# Conditionals


@dataclass(frozen=True, slots=True)
class Conditional:
    fingerprint: str
    condition: str
    display: str
    scope: str
    line: int
    column: int


def collect_conditionals(context: SemanticContext) -> list[Conditional]:
    result = context.tree
    conditionals = []
    for node in context.nodes_of("if_statement"):
        condition = node.child_by_field_name("condition")
        consequence = node.child_by_field_name("consequence")
        alternative = node.child_by_field_name("alternative")
        if condition is None or consequence is None:
            continue
        condition = _unwrap_parens(condition)
        else_text = ""
        if alternative is not None:
            else_body = named_children(alternative)
            else_text = normalize(result.token_text(else_body[0])) if else_body else ""
        scope = scope_name(node, result)
        line, column = result.position(node)
        conditionals.append(
            Conditional(
                fingerprint=f"{scope}::{normalize(result.token_text(consequence))}::{else_text}",
                condition=normalize(result.token_text(condition)),
                display=normalize(result.text(condition)),
                scope=scope,
                line=line,
                column=column,
            )
        )
    return conditionals


def analyze_conditionals(
    base: SemanticContext,
    head: SemanticContext,
    config: AnalyzerConfig,  # noqa: ARG001
) -> list[SemanticChange]:
    """Pair ``if`` statements by scope and branch bodies, then compare guards.

    Each head conditional consumes the oldest base conditional with the
    same fingerprint. Unconsumed base conditionals are reported as removed
    after all head conditionals.
    """
    buckets: FifoMultimap[str, Conditional] = FifoMultimap.from_items(
        collect_conditionals(base), lambda c: c.fingerprint
    )
    changes: list[SemanticChange] = []

    for info in collect_conditionals(head):
        base_info = buckets.pop_front(info.fingerprint)
        if base_info is None:
            changes.append(
                SemanticChange(
                    kind=ChangeKind.CONDITIONAL_ADDED,
                    severity=Severity.HIGH,
                    line=info.line,
                    column=info.column,
                    detail=f"Conditional added in {info.scope}: {info.display}",
                    ast_node="IfStatement",
                )
            )
        elif base_info.condition != info.condition:
            changes.append(
                SemanticChange(
                    kind=ChangeKind.CONDITIONAL_MODIFIED,
                    severity=Severity.HIGH,
                    line=info.line,
                    column=info.column,
                    detail=(
                        f"Conditional modified in {info.scope}: "
                        f"{base_info.display} -> {info.display}"
                    ),
                    ast_node="IfStatement",
                )
            )

    for info in buckets.remaining():
        changes.append(
            SemanticChange(
                kind=ChangeKind.CONDITIONAL_REMOVED,
                severity=Severity.HIGH,
                line=info.line,
                column=info.column,
                detail=f"Conditional removed from {info.scope}: {info.display}",
                ast_node="IfStatement",
            )
        )
    return changes


# Loops

_LOOP_LABELS = {
    "for_statement": ("for", "ForStatement"),
    "while_statement": ("while", "WhileStatement"),
    "do_statement": ("do...while", "DoStatement"),
}


def collect_loops(context: SemanticContext) -> list[Statement]:
    result = context.tree
    loops = []
    for node in context.nodes_of(*LOOP_NODE_TYPES):
        if node.type == "for_in_statement":
            if has_token(node, "of"):
                label, ast_node = "for...of", "ForOfStatement"
            else:
                label, ast_node = "for...in", "ForInStatement"
        else:
            label, ast_node = _LOOP_LABELS[node.type]
        line, column = result.position(node)
        loops.append(
            Statement(
                line=line,
                column=column,
                text=normalize(result.token_text(node)),
                label=label,
                ast_node=ast_node,
            )
        )
    return loops


def analyze_loops(
    base: SemanticContext,
    head: SemanticContext,
    config: AnalyzerConfig,  # noqa: ARG001
) -> list[SemanticChange]:
    match = match_by_position(collect_loops(base), collect_loops(head), _pos, _text)
    changes = [
        SemanticChange(
            kind=ChangeKind.LOOP_ADDED if base_loop is None else ChangeKind.LOOP_MODIFIED,
            severity=Severity.MEDIUM,
            line=loop.line,
            column=loop.column,
            detail=f"Loop {'added' if base_loop is None else 'modified'}: {loop.label}",
            ast_node=loop.ast_node,
        )
        for base_loop, loop in match.edits
    ]
    changes.extend(
        SemanticChange(
            kind=ChangeKind.LOOP_REMOVED,
            severity=Severity.MEDIUM,
            line=loop.line,
            column=loop.column,
            detail=f"Loop removed: {loop.label}",
            ast_node=loop.ast_node,
        )
        for loop in match.removed
    )
    return changes


# Try/catch


def collect_try_statements(context: SemanticContext) -> list[Statement]:
    result = context.tree
    statements = []
    for node in context.nodes_of("try_statement"):
        parts = []
        body = node.child_by_field_name("body")
        parts.append(normalize(result.token_text(body)) if body is not None else "")
        for field_name in ("handler", "finalizer"):
            clause = node.child_by_field_name(field_name)
            block = clause.child_by_field_name("body") if clause is not None else None
            parts.append(normalize(result.token_text(block)) if block is not None else "")
        line, column = result.position(node)
        statements.append(
            Statement(
                line=line,
                column=column,
                text=normalize(result.token_text(node)),
                parts=tuple(parts),
            )
        )
    return statements


def analyze_try_catch(
    base: SemanticContext,
    head: SemanticContext,
    config: AnalyzerConfig,  # noqa: ARG001
) -> list[SemanticChange]:
    """Report new and edited try blocks. Removed blocks are not reported."""
    match = match_by_position(
        collect_try_statements(base), collect_try_statements(head), _pos, _text
    )
    changes = []
    for base_stmt, stmt in match.edits:
        if base_stmt is None:
            kind, detail = ChangeKind.TRY_CATCH_ADDED, "try/catch block added"
        elif base_stmt.parts != stmt.parts:
            kind, detail = ChangeKind.TRY_CATCH_MODIFIED, "try/catch block modified"
        else:
            continue
        changes.append(
            SemanticChange(
                kind=kind,
                severity=Severity.MEDIUM,
                line=stmt.line,
                column=stmt.column,
                detail=detail,
                ast_node="TryStatement",
            )
        )
    return changes


# Throw


def collect_throws(context: SemanticContext) -> list[Statement]:
    result = context.tree
    throws = []
    for node in context.nodes_of("throw_statement"):
        expression = named_children(node)
        line, column = result.position(node)
        throws.append(
            Statement(
                line=line,
                column=column,
                text=normalize(result.token_text(expression[0])) if expression else "",
                label=normalize(result.text(expression[0])) if expression else "",
            )
        )
    return throws


def _throw_detail(verb: str, stmt: Statement) -> str:
    if stmt.label:
        return f"Throw {verb}: {stmt.label}"
    return f"Throw statement {verb}"


def analyze_throws(
    base: SemanticContext,
    head: SemanticContext,
    config: AnalyzerConfig,  # noqa: ARG001
) -> list[SemanticChange]:
    """Compare thrown expressions.

    A throw whose expression changed in place is reported as a new throw
    carrying both expressions in ``context``.
    """
    match = match_by_position(collect_throws(base), collect_throws(head), _pos, _text)
    changes = []
    for base_stmt, stmt in match.edits:
        if base_stmt is None:
            changes.append(
                SemanticChange(
                    kind=ChangeKind.THROW_ADDED,
                    severity=Severity.HIGH,
                    line=stmt.line,
                    column=stmt.column,
                    detail=_throw_detail("added", stmt),
                    ast_node="ThrowStatement",
                )
            )
        else:
            changes.append(
                SemanticChange(
                    kind=ChangeKind.THROW_ADDED,
                    severity=Severity.HIGH,
                    line=stmt.line,
                    column=stmt.column,
                    detail=f"Throw expression changed: {stmt.label}",
                    ast_node="ThrowStatement",
                    context=f"{base_stmt.label} -> {stmt.label}",
                )
            )
    changes.extend(
        SemanticChange(
            kind=ChangeKind.THROW_REMOVED,
            severity=Severity.HIGH,
            line=stmt.line,
            column=stmt.column,
            detail=_throw_detail("removed", stmt),
            ast_node="ThrowStatement",
        )
        for stmt in match.removed
    )
    return changes


# Ternaries


def collect_ternaries(context: SemanticContext) -> list[Statement]:
    result = context.tree
    ternaries = []
    for node in context.nodes_of("ternary_expression"):
        condition = node.child_by_field_name("condition")
        if condition is None:
            continue
        line, column = result.position(node)
        ternaries.append(
            Statement(
                line=line,
                column=column,
                text=normalize(result.token_text(node)),
                label=normalize(result.text(condition)),
            )
        )
    return ternaries


def analyze_ternaries(
    base: SemanticContext,
    head: SemanticContext,
    config: AnalyzerConfig,  # noqa: ARG001
) -> list[SemanticChange]:
    match = match_by_position(collect_ternaries(base), collect_ternaries(head), _pos, _text)
    changes = [
        SemanticChange(
            kind=ChangeKind.TERNARY_ADDED,
            severity=Severity.MEDIUM,
            line=expr.line,
            column=expr.column,
            detail=f"Ternary expression added: condition {expr.label}",
            ast_node="ConditionalExpression",
        )
        for expr in match.added
    ]
    changes.extend(
        SemanticChange(
            kind=ChangeKind.TERNARY_REMOVED,
            severity=Severity.MEDIUM,
            line=expr.line,
            column=expr.column,
            detail=f"Ternary expression removed: condition {expr.label}",
            ast_node="ConditionalExpression",
        )
        for expr in match.removed
    )
    return changes


# Promise returns

_PROMISE_ACCESS = re.compile(r"Promise\s*\.")


@dataclass(frozen=True, slots=True)
class ReturnSite:
    line: int
    column: int
    text: str
    returns_promise: bool


def _is_promise_identifier(node: Any | None, result: Any) -> bool:
    return node is not None and node.type == "identifier" and result.text(node) == "Promise"


def returns_promise(expression: Any | None, result: Any) -> bool:
    """True for ``Promise.x(...)``, ``new Promise(...)``, ``Promise.x`` and ``Promise``.

    Any other expression whose text contains a ``Promise.`` access also
    counts.
    """
    if expression is None:
        return False
    if expression.type == "call_expression":
        callee = expression.child_by_field_name("function")
        if callee is not None and callee.type == "member_expression":
            if _is_promise_identifier(callee.child_by_field_name("object"), result):
                return True
    elif expression.type == "new_expression":
        if _is_promise_identifier(expression.child_by_field_name("constructor"), result):
            return True
    elif expression.type == "member_expression":
        if _is_promise_identifier(expression.child_by_field_name("object"), result):
            return True
    text = result.text(expression)
    return _PROMISE_ACCESS.search(text) is not None or text.strip() == "Promise"


def collect_returns(context: SemanticContext) -> list[ReturnSite]:
    result = context.tree
    returns = []
    for node in context.nodes_of("return_statement"):
        value = named_children(node)
        line, column = result.position(node)
        returns.append(
            ReturnSite(
                line=line,
                column=column,
                text=normalize(result.token_text(node)),
                returns_promise=returns_promise(value[0] if value else None, result),
            )
        )
    return returns


def analyze_promises(
    base: SemanticContext,
    head: SemanticContext,
    config: AnalyzerConfig,  # noqa: ARG001
) -> list[SemanticChange]:
    """Report return statements that start or stop handing back a Promise.

    Returns are aligned like other statements, so a moved return is
    compared with its old self. Additions come first in head order, then
    removals in base order.
    """
    match = match_by_position(
        collect_returns(base),
        collect_returns(head),
        lambda r: (r.line, r.column),
        lambda r: r.text,
    )
    changes = [
        SemanticChange(
            kind=ChangeKind.PROMISE_ADDED,
            severity=Severity.MEDIUM,
            line=site.line,
            column=site.column,
            detail="Return value now resolves a Promise",
            ast_node="ReturnStatement",
        )
        for previous, site in match.edits
        if site.returns_promise and (previous is None or not previous.returns_promise)
    ]
    lost = [
        previous
        for previous, site in match.changed
        if previous.returns_promise and not site.returns_promise
    ]
    lost.extend(site for site in match.removed if site.returns_promise)
    lost.sort(key=lambda r: (r.line, r.column))
    changes.extend(
        SemanticChange(
            kind=ChangeKind.PROMISE_REMOVED,
            severity=Severity.MEDIUM,
            line=site.line,
            column=site.column,
            detail="Promise return removed",
            ast_node="ReturnStatement",
        )
        for site in lost
    )
    return changes
