"""Call-site analyzers: new side-effect calls and changed call arguments."""

from __future__ import annotations

from dataclasses import dataclass

from semchange.analysis.changes import ChangeKind, SemanticChange, Severity
from semchange.analysis.matching import index_by_position
from semchange.analysis.normalize import normalize
from semchange.config.models import AnalyzerConfig
from semchange.context.builder import is_react_hook, named_children
from semchange.context.models import SemanticContext

# A base call this many lines away still counts as the same call site.
LINE_TOLERANCE = 2


def analyze_side_effects(
    base: SemanticContext,
    head: SemanticContext,
    config: AnalyzerConfig,  # noqa: ARG001
) -> list[SemanticChange]:
    """Flag new calls to configured side-effect callees.

    The call sites were selected by ``side_effect_callees`` when the
    contexts were built. A head call pairs with any base call of the same
    name at most ``LINE_TOLERANCE`` lines away. Line numbers are the only
    anchor, so a re-layout that shifts an unchanged call further than that
    (blank lines or a reflowed block above it) reports it as added.
    """
    changes = []
    for call in head.side_effect_calls:
        nearby = any(
            base_call.name == call.name and abs(base_call.line - call.line) <= LINE_TOLERANCE
            for base_call in base.side_effect_calls
        )
        if nearby:
            continue
        changes.append(
            SemanticChange(
                kind=ChangeKind.FUNCTION_CALL_ADDED,
                severity=Severity.HIGH,
                line=call.line,
                column=call.column,
                detail=f"Side effect call added: {call.name}",
                ast_node="CallExpression",
            )
        )
    return changes


@dataclass(frozen=True, slots=True)
class CallSite:
    callee: str
    display: str
    arguments: tuple[str, ...]
    shown_arguments: tuple[str, ...]
    is_hook: bool
    line: int
    column: int


def collect_call_sites(context: SemanticContext) -> list[CallSite]:
    """Every call expression with its callee and comment-free argument texts.

    A tagged template (``sql`...```) has its template as the only argument.
    """
    result = context.tree
    calls = []
    for node in context.nodes_of("call_expression"):
        callee = node.child_by_field_name("function")
        arguments = node.child_by_field_name("arguments")
        if callee is None:
            continue
        if arguments is None:
            args = []
        elif arguments.type == "arguments":
            args = named_children(arguments)
        else:
            args = [arguments]
        line, column = result.position(node)
        calls.append(
            CallSite(
                callee=normalize(result.token_text(callee)),
                display=normalize(result.text(callee)),
                arguments=tuple(normalize(result.token_text(arg)) for arg in args),
                shown_arguments=tuple(normalize(result.text(arg)) for arg in args),
                is_hook=callee.type == "identifier" and is_react_hook(result.text(callee)),
                line=line,
                column=column,
            )
        )
    return calls


def _call_position(call: CallSite) -> tuple[int, int]:
    return call.line, call.column


def _argument_list(args: tuple[str, ...]) -> str:
    return ", ".join(args) if args else "empty"


def analyze_function_calls(
    base: SemanticContext,
    head: SemanticContext,
    config: AnalyzerConfig,  # noqa: ARG001
) -> list[SemanticChange]:
    """Report calls whose arguments changed while the callee stayed put.

    Calls are keyed by start position and must name the same callee on both
    sides. In a chain such as ``a.b(x).c(y)`` every call starts at ``a``;
    the innermost one represents that position. Hook calls are left to the
    hook analyzer.
    """
    base_by_position = index_by_position(collect_call_sites(base), _call_position)
    head_by_position = index_by_position(collect_call_sites(head), _call_position)
    changes = []
    for call in head_by_position.values():
        if call.is_hook:
            continue
        previous = base_by_position.get((call.line, call.column))
        if previous is None or previous.is_hook or previous.callee != call.callee:
            continue
        if previous.arguments == call.arguments:
            continue
        changes.append(
            SemanticChange(
                kind=ChangeKind.FUNCTION_CALL_MODIFIED,
                severity=Severity.MEDIUM,
                line=call.line,
                column=call.column,
                detail=(
                    f"Call to {call.display} arguments changed: "
                    f"[{_argument_list(previous.shown_arguments)}] -> "
                    f"[{_argument_list(call.shown_arguments)}]"
                ),
                ast_node="CallExpression",
            )
        )
    return changes
