"""Declaration analyzers: functions, classes, interfaces and type aliases.

Declarations are matched by name: each head declaration looks up the
first base declaration with the same name. Unmatched head names are
additions and unmatched base names removals.
"""

from __future__ import annotations

from operator import attrgetter

from semchange.analysis.changes import ChangeKind, SemanticChange, Severity
from semchange.analysis.matching import first_by
from semchange.config.models import AnalyzerConfig
from semchange.context.models import FunctionEntity, ParameterEntity, SemanticContext

COMPLEXITY_DELTA_THRESHOLD = 3


_name = attrgetter("name")


def alpha_equivalent(
    base_params: tuple[ParameterEntity, ...],
    base_return: str,
    head_params: tuple[ParameterEntity, ...],
    head_return: str,
) -> bool:
    """True when two signatures differ at most in parameter names.

    Arity, per-position type text, per-position optionality and the return
    type must all match exactly.
    """
    if len(base_params) != len(head_params) or base_return != head_return:
        return False
    return all(
        b.type == h.type and b.optional == h.optional
        for b, h in zip(base_params, head_params, strict=True)
    )


def _signature_changed(base_fn: FunctionEntity, head_fn: FunctionEntity) -> bool:
    if base_fn.signature == head_fn.signature:
        return False
    return not alpha_equivalent(
        base_fn.parameters, base_fn.return_type, head_fn.parameters, head_fn.return_type
    )


def analyze_functions(
    base: SemanticContext,
    head: SemanticContext,
    config: AnalyzerConfig,  # noqa: ARG001
) -> list[SemanticChange]:
    """Compare named function declarations.

    Reports additions and removals, async flips, signature changes that
    are not mere parameter renames, and complexity swings larger than
    three decision points.
    """
    changes: list[SemanticChange] = []
    for fn in head.functions:
        base_fn = first_by(base.functions, _name, fn.name)
        if base_fn is None:
            changes.append(
                SemanticChange(
                    kind=ChangeKind.FUNCTION_ADDED,
                    severity=Severity.MEDIUM,
                    line=fn.line,
                    column=fn.column,
                    detail=f"Function added: {fn.name}",
                    ast_node="FunctionDeclaration",
                )
            )
            continue

        if fn.is_async and not base_fn.is_async:
            changes.append(
                SemanticChange(
                    kind=ChangeKind.ASYNC_AWAIT_ADDED,
                    severity=Severity.MEDIUM,
                    line=fn.line,
                    column=fn.column,
                    detail=f"Async/await usage added to function: {fn.name}",
                    ast_node="FunctionDeclaration",
                )
            )
        elif base_fn.is_async and not fn.is_async:
            changes.append(
                SemanticChange(
                    kind=ChangeKind.ASYNC_AWAIT_REMOVED,
                    severity=Severity.MEDIUM,
                    line=fn.line,
                    column=fn.column,
                    detail=f"Async/await usage removed from function: {fn.name}",
                    ast_node="FunctionDeclaration",
                )
            )

        if _signature_changed(base_fn, fn):
            changes.append(
                SemanticChange(
                    kind=ChangeKind.FUNCTION_SIGNATURE_CHANGED,
                    severity=Severity.HIGH,
                    line=fn.line,
                    column=fn.column,
                    detail=f"Function signature changed: {fn.name}",
                    ast_node="FunctionDeclaration",
                    context=f"{base_fn.signature} -> {fn.signature}",
                )
            )

        if abs(fn.complexity - base_fn.complexity) > COMPLEXITY_DELTA_THRESHOLD:
            changes.append(
                SemanticChange(
                    kind=ChangeKind.FUNCTION_COMPLEXITY_CHANGED,
                    severity=Severity.MEDIUM,
                    line=fn.line,
                    column=fn.column,
                    detail=(
                        f"Function complexity changed significantly: {fn.name} "
                        f"({base_fn.complexity} -> {fn.complexity})"
                    ),
                    ast_node="FunctionDeclaration",
                )
            )

    for base_fn in base.functions:
        if first_by(head.functions, _name, base_fn.name) is None:
            changes.append(
                SemanticChange(
                    kind=ChangeKind.FUNCTION_REMOVED,
                    severity=Severity.HIGH,
                    line=base_fn.line,
                    column=base_fn.column,
                    detail=f"Function removed: {base_fn.name}",
                    ast_node="FunctionDeclaration",
                )
            )
    return changes


def analyze_classes(
    base: SemanticContext,
    head: SemanticContext,
    config: AnalyzerConfig,  # noqa: ARG001
) -> list[SemanticChange]:
    """New classes, inheritance changes and new members.

    Member records carry the class position. Removed members and removed
    classes are not reported here.
    """
    changes: list[SemanticChange] = []
    for cls in head.classes:
        base_cls = first_by(base.classes, _name, cls.name)
        if base_cls is None:
            changes.append(
                SemanticChange(
                    kind=ChangeKind.CLASS_STRUCTURE_CHANGED,
                    severity=Severity.HIGH,
                    line=cls.line,
                    column=cls.column,
                    detail=f"Class added: {cls.name}",
                    ast_node="ClassDeclaration",
                )
            )
            continue

        if base_cls.extends != cls.extends:
            changes.append(
                SemanticChange(
                    kind=ChangeKind.CLASS_STRUCTURE_CHANGED,
                    severity=Severity.HIGH,
                    line=cls.line,
                    column=cls.column,
                    detail=f"Class inheritance changed: {cls.name}",
                    ast_node="ClassDeclaration",
                    context=f"{base_cls.extends or '(none)'} -> {cls.extends or '(none)'}",
                )
            )

        for method in cls.methods:
            if first_by(base_cls.methods, _name, method.name) is None:
                changes.append(
                    SemanticChange(
                        kind=ChangeKind.CLASS_STRUCTURE_CHANGED,
                        severity=Severity.HIGH,
                        line=cls.line,
                        column=cls.column,
                        detail=f"Method added to class: {cls.name}.{method.name}",
                        ast_node="MethodDeclaration",
                    )
                )

        for prop in cls.properties:
            if first_by(base_cls.properties, _name, prop.name) is None:
                changes.append(
                    SemanticChange(
                        kind=ChangeKind.CLASS_STRUCTURE_CHANGED,
                        severity=Severity.MEDIUM,
                        line=cls.line,
                        column=cls.column,
                        detail=f"Property added to class: {cls.name}.{prop.name}",
                        ast_node="PropertyDeclaration",
                    )
                )
    return changes


def analyze_interfaces(
    base: SemanticContext,
    head: SemanticContext,
    config: AnalyzerConfig,  # noqa: ARG001
) -> list[SemanticChange]:
    changes: list[SemanticChange] = []
    for iface in head.interfaces:
        base_iface = first_by(base.interfaces, _name, iface.name)
        if base_iface is None:
            changes.append(
                SemanticChange(
                    kind=ChangeKind.INTERFACE_MODIFIED,
                    severity=Severity.MEDIUM,
                    line=iface.line,
                    column=iface.column,
                    detail=f"Interface added: {iface.name}",
                    ast_node="InterfaceDeclaration",
                )
            )
            continue

        for prop in iface.properties:
            base_prop = first_by(base_iface.properties, _name, prop.name)
            if base_prop is None:
                changes.append(
                    SemanticChange(
                        kind=ChangeKind.INTERFACE_MODIFIED,
                        severity=Severity.MEDIUM,
                        line=iface.line,
                        column=iface.column,
                        detail=f"Property added to interface: {iface.name}.{prop.name}",
                        ast_node="PropertySignature",
                    )
                )
            elif base_prop.type != prop.type or base_prop.optional != prop.optional:
                base_sig = f"{base_prop.type}{'?' if base_prop.optional else ''}"
                head_sig = f"{prop.type}{'?' if prop.optional else ''}"
                changes.append(
                    SemanticChange(
                        kind=ChangeKind.INTERFACE_MODIFIED,
                        severity=Severity.HIGH,
                        line=iface.line,
                        column=iface.column,
                        detail=f"Property type changed in interface: {iface.name}.{prop.name}",
                        ast_node="PropertySignature",
                        context=f"{base_sig} -> {head_sig}",
                    )
                )

        for method in iface.methods:
            if first_by(base_iface.methods, _name, method.name) is None:
                changes.append(
                    SemanticChange(
                        kind=ChangeKind.INTERFACE_MODIFIED,
                        severity=Severity.HIGH,
                        line=iface.line,
                        column=iface.column,
                        detail=f"Method added to interface: {iface.name}.{method.name}",
                        ast_node="MethodSignature",
                    )
                )
    return changes


def analyze_type_aliases(
    base: SemanticContext,
    head: SemanticContext,
    config: AnalyzerConfig,  # noqa: ARG001
) -> list[SemanticChange]:
    changes: list[SemanticChange] = []
    for alias in head.types:
        base_alias = first_by(base.types, _name, alias.name)
        if base_alias is None:
            changes.append(
                SemanticChange(
                    kind=ChangeKind.TYPE_DEFINITION_CHANGED,
                    severity=Severity.LOW,
                    line=alias.line,
                    column=alias.column,
                    detail=f"Type alias added: {alias.name}",
                    ast_node="TypeAliasDeclaration",
                )
            )
        elif base_alias.definition != alias.definition:
            changes.append(
                SemanticChange(
                    kind=ChangeKind.TYPE_DEFINITION_CHANGED,
                    severity=Severity.MEDIUM,
                    line=alias.line,
                    column=alias.column,
                    detail=f"Type definition changed: {alias.name}",
                    ast_node="TypeAliasDeclaration",
                    context=f"{base_alias.definition} -> {alias.definition}",
                )
            )
    return changes
