"""Module-surface analyzers: imports and exports."""

from __future__ import annotations

from operator import attrgetter

from semchange.analysis.changes import ChangeKind, SemanticChange, Severity
from semchange.analysis.matching import first_by
from semchange.config.models import AnalyzerConfig
from semchange.context.builder import matches_any
from semchange.context.models import SemanticContext

_module = attrgetter("module")
_name = attrgetter("name")

VARIABLE_EXPORT_TYPES = ("variable", "const")


def analyze_imports(
    base: SemanticContext, head: SemanticContext, config: AnalyzerConfig
) -> list[SemanticChange]:
    """Compare import declarations keyed by module specifier.

    A new import of a module matching ``side_effect_modules`` is reported
    as a side-effect import (high) instead of a plain addition (low).
    """
    changes: list[SemanticChange] = []
    for imp in head.imports:
        base_imp = first_by(base.imports, _module, imp.module)
        if base_imp is None:
            if matches_any(imp.module, config.side_effect_modules):
                changes.append(
                    SemanticChange(
                        kind=ChangeKind.SIDE_EFFECT_IMPORT_ADDED,
                        severity=Severity.HIGH,
                        line=imp.line,
                        column=imp.column,
                        detail=f"Side-effect import added: {imp.module}",
                        ast_node="ImportDeclaration",
                    )
                )
            else:
                changes.append(
                    SemanticChange(
                        kind=ChangeKind.IMPORT_ADDED,
                        severity=Severity.LOW,
                        line=imp.line,
                        column=imp.column,
                        detail=f"Import added: {imp.module}",
                        ast_node="ImportDeclaration",
                    )
                )
            continue

        new_specifiers = [s for s in imp.specifiers if s not in base_imp.specifiers]
        if new_specifiers:
            changes.append(
                SemanticChange(
                    kind=ChangeKind.IMPORT_STRUCTURE_CHANGED,
                    severity=Severity.LOW,
                    line=imp.line,
                    column=imp.column,
                    detail=f"Import specifiers added: {', '.join(new_specifiers)}",
                    ast_node="ImportDeclaration",
                )
            )

    for base_imp in base.imports:
        if first_by(head.imports, _module, base_imp.module) is None:
            changes.append(
                SemanticChange(
                    kind=ChangeKind.IMPORT_REMOVED,
                    severity=Severity.MEDIUM,
                    line=base_imp.line,
                    column=base_imp.column,
                    detail=f"Import removed: {base_imp.module}",
                    ast_node="ImportDeclaration",
                )
            )
    return changes


def analyze_exports(
    base: SemanticContext,
    head: SemanticContext,
    config: AnalyzerConfig,  # noqa: ARG001
) -> list[SemanticChange]:
    """Compare the exported names of two file versions.

    A kind or default-ness change is high. For exported variables, a change
    of the declared type of the same-named variable is medium.
    """
    changes: list[SemanticChange] = []
    for export in head.exports:
        base_export = first_by(base.exports, _name, export.name)
        if base_export is None:
            changes.append(
                SemanticChange(
                    kind=ChangeKind.EXPORT_ADDED,
                    severity=Severity.MEDIUM,
                    line=export.line,
                    column=export.column,
                    detail=f"Export added: {export.name} ({export.type})",
                    ast_node="ExportDeclaration",
                )
            )
            continue

        if base_export.type != export.type or base_export.is_default != export.is_default:
            changes.append(
                SemanticChange(
                    kind=ChangeKind.EXPORT_SIGNATURE_CHANGED,
                    severity=Severity.HIGH,
                    line=export.line,
                    column=export.column,
                    detail=f"Export signature changed: {export.name}",
                    ast_node="ExportDeclaration",
                    context=f"{base_export.type} -> {export.type}",
                )
            )
            continue

        if export.type in VARIABLE_EXPORT_TYPES:
            base_var = first_by(base.variables, _name, export.name)
            head_var = first_by(head.variables, _name, export.name)
            if base_var is not None and head_var is not None and base_var.type != head_var.type:
                changes.append(
                    SemanticChange(
                        kind=ChangeKind.EXPORT_SIGNATURE_CHANGED,
                        severity=Severity.MEDIUM,
                        line=export.line,
                        column=export.column,
                        detail=(
                            f"Export signature changed: {export.name} "
                            f"({base_var.type} -> {head_var.type})"
                        ),
                        ast_node="ExportDeclaration",
                    )
                )

    for base_export in base.exports:
        if first_by(head.exports, _name, base_export.name) is None:
            changes.append(
                SemanticChange(
                    kind=ChangeKind.EXPORT_REMOVED,
                    severity=Severity.HIGH,
                    line=base_export.line,
                    column=base_export.column,
                    detail=f"Export removed: {base_export.name}",
                    ast_node="ExportDeclaration",
                )
            )
    return changes
