"""Semantic context extraction."""

from semchange.context.builder import (
    GLOBAL_SCOPE,
    build_context,
    callee_path,
    cyclomatic_complexity,
    scope_name,
)
from semchange.context.models import (
    ClassEntity,
    ExportEntity,
    FunctionEntity,
    HookCallEntity,
    ImportEntity,
    InterfaceEntity,
    ParameterEntity,
    SemanticContext,
    SideEffectCallEntity,
    TypeAliasEntity,
    UIElementEntity,
    VariableEntity,
)

__all__ = [
    "GLOBAL_SCOPE",
    "build_context",
    "callee_path",
    "cyclomatic_complexity",
    "scope_name",
    "ClassEntity",
    "ExportEntity",
    "FunctionEntity",
    "HookCallEntity",
    "ImportEntity",
    "InterfaceEntity",
    "ParameterEntity",
    "SemanticContext",
    "SideEffectCallEntity",
    "TypeAliasEntity",
    "UIElementEntity",
    "VariableEntity",
]
