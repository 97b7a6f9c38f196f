"""Entities extracted from one parsed file version.

Every entity is a frozen dataclass holding plain values; collections are
tuples in source order. Lines and columns are 1-indexed and point at the
first token of the construct.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Literal

from semchange.parsing.treesitter import ParseResult

ExportType = Literal["function", "class", "interface", "type", "variable", "const"]
Visibility = Literal["public", "private", "protected"]
PropType = Literal["literal", "expression", "spread"]

BUILTIN_HOOKS = frozenset(
    {"useState", "useEffect", "useCallback", "useMemo", "useContext", "useReducer"}
)
STATE_HOOKS = ("useState", "useReducer")


@dataclass(frozen=True, slots=True)
class ParameterEntity:
    name: str
    type: str
    optional: bool


@dataclass(frozen=True, slots=True)
class FunctionEntity:
    name: str
    parameters: tuple[ParameterEntity, ...]
    return_type: str
    is_async: bool
    complexity: int
    line: int
    column: int

    @property
    def signature(self) -> str:
        """Signature string ``name(p?: T, ...): ret`` used for comparison."""
        return format_signature(self.name, self.parameters, self.return_type)


@dataclass(frozen=True, slots=True)
class MethodEntity:
    name: str
    parameters: tuple[ParameterEntity, ...]
    return_type: str
    is_async: bool
    is_static: bool
    visibility: Visibility


@dataclass(frozen=True, slots=True)
class PropertyEntity:
    name: str
    type: str
    is_static: bool
    visibility: Visibility


@dataclass(frozen=True, slots=True)
class ClassEntity:
    name: str
    extends: str | None
    implements: tuple[str, ...]
    methods: tuple[MethodEntity, ...]
    properties: tuple[PropertyEntity, ...]
    line: int
    column: int


@dataclass(frozen=True, slots=True)
class InterfacePropertyEntity:
    name: str
    type: str
    optional: bool


@dataclass(frozen=True, slots=True)
class InterfaceMethodEntity:
    name: str
    parameters: tuple[ParameterEntity, ...]
    return_type: str


@dataclass(frozen=True, slots=True)
class InterfaceEntity:
    name: str
    extends: tuple[str, ...]
    properties: tuple[InterfacePropertyEntity, ...]
    methods: tuple[InterfaceMethodEntity, ...]
    line: int
    column: int


@dataclass(frozen=True, slots=True)
class ExportEntity:
    name: str
    type: ExportType
    is_default: bool
    line: int
    column: int


@dataclass(frozen=True, slots=True)
class ImportEntity:
    module: str
    specifiers: tuple[str, ...]
    is_default: bool
    is_namespace: bool
    line: int
    column: int


@dataclass(frozen=True, slots=True)
class VariableEntity:
    name: str
    type: str
    is_const: bool
    has_initializer: bool
    line: int
    column: int


@dataclass(frozen=True, slots=True)
class TypeAliasEntity:
    name: str
    definition: str
    line: int
    column: int


@dataclass(frozen=True, slots=True)
class HookCallEntity:
    """Call site of a ``useXxx`` hook.

    ``type`` is the hook name for built-in hooks and ``"custom"`` otherwise.
    """

    name: str
    type: str
    dependencies: tuple[str, ...]
    line: int
    column: int

    @property
    def is_state_hook(self) -> bool:
        return self.type in STATE_HOOKS


@dataclass(frozen=True, slots=True)
class PropEntity:
    name: str
    type: PropType


@dataclass(frozen=True, slots=True)
class UIElementEntity:
    tag_name: str
    props: tuple[PropEntity, ...]
    has_children: bool
    is_component: bool
    line: int
    column: int

    @property
    def prop_names(self) -> frozenset[str]:
        return frozenset(prop.name for prop in self.props)


@dataclass(frozen=True, slots=True)
class SideEffectCallEntity:
    name: str
    arguments: int
    line: int
    column: int


@dataclass(frozen=True)
class SemanticContext:
    """Immutable structural snapshot of one parsed file version."""

    tree: ParseResult = field(repr=False)
    functions: tuple[FunctionEntity, ...] = ()
    classes: tuple[ClassEntity, ...] = ()
    interfaces: tuple[InterfaceEntity, ...] = ()
    exports: tuple[ExportEntity, ...] = ()
    imports: tuple[ImportEntity, ...] = ()
    variables: tuple[VariableEntity, ...] = ()
    types: tuple[TypeAliasEntity, ...] = ()
    hooks: tuple[HookCallEntity, ...] = ()
    ui_elements: tuple[UIElementEntity, ...] = ()
    side_effect_calls: tuple[SideEffectCallEntity, ...] = ()
    complexity: int = 1
    nodes: tuple[Any, ...] = field(default=(), repr=False)

    @property
    def path(self) -> str:
        return self.tree.path

    @property
    def state_hooks(self) -> tuple[HookCallEntity, ...]:
        """Call sites of stateful binding hooks (useState, useReducer)."""
        return tuple(hook for hook in self.hooks if hook.is_state_hook)

    def nodes_of(self, *node_types: str) -> Iterator[Any]:
        """Raw tree nodes of the given types, in pre-order."""
        wanted = frozenset(node_types)
        return (node for node in self.nodes if node.type in wanted)


def format_signature(
    name: str, parameters: tuple[ParameterEntity, ...], return_type: str
) -> str:
    params = ", ".join(
        f"{p.name}{'?' if p.optional else ''}: {p.type}" for p in parameters
    )
    return f"{name}({params}): {return_type}"
