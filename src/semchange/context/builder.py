"""Build a SemanticContext from a tree-sitter parse.

The builder makes a single pre-order pass over the syntax tree and
dispatches on ``node.type``. Node kinds it does not know are skipped, so
new grammar constructs never make extraction fail.
"""

from __future__ import annotations

import fnmatch
import re
from typing import Any

from semchange.analysis.normalize import normalize
from semchange.config.models import AnalyzerConfig
from semchange.context.models import (
    BUILTIN_HOOKS,
    ClassEntity,
    ExportEntity,
    ExportType,
    FunctionEntity,
    HookCallEntity,
    ImportEntity,
    InterfaceEntity,
    InterfaceMethodEntity,
    InterfacePropertyEntity,
    MethodEntity,
    ParameterEntity,
    PropEntity,
    PropertyEntity,
    SemanticContext,
    SideEffectCallEntity,
    TypeAliasEntity,
    UIElementEntity,
    VariableEntity,
    Visibility,
)
from semchange.parsing.treesitter import COMMENT_NODE_TYPES, ParseResult, walk

GLOBAL_SCOPE = "global scope"

FUNCTION_DECLARATIONS = frozenset({"function_declaration", "generator_function_declaration"})
FUNCTION_LIKE = FUNCTION_DECLARATIONS | frozenset(
    {
        "function_expression",
        "function",
        "generator_function",
        "arrow_function",
        "method_definition",
    }
)
CLASS_DECLARATIONS = frozenset({"class_declaration", "abstract_class_declaration"})
CLASS_LIKE = CLASS_DECLARATIONS | frozenset({"class"})
VARIABLE_DECLARATIONS = frozenset({"lexical_declaration", "variable_declaration"})

# Node kinds that add one decision point each.
BRANCH_NODE_TYPES = frozenset(
    {
        "if_statement",
        "while_statement",
        "do_statement",
        "for_statement",
        "for_in_statement",
        "switch_case",
        "ternary_expression",
        "catch_clause",
    }
)
BRANCH_OPERATORS = frozenset({"&&", "||"})

_HOOK_NAME = re.compile(r"^use[A-Z]")


def named_children(node: Any) -> list[Any]:
    """Named children of ``node`` with comments removed."""
    return [child for child in node.named_children if child.type not in COMMENT_NODE_TYPES]


def has_token(node: Any, token: str) -> bool:
    """True if ``node`` has a direct anonymous child spelled ``token``."""
    return any(not child.is_named and child.type == token for child in node.children)


def is_react_hook(name: str) -> bool:
    return _HOOK_NAME.match(name) is not None


def scope_name(node: Any, result: ParseResult) -> str:
    """Name of the closest enclosing named function, method or class.

    A function bound by a variable declarator (``const f = () => ...``)
    takes the variable's name. Returns ``"global scope"`` at top level.
    """
    current = node
    while current is not None:
        if current.type in FUNCTION_LIKE:
            name_node = current.child_by_field_name("name")
            if name_node is not None:
                return result.text(name_node)
            parent = current.parent
            if parent is not None and parent.type == "variable_declarator":
                bound = parent.child_by_field_name("name")
                if bound is not None and bound.type == "identifier":
                    return result.text(bound)
        elif current.type in CLASS_LIKE:
            name_node = current.child_by_field_name("name")
            if name_node is not None:
                return result.text(name_node)
        current = current.parent
    return GLOBAL_SCOPE


def cyclomatic_complexity(node: Any) -> int:
    """Decision-point count of the subtree rooted at ``node``, plus one."""
    complexity = 1
    for current in walk(node):
        if current.type in BRANCH_NODE_TYPES:
            complexity += 1
        elif current.type == "binary_expression":
            operator = current.child_by_field_name("operator")
            if operator is not None and operator.type in BRANCH_OPERATORS:
                complexity += 1
    return complexity


def callee_path(node: Any, result: ParseResult) -> str:
    """Dotted path of a call target such as ``analytics.track``.

    Returns an empty string for callees that are not identifier or
    member chains (calls on call results, ``this``, literals).
    """
    if node.type == "identifier":
        return result.text(node)
    if node.type == "member_expression":
        obj = node.child_by_field_name("object")
        prop = node.child_by_field_name("property")
        left = callee_path(obj, result) if obj is not None else ""
        name = result.text(prop) if prop is not None else ""
        return f"{left}.{name}" if left else name
    if node.type == "subscript_expression":
        obj = node.child_by_field_name("object")
        index = node.child_by_field_name("index")
        left = callee_path(obj, result) if obj is not None else ""
        if index is not None and index.type == "string":
            key = _string_value(index, result)
            return f"{left}.{key}" if left else key
        return left
    return ""


def _string_value(node: Any, result: ParseResult) -> str:
    """Content of a string literal without its quotes."""
    return result.text(node)[1:-1]


def matches_any(value: str, patterns: list[str]) -> bool:
    return any(fnmatch.fnmatchcase(value, pattern) for pattern in patterns)


class _ContextBuilder:
    """Accumulates entities during one traversal."""

    def __init__(self, result: ParseResult, config: AnalyzerConfig) -> None:
        self.result = result
        self.config = config
        self.functions: list[FunctionEntity] = []
        self.classes: list[ClassEntity] = []
        self.interfaces: list[InterfaceEntity] = []
        self.exports: list[ExportEntity] = []
        self.imports: list[ImportEntity] = []
        self.variables: list[VariableEntity] = []
        self.types: list[TypeAliasEntity] = []
        self.hooks: list[HookCallEntity] = []
        self.ui_elements: list[UIElementEntity] = []
        self.side_effect_calls: list[SideEffectCallEntity] = []
        self.complexity = 1

    def build(self) -> SemanticContext:
        nodes = []
        for node in walk(self.result.root_node):
            nodes.append(node)
            self._visit(node)
        return SemanticContext(
            tree=self.result,
            functions=tuple(self.functions),
            classes=tuple(self.classes),
            interfaces=tuple(self.interfaces),
            exports=tuple(self.exports),
            imports=tuple(self.imports),
            variables=tuple(self.variables),
            types=tuple(self.types),
            hooks=tuple(self.hooks),
            ui_elements=tuple(self.ui_elements),
            side_effect_calls=tuple(self.side_effect_calls),
            complexity=self.complexity,
            nodes=tuple(nodes),
        )

    def _visit(self, node: Any) -> None:
        node_type = node.type
        if node_type in BRANCH_NODE_TYPES:
            self.complexity += 1

        if node_type == "import_statement":
            self._process_import(node)
        elif node_type == "export_statement":
            self._process_export(node)
        elif node_type in FUNCTION_DECLARATIONS:
            self._process_function(node)
        elif node_type in CLASS_DECLARATIONS:
            self._process_class(node)
        elif node_type == "interface_declaration":
            self._process_interface(node)
        elif node_type == "type_alias_declaration":
            self._process_type_alias(node)
        elif node_type in VARIABLE_DECLARATIONS:
            self._process_variables(node)
        elif node_type == "call_expression":
            self._process_call(node)
        elif node_type in ("jsx_element", "jsx_self_closing_element"):
            self._process_ui_element(node)
        elif node_type == "binary_expression":
            operator = node.child_by_field_name("operator")
            if operator is not None and operator.type in BRANCH_OPERATORS:
                self.complexity += 1

    # Shared helpers

    def _text(self, node: Any | None) -> str:
        return self.result.text(node) if node is not None else ""

    def _name(self, node: Any) -> str | None:
        name_node = node.child_by_field_name("name")
        return self.result.text(name_node) if name_node is not None else None

    def _type_text(self, annotation: Any | None) -> str:
        """Type written in a ``: T`` annotation, or ``any`` when absent."""
        if annotation is None:
            return "any"
        inner = named_children(annotation)
        target = inner[0] if annotation.type == "type_annotation" and inner else annotation
        return normalize(self.result.token_text(target))

    def _parameters(self, node: Any) -> tuple[ParameterEntity, ...]:
        params_node = node.child_by_field_name("parameters")
        if params_node is None:
            return ()
        params = []
        for param in named_children(params_node):
            if param.type in ("required_parameter", "optional_parameter"):
                pattern = param.child_by_field_name("pattern")
                optional = (
                    param.type == "optional_parameter"
                    or param.child_by_field_name("value") is not None
                )
                params.append(
                    ParameterEntity(
                        name=normalize(self._text(pattern)),
                        type=self._type_text(param.child_by_field_name("type")),
                        optional=optional,
                    )
                )
            elif param.type in ("identifier", "rest_pattern", "assignment_pattern"):
                params.append(
                    ParameterEntity(
                        name=normalize(self._text(param)),
                        type="any",
                        optional=param.type == "assignment_pattern",
                    )
                )
        return tuple(params)

    def _return_type(self, node: Any) -> str:
        return self._type_text(node.child_by_field_name("return_type"))

    # Declarations

    def _process_function(self, node: Any) -> None:
        name = self._name(node)
        if name is None:
            return
        line, column = self.result.position(node)
        self.functions.append(
            FunctionEntity(
                name=name,
                parameters=self._parameters(node),
                return_type=self._return_type(node),
                is_async=has_token(node, "async"),
                complexity=cyclomatic_complexity(node),
                line=line,
                column=column,
            )
        )

    def _process_class(self, node: Any) -> None:
        name = self._name(node)
        if name is None:
            return
        extends: str | None = None
        implements: list[str] = []
        for child in node.named_children:
            if child.type != "class_heritage":
                continue
            for clause in child.named_children:
                if clause.type == "extends_clause":
                    value = clause.child_by_field_name("value")
                    if value is not None:
                        extends = normalize(self._text(value))
                elif clause.type == "implements_clause":
                    implements.extend(
                        normalize(self._text(t)) for t in named_children(clause)
                    )

        methods: list[MethodEntity] = []
        properties: list[PropertyEntity] = []
        body = node.child_by_field_name("body")
        for member in named_children(body) if body is not None else []:
            member_name = self._name(member)
            if member_name is None:
                continue
            if member.type in (
                "method_definition",
                "method_signature",
                "abstract_method_signature",
            ):
                methods.append(
                    MethodEntity(
                        name=member_name,
                        parameters=self._parameters(member),
                        return_type=self._return_type(member),
                        is_async=has_token(member, "async"),
                        is_static=has_token(member, "static"),
                        visibility=self._visibility(member),
                    )
                )
            elif member.type in ("public_field_definition", "field_definition"):
                properties.append(
                    PropertyEntity(
                        name=member_name,
                        type=self._type_text(member.child_by_field_name("type")),
                        is_static=has_token(member, "static"),
                        visibility=self._visibility(member),
                    )
                )

        line, column = self.result.position(node)
        self.classes.append(
            ClassEntity(
                name=name,
                extends=extends,
                implements=tuple(implements),
                methods=tuple(methods),
                properties=tuple(properties),
                line=line,
                column=column,
            )
        )

    def _visibility(self, member: Any) -> Visibility:
        for child in member.named_children:
            if child.type == "accessibility_modifier":
                text = self._text(child)
                if text == "private":
                    return "private"
                if text == "protected":
                    return "protected"
        return "public"

    def _process_interface(self, node: Any) -> None:
        name = self._name(node)
        if name is None:
            return
        extends: list[str] = []
        for child in node.named_children:
            if child.type == "extends_type_clause":
                extends.extend(normalize(self._text(t)) for t in named_children(child))

        properties: list[InterfacePropertyEntity] = []
        methods: list[InterfaceMethodEntity] = []
        body = node.child_by_field_name("body")
        for member in named_children(body) if body is not None else []:
            member_name = self._name(member)
            if member_name is None:
                continue
            if member.type == "property_signature":
                properties.append(
                    InterfacePropertyEntity(
                        name=member_name,
                        type=self._type_text(member.child_by_field_name("type")),
                        optional=has_token(member, "?"),
                    )
                )
            elif member.type == "method_signature":
                methods.append(
                    InterfaceMethodEntity(
                        name=member_name,
                        parameters=self._parameters(member),
                        return_type=self._return_type(member),
                    )
                )

        line, column = self.result.position(node)
        self.interfaces.append(
            InterfaceEntity(
                name=name,
                extends=tuple(extends),
                properties=tuple(properties),
                methods=tuple(methods),
                line=line,
                column=column,
            )
        )

    def _process_type_alias(self, node: Any) -> None:
        name = self._name(node)
        value = node.child_by_field_name("value")
        if name is None or value is None:
            return
        line, column = self.result.position(node)
        self.types.append(
            TypeAliasEntity(
                name=name,
                definition=normalize(self.result.token_text(value)),
                line=line,
                column=column,
            )
        )

    def _process_variables(self, node: Any) -> None:
        # Loop headers (for (let i = 0; ...)) are not variable statements.
        if node.parent is not None and node.parent.type == "for_statement":
            return
        is_const = has_token(node, "const")
        for declarator in named_children(node):
            if declarator.type != "variable_declarator":
                continue
            name_node = declarator.child_by_field_name("name")
            if name_node is None or name_node.type != "identifier":
                continue
            line, column = self.result.position(declarator)
            self.variables.append(
                VariableEntity(
                    name=self._text(name_node),
                    type=self._type_text(declarator.child_by_field_name("type")),
                    is_const=is_const,
                    has_initializer=declarator.child_by_field_name("value") is not None,
                    line=line,
                    column=column,
                )
            )

    # Modules

    def _process_import(self, node: Any) -> None:
        source = node.child_by_field_name("source")
        specifiers: list[str] = []
        is_default = False
        is_namespace = False

        for child in named_children(node):
            if child.type == "import_require_clause":
                for part in named_children(child):
                    if part.type == "identifier":
                        specifiers.append(self._text(part))
                        is_default = True
                    elif part.type == "string" and source is None:
                        source = part
            if child.type != "import_clause":
                continue
            for part in named_children(child):
                if part.type == "identifier":
                    specifiers.append(self._text(part))
                    is_default = True
                elif part.type == "namespace_import":
                    alias = [n for n in named_children(part) if n.type == "identifier"]
                    if alias:
                        specifiers.append(self._text(alias[0]))
                    is_namespace = True
                elif part.type == "named_imports":
                    for spec in named_children(part):
                        if spec.type != "import_specifier":
                            continue
                        local = spec.child_by_field_name("alias")
                        if local is None:
                            local = spec.child_by_field_name("name")
                        if local is not None:
                            specifiers.append(self._text(local))

        if source is None:
            return
        line, column = self.result.position(node)
        self.imports.append(
            ImportEntity(
                module=_string_value(source, self.result),
                specifiers=tuple(specifiers),
                is_default=is_default,
                is_namespace=is_namespace,
                line=line,
                column=column,
            )
        )

    def _process_export(self, node: Any) -> None:
        line, column = self.result.position(node)
        is_default = has_token(node, "default")

        declaration = node.child_by_field_name("declaration")
        if declaration is not None:
            for name, export_type in self._exported_names(declaration):
                self.exports.append(
                    ExportEntity(
                        name=name,
                        type=export_type,
                        is_default=is_default,
                        line=line,
                        column=column,
                    )
                )
            return

        for child in named_children(node):
            if child.type != "export_clause":
                continue
            for spec in named_children(child):
                if spec.type != "export_specifier":
                    continue
                exported = spec.child_by_field_name("alias")
                if exported is None:
                    exported = spec.child_by_field_name("name")
                if exported is None:
                    continue
                self.exports.append(
                    ExportEntity(
                        name=self._text(exported),
                        type="variable",
                        is_default=False,
                        line=line,
                        column=column,
                    )
                )
            return

        if is_default and node.child_by_field_name("value") is not None:
            self.exports.append(
                ExportEntity(
                    name="default",
                    type="variable",
                    is_default=True,
                    line=line,
                    column=column,
                )
            )

    def _exported_names(self, declaration: Any) -> list[tuple[str, ExportType]]:
        decl_type = declaration.type
        if decl_type in VARIABLE_DECLARATIONS:
            export_type: ExportType = "const" if has_token(declaration, "const") else "variable"
            names = []
            for declarator in named_children(declaration):
                if declarator.type != "variable_declarator":
                    continue
                name_node = declarator.child_by_field_name("name")
                if name_node is not None and name_node.type == "identifier":
                    names.append((self._text(name_node), export_type))
            return names

        kinds: dict[str, ExportType] = {
            "function_declaration": "function",
            "generator_function_declaration": "function",
            "class_declaration": "class",
            "abstract_class_declaration": "class",
            "interface_declaration": "interface",
            "type_alias_declaration": "type",
        }
        export_type_for = kinds.get(decl_type)
        name = self._name(declaration)
        if export_type_for is None or name is None:
            return []
        return [(name, export_type_for)]

    # Calls and markup

    def _process_call(self, node: Any) -> None:
        function = node.child_by_field_name("function")
        if function is None:
            return
        line, column = self.result.position(node)
        arguments = node.child_by_field_name("arguments")
        args = named_children(arguments) if arguments is not None else []

        if function.type == "identifier":
            hook_name = self._text(function)
            if is_react_hook(hook_name):
                dependencies: tuple[str, ...] = ()
                if len(args) >= 2 and args[1].type == "array":
                    dependencies = tuple(
                        self._text(el) for el in named_children(args[1]) if el.type == "identifier"
                    )
                self.hooks.append(
                    HookCallEntity(
                        name=hook_name,
                        type=hook_name if hook_name in BUILTIN_HOOKS else "custom",
                        dependencies=dependencies,
                        line=line,
                        column=column,
                    )
                )

        path = callee_path(function, self.result)
        if path and matches_any(path, self.config.side_effect_callees):
            self.side_effect_calls.append(
                SideEffectCallEntity(
                    name=normalize(self._text(function)),
                    arguments=len(args),
                    line=line,
                    column=column,
                )
            )

    def _process_ui_element(self, node: Any) -> None:
        if node.type == "jsx_element":
            opening = node.child_by_field_name("open_tag")
            if opening is None:
                return
            has_children = any(
                child.type not in ("jsx_opening_element", "jsx_closing_element")
                for child in named_children(node)
            )
        else:
            opening = node
            has_children = False

        tag = opening.child_by_field_name("name")
        # Fragments and member tags (<Foo.Bar>) are not recorded.
        if tag is None or tag.type != "identifier":
            return
        tag_name = self._text(tag)

        props: list[PropEntity] = []
        for attr in named_children(opening):
            if attr.type == "jsx_attribute":
                parts = named_children(attr)
                if not parts:
                    continue
                is_expression = any(part.type == "jsx_expression" for part in parts[1:])
                props.append(
                    PropEntity(
                        name=self._text(parts[0]),
                        type="expression" if is_expression else "literal",
                    )
                )
            elif attr.type == "jsx_expression":
                props.append(PropEntity(name="...", type="spread"))

        line, column = self.result.position(node)
        self.ui_elements.append(
            UIElementEntity(
                tag_name=tag_name,
                props=tuple(props),
                has_children=has_children,
                is_component=tag_name[:1].isupper(),
                line=line,
                column=column,
            )
        )


def build_context(result: ParseResult, config: AnalyzerConfig | None = None) -> SemanticContext:
    """Extract the semantic context of one parsed file version.

    Args:
        result: Parse of the file version.
        config: Analyzer settings; ``side_effect_callees`` selects which
            call sites are recorded. Defaults to ``AnalyzerConfig()``.

    Returns:
        Immutable context with entities in source order.
    """
    return _ContextBuilder(result, config or AnalyzerConfig()).build()
