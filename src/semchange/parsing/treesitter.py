"""Tree-sitter parsing for TypeScript, TSX and JavaScript sources.

This module provides:
- Grammar selection from the file extension
- Parsing to a :class:`ParseResult` with error accounting
- Node helpers shared by the context builder and the analyzers:
  raw text, comment-free token text and 1-indexed positions

JavaScript and JSX files are parsed with the TSX grammar, which accepts
plain JavaScript as well as JSX markup.
"""

from __future__ import annotations

import importlib
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path, PurePath
from typing import Any

import tree_sitter

from semchange.core.errors import ParseError

# Parses above this share of ERROR/missing nodes are rejected.
MAX_ERROR_RATIO = 0.10

COMMENT_NODE_TYPES = frozenset({"comment", "html_comment"})


@dataclass(frozen=True)
class GrammarPack:
    """Grammar metadata: which module and entry point load a language."""

    name: str
    grammar_module: str
    language_func: str
    extensions: frozenset[str]


PACKS: dict[str, GrammarPack] = {
    "typescript": GrammarPack(
        name="typescript",
        grammar_module="tree_sitter_typescript",
        language_func="language_typescript",
        extensions=frozenset({"ts", "mts", "cts"}),
    ),
    "tsx": GrammarPack(
        name="tsx",
        grammar_module="tree_sitter_typescript",
        language_func="language_tsx",
        extensions=frozenset({"tsx", "js", "jsx", "mjs", "cjs"}),
    ),
}


def detect_language(path: str | PurePath) -> str | None:
    """Return the grammar name for a path, or None if unsupported."""
    ext = PurePath(path).suffix.lower().lstrip(".")
    for pack in PACKS.values():
        if ext in pack.extensions:
            return pack.name
    return None


def is_supported(path: str | PurePath) -> bool:
    return detect_language(path) is not None


@dataclass
class ParseResult:
    """Result of parsing one version of one file."""

    tree: Any  # Tree-sitter Tree (not serializable)
    language: str
    path: str
    source: bytes
    error_count: int
    total_nodes: int
    root_node: Any  # Tree-sitter Node

    @property
    def error_ratio(self) -> float:
        if self.total_nodes == 0:
            return 0.0
        return self.error_count / self.total_nodes

    def text(self, node: Any) -> str:
        """Raw source text of ``node``."""
        return self.source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")

    def token_text(self, node: Any) -> str:
        """Leaf tokens of ``node`` joined by single spaces, comments dropped.

        Two nodes that differ only in inter-token spacing or comments have
        equal token text.
        """
        return " ".join(
            self.source[leaf.start_byte : leaf.end_byte].decode("utf-8", errors="replace")
            for leaf in iter_leaves(node)
        )

    def position(self, node: Any) -> tuple[int, int]:
        """1-indexed (line, column) of the node's first character."""
        row = node.start_point[0]
        line_start = self.source.rfind(b"\n", 0, node.start_byte) + 1
        prefix = self.source[line_start : node.start_byte]
        return row + 1, len(prefix.decode("utf-8", errors="replace")) + 1


def iter_leaves(node: Any) -> Iterator[Any]:
    """Yield the leaf tokens under ``node`` in source order, skipping comments."""
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type in COMMENT_NODE_TYPES:
            continue
        if current.child_count == 0:
            if current.end_byte > current.start_byte:
                yield current
            continue
        stack.extend(reversed(current.children))


def walk(node: Any) -> Iterator[Any]:
    """Pre-order traversal of every node under (and including) ``node``."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


@dataclass
class TreeSitterParser:
    """
    Tree-sitter parser for TypeScript-family sources.

    Usage::

        parser = TreeSitterParser()
        result = parser.parse("src/app.tsx", source_text)
    """

    max_error_ratio: float = MAX_ERROR_RATIO
    _parser: Any = field(default=None, repr=False)
    _languages: dict[str, Any] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        """Initialize the parser."""
        self._parser = tree_sitter.Parser()
        self._languages = {}

    def _get_language(self, lang_name: str) -> Any:
        """Get or load a Tree-sitter language."""
        if lang_name in self._languages:
            return self._languages[lang_name]

        pack = PACKS[lang_name]
        try:
            mod = importlib.import_module(pack.grammar_module)
            lang_fn = getattr(mod, pack.language_func)
            lang = tree_sitter.Language(lang_fn())
        except (ImportError, AttributeError) as err:
            raise ParseError.failed(lang_name, f"grammar not available: {err}") from err
        self._languages[lang_name] = lang
        return lang

    def parse(self, path: str | Path, content: str | bytes | None = None) -> ParseResult:
        """
        Parse one file version with Tree-sitter.

        Args:
            path: Logical file path (used for grammar detection)
            content: Source text. If None, reads from path.

        Returns:
            ParseResult with tree and error accounting.

        Raises:
            ParseError: Unsupported extension, or too many syntax errors.
        """
        path_str = str(path)
        if content is None:
            content = Path(path).read_bytes()
        source = content.encode("utf-8") if isinstance(content, str) else content

        language = detect_language(path_str)
        if language is None:
            raise ParseError.unsupported_language(path_str)

        self._parser.language = self._get_language(language)
        tree = self._parser.parse(source)

        error_count = 0
        total_nodes = 0
        for node in walk(tree.root_node):
            total_nodes += 1
            if node.type == "ERROR" or node.is_missing:
                error_count += 1

        result = ParseResult(
            tree=tree,
            language=language,
            path=path_str,
            source=source,
            error_count=error_count,
            total_nodes=total_nodes,
            root_node=tree.root_node,
        )
        if result.error_ratio >= self.max_error_ratio:
            raise ParseError.failed(
                path_str,
                f"{error_count} syntax errors in {total_nodes} nodes",
            )
        return result
