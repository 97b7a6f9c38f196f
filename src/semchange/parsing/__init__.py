"""Tree-sitter parsing layer."""

from semchange.parsing.treesitter import (
    ParseResult,
    TreeSitterParser,
    detect_language,
    is_supported,
    iter_leaves,
    walk,
)

__all__ = [
    "ParseResult",
    "TreeSitterParser",
    "detect_language",
    "is_supported",
    "iter_leaves",
    "walk",
]
