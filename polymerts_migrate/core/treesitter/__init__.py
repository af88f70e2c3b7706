"""
Tree-sitter integration for polymerts-migrate.

Provides grammar loading, parsing and node helpers shared by the
analysis and emit passes.
"""

from .parser import TSX, TYPESCRIPT, get_language, get_parser, language_for_path, parse_source
from .nodes import NodeKey, node_key, node_text, walk

__all__ = [
    "TSX",
    "TYPESCRIPT",
    "get_language",
    "get_parser",
    "language_for_path",
    "parse_source",
    "NodeKey",
    "node_key",
    "node_text",
    "walk",
]
