"""
Grammar loading and parsing.

``.tsx`` sources need the TSX grammar for their JSX expressions; everything
else is parsed as plain TypeScript, where ``<T>value`` type assertions stay
valid.
"""

from functools import lru_cache
from pathlib import Path
from typing import Callable, Dict

import tree_sitter_typescript
from tree_sitter import Language, Parser, Tree

TYPESCRIPT = "typescript"
TSX = "tsx"

_GRAMMARS: Dict[str, Callable[[], object]] = {
    TYPESCRIPT: tree_sitter_typescript.language_typescript,
    TSX: tree_sitter_typescript.language_tsx,
}
_SUFFIXES = {".tsx": TSX}


@lru_cache(maxsize=None)
def get_language(language_id: str) -> Language:
    grammar = _GRAMMARS.get(language_id)
    if grammar is None:
        raise ValueError(f"Unsupported language: {language_id}")
    return Language(grammar())


@lru_cache(maxsize=None)
def get_parser(language_id: str) -> Parser:
    return Parser(get_language(language_id))


def language_for_path(file_path: str) -> str:
    return _SUFFIXES.get(Path(str(file_path)).suffix.lower(), TYPESCRIPT)


def parse_source(source: str, language_id: str = TYPESCRIPT) -> Tree:
    return get_parser(language_id).parse(source.encode("utf-8"))
