"""Script parsing: tree-sitter grammars, syntax trees and error lookup."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from tree_sitter import Language, Parser

from convlint.ingest.units import ScriptBlock

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from tree_sitter import Node as TSNode


# ---- Grammar loaders (lazy, cached) ----


def _load_typescript() -> Language:
    import tree_sitter_typescript as tstypescript

    return Language(tstypescript.language_typescript())


def _load_tsx() -> Language:
    import tree_sitter_typescript as tstypescript

    return Language(tstypescript.language_tsx())


def _load_json() -> Language:
    import tree_sitter_json as tsjson

    return Language(tsjson.language())


_GRAMMAR_LOADERS: dict[str, Callable[[], Language]] = {
    "typescript": _load_typescript,
    "tsx": _load_tsx,
    "json": _load_json,
}

# Extension -> grammar name for standalone script and config files.
EXTENSION_GRAMMARS: dict[str, str] = {
    ".js": "typescript",
    ".mjs": "typescript",
    ".cjs": "typescript",
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".jsx": "tsx",
    ".tsx": "tsx",
    ".json": "json",
}

_GRAMMAR_CACHE: dict[str, Language] = {}
_grammar_lock = threading.Lock()


def get_language(grammar: str) -> Language:
    """Return the tree-sitter language for *grammar*, loading it once.

    Safe to call from worker threads: loading happens under a lock, so every
    caller gets the same :class:`Language` object.
    """
    loader = _GRAMMAR_LOADERS.get(grammar)
    if loader is None:
        msg = f"unknown grammar '{grammar}', expected one of {sorted(_GRAMMAR_LOADERS)}"
        raise ValueError(msg)
    with _grammar_lock:
        language = _GRAMMAR_CACHE.get(grammar)
        if language is None:
            language = loader()
            _GRAMMAR_CACHE[grammar] = language
        return language


def clear_cache() -> None:
    """Clear the grammar cache (useful for testing)."""
    with _grammar_lock:
        _GRAMMAR_CACHE.clear()


# ---- Parsing ----


def parse_script(
    text: str,
    *,
    offset: int = 0,
    origin: str = "file",
    grammar: str = "typescript",
) -> ScriptBlock:
    """Parse *text* and wrap the tree with its location in the enclosing file.

    A fresh :class:`Parser` is created per call: parsers are not shared
    between worker threads.
    """
    source = text.encode("utf-8")
    parser = Parser(get_language(grammar))
    tree = parser.parse(source)
    return ScriptBlock(tree=tree, source=source, offset=offset, origin=origin)


def walk(node: TSNode) -> Iterator[TSNode]:
    """Yield *node* and all of its descendants in document order."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def has_syntax_error(block: ScriptBlock) -> bool:
    return block.tree.root_node.has_error


def first_error_offset(block: ScriptBlock) -> int:
    """File offset of the first ``ERROR`` or missing node in *block*."""
    for node in walk(block.tree.root_node):
        if node.type == "ERROR" or node.is_missing:
            return block.char_offset(node.start_byte)
    return block.offset
