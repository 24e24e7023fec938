"""Build-configuration files as flat key-path entries.

JSON files and JS/TS config modules are parsed with tree-sitter and every
object member becomes a :class:`ConfigEntry` whose ``path`` is the chain of
keys leading to it.  Array elements that name something (a string, an
identifier, a call such as ``sveltekit()`` or ``require('autoprefixer')``)
become entries under the array's path, so a plugin list reads the same as a
plugin object: ``plugins.tailwindcss``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from convlint.errors import ScanError
from convlint.ingest.scripts import first_error_offset, parse_script, walk
from convlint.ingest.units import ConfigEntry

if TYPE_CHECKING:
    from tree_sitter import Node as TSNode

    from convlint.ingest.units import ScriptBlock

_STRING_TYPES = frozenset({"string", "template_string"})
_SCALAR_TYPES = frozenset({"number", "true", "false", "null", "identifier"})


def _unquote(block: ScriptBlock, node: TSNode) -> str:
    raw = block.text(node)
    if len(raw) >= 2 and raw[0] in "\"'`" and raw[-1] == raw[0]:
        return raw[1:-1]
    return raw


def _key_text(block: ScriptBlock, node: TSNode) -> str | None:
    if node.type in _STRING_TYPES:
        return _unquote(block, node)
    if node.type in ("property_identifier", "number", "private_property_identifier"):
        return block.text(node)
    return None  # computed keys


def _call_name(block: ScriptBlock, node: TSNode) -> str:
    """``require('x')`` names ``x``; any other call names its callee."""
    callee = node.child_by_field_name("function")
    callee_text = block.text(callee) if callee is not None else ""
    if callee_text == "require":
        args = node.child_by_field_name("arguments")
        if args is not None:
            for arg in args.named_children:
                if arg.type in _STRING_TYPES:
                    return _unquote(block, arg)
    return callee_text


def _value_text(block: ScriptBlock, node: TSNode) -> str | None:
    if node.type in _STRING_TYPES:
        return _unquote(block, node)
    if node.type == "call_expression":
        return _call_name(block, node) + "()"
    if node.type in ("object", "array"):
        return None
    return block.text(node)


class _EntryCollector:
    def __init__(self, block: ScriptBlock) -> None:
        self.block = block
        self.entries: list[ConfigEntry] = []

    def add(self, path: tuple[str, ...], value: str | None, node: TSNode) -> None:
        self.entries.append(
            ConfigEntry(
                path=path,
                value=value,
                text=self.block.text(node),
                offset=self.block.char_offset(node.start_byte),
            )
        )

    def visit_value(self, path: tuple[str, ...], node: TSNode) -> None:
        if node.type == "object":
            self.visit_object(path, node)
        elif node.type == "array":
            self.visit_array(path, node)

    def visit_object(self, path: tuple[str, ...], node: TSNode) -> None:
        for member in node.named_children:
            if member.type == "pair":
                key_node = member.child_by_field_name("key")
                value_node = member.child_by_field_name("value")
                if key_node is None or value_node is None:
                    continue
                key = _key_text(self.block, key_node)
                if key is None:
                    continue
                self.add((*path, key), _value_text(self.block, value_node), key_node)
                self.visit_value((*path, key), value_node)
            elif member.type == "shorthand_property_identifier":
                name = self.block.text(member)
                self.add((*path, name), name, member)

    def visit_array(self, path: tuple[str, ...], node: TSNode) -> None:
        for element in node.named_children:
            if element.type in _STRING_TYPES:
                self.add((*path, _unquote(self.block, element)), None, element)
            elif element.type == "call_expression":
                self.add((*path, _call_name(self.block, element)), None, element)
            elif element.type in _SCALAR_TYPES:
                self.add((*path, self.block.text(element)), None, element)
            else:
                self.visit_value(path, element)


def _top_level_objects(node: TSNode) -> list[TSNode]:
    """Object literals not nested in another object or array literal."""
    found: list[TSNode] = []
    for candidate in walk(node):
        if candidate.type != "object":
            continue
        parent = candidate.parent
        nested = False
        while parent is not None:
            if parent.type in ("object", "array"):
                nested = True
                break
            parent = parent.parent
        if not nested:
            found.append(candidate)
    return found


def scan_config(text: str, *, grammar: str) -> tuple[ConfigEntry, ...]:
    """Flatten a JSON document or a JS/TS config module into entries.

    Raises :class:`ScanError` at the first syntax error.
    """
    block = parse_script(text, origin="file", grammar=grammar)
    root = block.tree.root_node
    if root.has_error:
        msg = "syntax error in configuration"
        raise ScanError(msg, first_error_offset(block))

    collector = _EntryCollector(block)
    if grammar == "json":
        for value in root.named_children:
            collector.visit_value((), value)
    else:
        for obj in _top_level_objects(root):
            collector.visit_object((), obj)
    return tuple(collector.entries)
