"""Script-shape matching on tree-sitter syntax trees."""

from __future__ import annotations

from typing import TYPE_CHECKING

from convlint.ingest.scripts import walk
from convlint.matching.base import first_line_end, make_match
from convlint.rules.model import ScriptPattern, ScriptShape, glob_captures

if TYPE_CHECKING:
    from collections.abc import Iterable

    from tree_sitter import Node as TSNode

    from convlint.ingest.units import ScriptBlock, SourceUnit
    from convlint.matching.base import Match
    from convlint.rules.model import Rule

_STATEMENT_SHAPES = frozenset({
    ScriptShape.EXPORTED_BINDING,
    ScriptShape.REACTIVE_ASSIGNMENT,
    ScriptShape.REACTIVE_STATEMENT,
})
_IDENTIFIER_TYPES = frozenset({
    "identifier",
    "shorthand_property_identifier",
    "shorthand_property_identifier_pattern",
})
_REACTIVE_LABEL = "$"


def _unwrap(node: TSNode) -> TSNode:
    while node.type == "parenthesized_expression" and node.named_children:
        node = node.named_children[0]
    return node


# ---------------------------------------------------------------------------
# Shape recognisers: each returns the bindings for a recognised node
# ---------------------------------------------------------------------------


def _exported_binding(block: ScriptBlock, node: TSNode) -> dict[str, str] | None:
    if node.type != "export_statement":
        return None
    decl = node.child_by_field_name("declaration")
    if decl is None:
        return None
    if decl.type == "lexical_declaration":
        kind = decl.children[0].type if decl.children else ""
        if kind != "let":
            return None
    elif decl.type != "variable_declaration":
        return None

    names: list[str] = []
    values: list[str] = []
    for declarator in decl.named_children:
        if declarator.type != "variable_declarator":
            continue
        name = declarator.child_by_field_name("name")
        if name is not None:
            names.append(block.text(name))
        value = declarator.child_by_field_name("value")
        if value is not None:
            values.append(block.text(value))
    if not names:
        return None
    return {"name": ", ".join(names), "value": ", ".join(values)}


def _reactive_body(block: ScriptBlock, node: TSNode) -> TSNode | None:
    if node.type != "labeled_statement":
        return None
    if node.parent is None or node.parent.type != "program":
        return None
    label = node.child_by_field_name("label")
    if label is None or block.text(label) != _REACTIVE_LABEL:
        return None
    return node.child_by_field_name("body")


def _reactive_assignment_target(body: TSNode) -> TSNode | None:
    if body.type != "expression_statement" or not body.named_children:
        return None
    expr = _unwrap(body.named_children[0])
    if expr.type != "assignment_expression":
        return None
    return expr


def _reactive_assignment(block: ScriptBlock, node: TSNode) -> dict[str, str] | None:
    body = _reactive_body(block, node)
    if body is None:
        return None
    expr = _reactive_assignment_target(body)
    if expr is None:
        return None
    left = expr.child_by_field_name("left")
    right = expr.child_by_field_name("right")
    return {
        "name": block.text(left) if left is not None else "",
        "value": block.text(right) if right is not None else "",
    }


def _reactive_statement(block: ScriptBlock, node: TSNode) -> dict[str, str] | None:
    body = _reactive_body(block, node)
    if body is None or _reactive_assignment_target(body) is not None:
        return None
    text = block.text(body).strip()
    if body.type == "statement_block":
        text = text[1:-1].strip()
    return {"name": "", "value": text.rstrip(";").strip()}


def _call(block: ScriptBlock, node: TSNode, glob: str) -> dict[str, str] | None:
    if node.type != "call_expression":
        return None
    callee = node.child_by_field_name("function")
    if callee is None:
        return None
    name = block.text(callee)
    if glob_captures(glob, name) is None:
        return None
    args = node.child_by_field_name("arguments")
    value = block.text(args)[1:-1].strip() if args is not None else ""
    return {"name": name, "value": value}


def _identifier(block: ScriptBlock, node: TSNode, glob: str) -> dict[str, str] | None:
    if node.type not in _IDENTIFIER_TYPES:
        return None
    name = block.text(node)
    if glob_captures(glob, name) is None:
        return None
    return {"name": name, "value": name}


def _recognise(pattern: ScriptPattern, block: ScriptBlock, node: TSNode) -> dict[str, str] | None:
    shape = pattern.shape
    if shape in _STATEMENT_SHAPES and block.origin != "instance":
        return None
    if shape is ScriptShape.EXPORTED_BINDING:
        return _exported_binding(block, node)
    if shape is ScriptShape.REACTIVE_ASSIGNMENT:
        return _reactive_assignment(block, node)
    if shape is ScriptShape.REACTIVE_STATEMENT:
        return _reactive_statement(block, node)
    if shape is ScriptShape.CALL:
        return _call(block, node, pattern.name or "*")
    if shape is ScriptShape.IDENTIFIER:
        return _identifier(block, node, pattern.name or "*")
    msg = f"unhandled script shape {shape!r}"
    raise ValueError(msg)


def match_scripts(rules: Iterable[Rule], unit: SourceUnit) -> list[Match]:
    """Match script-shape patterns against every script block of *unit*."""
    candidates = [
        (rule, pattern)
        for rule in rules
        for pattern in rule.patterns
        if isinstance(pattern, ScriptPattern)
    ]
    if not candidates or not unit.scripts:
        return []

    matches: list[Match] = []
    for block in unit.scripts:
        for node in walk(block.tree.root_node):
            if node.is_missing:
                continue
            for rule, pattern in candidates:
                bindings = _recognise(pattern, block, node)
                if bindings is None:
                    continue
                start = block.char_offset(node.start_byte)
                end = first_line_end(unit.content, start, block.char_offset(node.end_byte))
                matches.append(make_match(rule, pattern, unit, start, end, bindings=bindings))
    return matches
