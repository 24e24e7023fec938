"""Class-attribute tokenization.

A class value is split on whitespace into words.  Each word is one of:

- static text: a utility token;
- a single ``{...}`` expression: the string literals inside it contribute
  their words as tokens (``class={active ? 'font-bold' : ''}``);
- text and expressions glued together: a dynamic construction
  (``bg-{tone}-500``) that a class scanner cannot see.

Template literals with ``${...}`` inside an expression follow the same rules.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from convlint.ingest.units import ClassToken, DynamicClass, ValuePart

if TYPE_CHECKING:
    from collections.abc import Iterable

    from convlint.ingest.units import Element

_PIECE_RE = re.compile(r"(\s+)|(\S+)")
_STRING_RE = re.compile(r"""(["'])((?:\\.|(?!\1)[^\\\n])*)\1|`((?:\\.|[^`\\])*)`""")
_INTERPOLATION_RE = re.compile(r"\$\{([^}]*)\}")

_CLASS_ATTRIBUTES = ("class", "className")
_CLASS_DIRECTIVE = "class:"


def _words(parts: Iterable[ValuePart]) -> list[list[ValuePart]]:
    words: list[list[ValuePart]] = []
    current: list[ValuePart] = []
    for part in parts:
        if part.kind == "expression":
            current.append(part)
            continue
        for m in _PIECE_RE.finditer(part.text):
            if m.group(1):
                if current:
                    words.append(current)
                current = []
            else:
                current.append(ValuePart("text", m.group(2), part.offset + m.start()))
    if current:
        words.append(current)
    return words


def _template_parts(body: str, offset: int) -> list[ValuePart]:
    parts: list[ValuePart] = []
    pos = 0
    for m in _INTERPOLATION_RE.finditer(body):
        if m.start() > pos:
            parts.append(ValuePart("text", body[pos : m.start()], offset + pos))
        parts.append(ValuePart("expression", m.group(1), offset + m.start(1)))
        pos = m.end()
    if pos < len(body):
        parts.append(ValuePart("text", body[pos:], offset + pos))
    return parts


def _literal_parts(expression: ValuePart) -> list[list[ValuePart]]:
    """One part list per string literal found in *expression*."""
    found: list[list[ValuePart]] = []
    for m in _STRING_RE.finditer(expression.text):
        if m.group(3) is not None:
            found.append(_template_parts(m.group(3), expression.offset + m.start(3)))
        else:
            found.append([ValuePart("text", m.group(2), expression.offset + m.start(2))])
    return found


def _render(word: list[ValuePart]) -> str:
    return "".join(p.text if p.kind == "text" else "{" + p.text.strip() + "}" for p in word)


def _word_end(word: list[ValuePart]) -> int:
    last = word[-1]
    # expression parts start after their opening brace
    closing = 1 if last.kind == "expression" else 0
    return last.offset + len(last.text) + closing


def tokenize_class_value(
    parts: Iterable[ValuePart],
) -> tuple[list[ClassToken], list[DynamicClass]]:
    """Split a class value into static tokens and dynamic constructions."""
    tokens: list[ClassToken] = []
    dynamic: list[DynamicClass] = []
    for word in _words(parts):
        if all(p.kind == "text" for p in word):
            tokens.append(ClassToken("".join(p.text for p in word), word[0].offset))
        elif len(word) == 1:
            for literal in _literal_parts(word[0]):
                sub_tokens, sub_dynamic = tokenize_class_value(literal)
                tokens.extend(sub_tokens)
                dynamic.extend(sub_dynamic)
        else:
            dynamic.append(DynamicClass(_render(word), word[0].offset, _word_end(word)))
    return tokens, dynamic


def extract_classes(
    elements: Iterable[Element],
) -> tuple[tuple[ClassToken, ...], tuple[DynamicClass, ...]]:
    """Collect utility tokens from ``class`` attributes and ``class:`` directives."""
    tokens: list[ClassToken] = []
    dynamic: list[DynamicClass] = []
    for element in elements:
        for attr in element.attributes:
            if attr.name in _CLASS_ATTRIBUTES:
                found, found_dynamic = tokenize_class_value(attr.parts)
                tokens.extend(found)
                dynamic.extend(found_dynamic)
            elif attr.name.startswith(_CLASS_DIRECTIVE):
                name = attr.name[len(_CLASS_DIRECTIVE) :].split("|", 1)[0]
                if name:
                    tokens.append(ClassToken(name, attr.offset + len(_CLASS_DIRECTIVE)))
    return tuple(tokens), tuple(dynamic)
