"""Stylesheet scanner: at-rules, ``@apply`` tokens and brace balance."""

from __future__ import annotations

import re
from dataclasses import dataclass

from convlint.errors import ScanError
from convlint.ingest.units import AtRule, ClassToken

_AT_NAME_RE = re.compile(r"[A-Za-z][\w-]*")
_TOKEN_RE = re.compile(r"\S+")


@dataclass(frozen=True)
class StylesheetScan:
    at_rules: tuple[AtRule, ...]
    classes: tuple[ClassToken, ...]


def _skip_string(text: str, start: int, base: int) -> int:
    quote = text[start]
    i = start + 1
    while i < len(text):
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == quote:
            return i + 1
        if ch == "\n":
            break
        i += 1
    msg = "unterminated string"
    raise ScanError(msg, base + start)


def _prelude_end(text: str, start: int, base: int) -> int:
    """Index of the ``;``, ``{`` or ``}`` ending an at-rule prelude."""
    parens = 0
    i = start
    while i < len(text):
        ch = text[i]
        if ch in "\"'":
            i = _skip_string(text, i, base)
            continue
        if ch == "(":
            parens += 1
        elif ch == ")":
            parens = max(parens - 1, 0)
        elif parens == 0 and ch in ";{}":
            return i
        i += 1
    return i


def scan_stylesheet(text: str, *, offset: int = 0) -> StylesheetScan:
    """Scan CSS-like *text* located at character *offset* of its file.

    Raises :class:`ScanError` for unterminated comments or strings and for
    unbalanced braces.
    """
    at_rules: list[AtRule] = []
    classes: list[ClassToken] = []
    open_braces: list[int] = []
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if text.startswith("/*", i):
            end = text.find("*/", i + 2)
            if end < 0:
                msg = "unterminated comment"
                raise ScanError(msg, offset + i)
            i = end + 2
            continue
        if ch in "\"'":
            i = _skip_string(text, i, offset)
            continue
        if ch == "{":
            open_braces.append(i)
        elif ch == "}":
            if not open_braces:
                msg = "unexpected '}'"
                raise ScanError(msg, offset + i)
            open_braces.pop()
        elif ch == "@":
            name_match = _AT_NAME_RE.match(text, i + 1)
            if name_match is not None:
                end = _prelude_end(text, name_match.end(), offset)
                prelude = text[name_match.end() : end]
                name = name_match.group(0)
                at_rules.append(AtRule(name, prelude.strip(), offset + i, offset + end))
                if name == "apply":
                    base = offset + name_match.end()
                    classes.extend(
                        ClassToken(m.group(0), base + m.start())
                        for m in _TOKEN_RE.finditer(prelude)
                        if m.group(0) != "!important"
                    )
                i = end
                continue
        i += 1

    if open_braces:
        msg = "unbalanced braces: missing '}'"
        raise ScanError(msg, offset + open_braces[-1])
    return StylesheetScan(tuple(at_rules), tuple(classes))
