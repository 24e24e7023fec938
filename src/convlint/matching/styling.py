"""Utility-token, dynamic-class and at-rule matching."""

from __future__ import annotations

import fnmatch
from typing import TYPE_CHECKING

from convlint.matching.base import first_line_end, make_match
from convlint.rules.model import (
    AtRulePattern,
    DynamicClassPattern,
    TokenPattern,
    glob_captures,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from convlint.ingest.units import SourceUnit
    from convlint.matching.base import Match
    from convlint.rules.model import Rule


def split_variants(token: str) -> tuple[str, str, str]:
    """Split a utility token into ``(prefix, utility, suffix)``.

    The prefix holds the variants (``hover:``, ``md:``, ``[&>*]:``) and a
    leading ``!``; the suffix holds a trailing ``!``.  Colons inside square
    brackets do not separate variants.
    """
    depth = 0
    cut = 0
    for i, ch in enumerate(token):
        if ch == "[":
            depth += 1
        elif ch == "]":
            depth = max(depth - 1, 0)
        elif ch == ":" and depth == 0:
            cut = i + 1
    prefix, utility = token[:cut], token[cut:]
    if utility.startswith("!"):
        prefix += "!"
        utility = utility[1:]
    suffix = ""
    if utility.endswith("!"):
        suffix = "!"
        utility = utility[:-1]
    return prefix, utility, suffix


def _numbered(captures: Iterable[str]) -> dict[str, str]:
    return {str(i): value for i, value in enumerate(captures, start=1)}


def match_styling(rules: Iterable[Rule], unit: SourceUnit) -> list[Match]:
    """Match token, dynamic-class and at-rule patterns."""
    matches: list[Match] = []
    for rule in rules:
        for pattern in rule.patterns:
            if isinstance(pattern, TokenPattern):
                for token in unit.classes:
                    prefix, utility, suffix = split_variants(token.text)
                    captures = glob_captures(pattern.token, utility)
                    if captures is None:
                        continue
                    bindings = {"prefix": prefix, "suffix": suffix, "name": utility}
                    bindings.update(_numbered(captures))
                    end = token.offset + len(token.text)
                    matches.append(make_match(rule, pattern, unit, token.offset, end, bindings=bindings))
            elif isinstance(pattern, DynamicClassPattern):
                for dynamic in unit.dynamic_classes:
                    if any(fnmatch.fnmatchcase(dynamic.text, allowed) for allowed in pattern.allowlist):
                        continue
                    end = first_line_end(unit.content, dynamic.offset, dynamic.end)
                    matches.append(
                        make_match(rule, pattern, unit, dynamic.offset, end, bindings={"name": dynamic.text})
                    )
            elif isinstance(pattern, AtRulePattern):
                for at_rule in unit.at_rules:
                    captures = glob_captures(pattern.name, at_rule.name)
                    if captures is None:
                        continue
                    if pattern.prelude is not None:
                        prelude = " ".join(at_rule.prelude.split())
                        prelude_captures = glob_captures(pattern.prelude, prelude)
                        if prelude_captures is None:
                            continue
                        captures = captures + prelude_captures
                    bindings = {"name": at_rule.name, "value": at_rule.prelude}
                    bindings.update(_numbered(captures))
                    end = first_line_end(unit.content, at_rule.offset, at_rule.end)
                    matches.append(make_match(rule, pattern, unit, at_rule.offset, end, bindings=bindings))
    return matches
