"""Build-configuration key-path matching."""

from __future__ import annotations

from typing import TYPE_CHECKING

from convlint.matching.base import first_line_end, make_match
from convlint.rules.model import ConfigKeyPattern, glob_captures

if TYPE_CHECKING:
    from collections.abc import Iterable

    from convlint.ingest.units import SourceUnit
    from convlint.matching.base import Match
    from convlint.rules.model import Rule


def match_config(rules: Iterable[Rule], unit: SourceUnit) -> list[Match]:
    """Match dotted key-path (and optional value) globs against config entries."""
    matches: list[Match] = []
    for rule in rules:
        for pattern in rule.patterns:
            if not isinstance(pattern, ConfigKeyPattern):
                continue
            for entry in unit.config:
                captures = glob_captures(pattern.key, entry.key)
                if captures is None:
                    continue
                if pattern.value is not None:
                    if entry.value is None:
                        continue
                    value_captures = glob_captures(pattern.value, entry.value)
                    if value_captures is None:
                        continue
                    captures = captures + value_captures
                bindings = {
                    "name": entry.path[-1] if entry.path else "",
                    "key": entry.key,
                    "value": entry.value or "",
                }
                bindings.update({str(i): c for i, c in enumerate(captures, start=1)})
                end = first_line_end(unit.content, entry.offset, entry.offset + len(entry.text))
                matches.append(make_match(rule, pattern, unit, entry.offset, end, bindings=bindings))
    return matches
