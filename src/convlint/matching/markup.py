"""Element and attribute matching on scanned component markup."""

from __future__ import annotations

import fnmatch
from typing import TYPE_CHECKING

from convlint.matching.base import make_match
from convlint.rules.model import AttributePattern, ElementPattern, glob_captures

if TYPE_CHECKING:
    from collections.abc import Iterable

    from convlint.ingest.units import Attribute, Element, SourceUnit
    from convlint.matching.base import Match
    from convlint.rules.model import Rule


def _numbered(captures: Iterable[str]) -> dict[str, str]:
    return {str(i): value for i, value in enumerate(captures, start=1)}


def directive_name(attribute_name: str) -> str:
    """``on:click|preventDefault`` -> ``click``."""
    _, _, rest = attribute_name.partition(":")
    return (rest or attribute_name).split("|", 1)[0]


def _element_bindings(pattern: ElementPattern, element: Element) -> dict[str, str] | None:
    name_captures = glob_captures(pattern.name, element.name)
    if name_captures is None:
        return None
    captures = list(name_captures)
    for attr_glob, value_glob in pattern.attributes:
        for attr in element.attributes:
            if not fnmatch.fnmatchcase(attr.name, attr_glob):
                continue
            if value_glob is None:
                break
            if attr.value is not None:
                value_captures = glob_captures(value_glob, attr.value)
                if value_captures is not None:
                    captures.extend(value_captures)
                    break
        else:
            return None

    bindings = {attr.name: attr.value for attr in element.attributes if attr.value is not None}
    bindings.update(_numbered(captures))
    return bindings


def _attribute_bindings(pattern: AttributePattern, attr: Attribute) -> dict[str, str] | None:
    name_captures = glob_captures(pattern.name, attr.name)
    if name_captures is None:
        return None
    captures = list(name_captures)
    if pattern.value is not None:
        if attr.value is None:
            return None
        value_captures = glob_captures(pattern.value, attr.value)
        if value_captures is None:
            return None
        captures.extend(value_captures)

    bindings = {
        "name": attr.name,
        "value": attr.value or "",
        "event": directive_name(attr.name),
    }
    bindings.update(_numbered(captures))
    return bindings


def match_markup(rules: Iterable[Rule], unit: SourceUnit) -> list[Match]:
    """Match element and attribute patterns against the unit's start tags."""
    matches: list[Match] = []
    for rule in rules:
        for pattern in rule.patterns:
            if isinstance(pattern, ElementPattern):
                for element in unit.elements:
                    bindings = _element_bindings(pattern, element)
                    if bindings is not None:
                        matches.append(
                            make_match(rule, pattern, unit, element.offset, element.end, bindings=bindings)
                        )
            elif isinstance(pattern, AttributePattern):
                for element in unit.elements:
                    for attr in element.attributes:
                        bindings = _attribute_bindings(pattern, attr)
                        if bindings is not None:
                            matches.append(
                                make_match(rule, pattern, unit, attr.offset, attr.end, bindings=bindings)
                            )
    return matches
