"""Match record shared by every domain matcher."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from convlint.rules.model import pattern_specificity

if TYPE_CHECKING:
    from collections.abc import Mapping

    from convlint.ingest.units import SourceUnit
    from convlint.rules.model import Pattern, Rule


@dataclass(frozen=True)
class Match:
    """One occurrence of a rule's antipattern in a unit.

    Lines and columns are 1-based; ``end_column`` is exclusive.  ``start`` and
    ``end`` are character offsets into the unit content.
    """

    rule: Rule
    pattern: Pattern | None
    path: str
    line: int
    column: int
    end_line: int
    end_column: int
    start: int
    end: int
    text: str
    bindings: tuple[tuple[str, str], ...] = ()

    @property
    def specificity(self) -> int:
        if self.pattern is None:
            return self.rule.specificity
        return pattern_specificity(self.pattern)

    def overlaps(self, other: Match) -> bool:
        return self.start < other.end and other.start < self.end


def make_match(
    rule: Rule,
    pattern: Pattern | None,
    unit: SourceUnit,
    start: int,
    end: int,
    *,
    bindings: Mapping[str, str] | None = None,
) -> Match:
    """Build a :class:`Match` for the content span ``[start, end)`` of *unit*."""
    end = max(end, start + 1)
    text = unit.content[start:end]
    line, column = unit.position(start)
    end_line, end_column = unit.position(end)
    merged = {"match": text}
    if bindings:
        merged.update(bindings)
    return Match(
        rule=rule,
        pattern=pattern,
        path=unit.path,
        line=line,
        column=column,
        end_line=end_line,
        end_column=end_column,
        start=start,
        end=end,
        text=text,
        bindings=tuple(sorted(merged.items())),
    )


def first_line_end(content: str, start: int, end: int) -> int:
    """Clamp ``end`` to the end of the line containing *start*."""
    newline = content.find("\n", start, end)
    if newline < 0:
        return end
    if newline > start and content[newline - 1] == "\r":
        return newline - 1
    return newline
