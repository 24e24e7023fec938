"""Diagnostics: user-facing findings derived from matches."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from convlint.rules.model import Domain, Severity, TokenPattern, render_template

if TYPE_CHECKING:
    from collections.abc import Iterable

    from convlint.matching.base import Match

_MAX_QUOTED = 80


@dataclass(frozen=True)
class Diagnostic:
    """One reported convention violation (or engine failure)."""

    match: Match
    rule_id: str
    path: str
    line: int
    column: int
    severity: Severity
    message: str
    suggestion: str

    def sort_key(self) -> tuple[str, int, int, str]:
        return (self.path, self.line, self.column, self.rule_id)

    def to_dict(self) -> dict[str, object]:
        return {
            "path": self.path,
            "line": self.line,
            "column": self.column,
            "ruleId": self.rule_id,
            "severity": self.severity.value,
            "message": self.message,
            "suggestion": self.suggestion,
        }


def _quoted(text: str) -> str:
    first = text.strip().splitlines()[0] if text.strip() else ""
    if len(first) > _MAX_QUOTED:
        first = first[: _MAX_QUOTED - 3] + "..."
    return first


def build_message(match: Match) -> str:
    rule = match.rule
    if rule.domain is Domain.ENGINE:
        return match.text
    message = f"Deprecated {rule.domain.value} pattern `{_quoted(match.text)}`"
    if rule.rationale:
        message += f": {rule.rationale}"
    return message


def build_suggestion(match: Match) -> str:
    """Render the replacement template with the match bindings.

    Variant prefixes and important markers stripped from a utility token are
    put back when the suggestion is a single token.
    """
    pattern = match.pattern
    if pattern is None:
        return match.rule.replacement
    bindings = dict(match.bindings)
    rendered = render_template(pattern.replacement, bindings)
    if isinstance(pattern, TokenPattern) and not any(ch.isspace() for ch in rendered):
        rendered = bindings.get("prefix", "") + rendered + bindings.get("suffix", "")
    return rendered


def to_diagnostic(match: Match) -> Diagnostic:
    return Diagnostic(
        match=match,
        rule_id=match.rule.rule_id,
        path=match.path,
        line=match.line,
        column=match.column,
        severity=match.rule.severity,
        message=build_message(match),
        suggestion=build_suggestion(match),
    )


def build_diagnostics(matches: Iterable[Match]) -> list[Diagnostic]:
    """Convert matches and sort them by ``(path, line, column, rule id)``."""
    diagnostics = [to_diagnostic(m) for m in matches]
    diagnostics.sort(key=Diagnostic.sort_key)
    return diagnostics


def max_severity(diagnostics: Iterable[Diagnostic]) -> Severity | None:
    highest: Severity | None = None
    for diag in diagnostics:
        if highest is None or diag.severity.rank > highest.rank:
            highest = diag.severity
    return highest


def exit_status(diagnostics: Iterable[Diagnostic], threshold: Severity) -> int:
    """``1`` when the worst severity is at or above *threshold*, else ``0``."""
    highest = max_severity(diagnostics)
    if highest is not None and highest.rank >= threshold.rank:
        return 1
    return 0
