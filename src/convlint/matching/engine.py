"""Per-unit matching: dispatch rules to domain matchers and resolve overlaps."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from convlint.errors import MatchError
from convlint.matching.base import Match
from convlint.matching.config import match_config
from convlint.matching.markup import match_markup
from convlint.matching.script import match_scripts
from convlint.matching.styling import match_styling
from convlint.rules.model import MATCH_ERROR_RULE, Domain, domain_rank

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from convlint.ingest.units import SourceUnit
    from convlint.rules.model import Rule
    from convlint.rules.registry import RuleRegistry

    Matcher = Callable[[Iterable[Rule], SourceUnit], list[Match]]

logger = logging.getLogger(__name__)


def match_component(rules: Iterable[Rule], unit: SourceUnit) -> list[Match]:
    """Script shapes plus markup elements and attributes."""
    rules = tuple(rules)
    return match_scripts(rules, unit) + match_markup(rules, unit)


def _no_match(rules: Iterable[Rule], unit: SourceUnit) -> list[Match]:
    return []


MATCHERS: dict[Domain, Matcher] = {
    Domain.REACTIVE_STATE: match_component,
    Domain.PROPS: match_component,
    Domain.EVENTS: match_component,
    Domain.SLOTTED_CONTENT: match_component,
    Domain.STYLING_TOKENS: match_styling,
    Domain.BUILD_CONFIG: match_config,
    Domain.ENGINE: _no_match,
}


def _sort_key(match: Match) -> tuple[int, int, str, int]:
    return (-match.specificity, domain_rank(match.rule.domain), match.rule.rule_id, match.start)


def resolve_overlaps(matches: Iterable[Match]) -> list[Match]:
    """Keep one match per overlapping group.

    Higher specificity wins; equal scores fall back to the domain priority
    order and then the rule identifier.  Engine matches never compete.
    """
    kept: list[Match] = []
    engine: list[Match] = []
    for match in sorted(matches, key=_sort_key):
        if match.rule.domain is Domain.ENGINE:
            engine.append(match)
        elif not any(match.overlaps(other) for other in kept):
            kept.append(match)
    return sorted(engine + kept, key=lambda m: (m.start, m.rule.rule_id))


def match_error(unit: SourceUnit, error: MatchError) -> Match:
    """Unit-level match for a matcher failure."""
    return Match(
        rule=MATCH_ERROR_RULE,
        pattern=None,
        path=unit.path,
        line=1,
        column=1,
        end_line=1,
        end_column=1,
        start=0,
        end=0,
        text=str(error),
        bindings=(("match", str(error)),),
    )


def match_unit(registry: RuleRegistry, unit: SourceUnit) -> list[Match]:
    """Run every domain matcher over *unit*.

    A matcher that raises is isolated: its failure becomes a ``match-error``
    match and the other domains still run.
    """
    found: list[Match] = []
    for domain in registry.domains:
        matcher = MATCHERS[domain]
        try:
            found.extend(matcher(registry.for_domain(domain), unit))
        except Exception as exc:  # any matcher fault stays local to this unit
            error = MatchError(unit.path, domain.value, exc)
            logger.info("%s: %s", unit.path, error)
            found.append(match_error(unit, error))
    return resolve_overlaps(found)
