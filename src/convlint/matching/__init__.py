"""Pattern matchers - one per rule domain, plus overlap resolution."""

from convlint.matching.base import Match, make_match
from convlint.matching.engine import MATCHERS, match_unit, resolve_overlaps

__all__ = [
    "MATCHERS",
    "Match",
    "make_match",
    "match_unit",
    "resolve_overlaps",
]
