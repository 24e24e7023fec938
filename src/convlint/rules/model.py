"""Rule data model: domains, severities, pattern specifications and rules."""

from __future__ import annotations

import enum
import functools
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class Domain(enum.Enum):
    """Rule domain.  Declaration order is the tie-break priority order."""

    REACTIVE_STATE = "reactive-state"
    PROPS = "props"
    EVENTS = "events"
    SLOTTED_CONTENT = "slotted-content"
    STYLING_TOKENS = "styling-tokens"
    BUILD_CONFIG = "build-config"
    ENGINE = "engine"  # ingestion / matcher failures, never loaded from a table


DOMAIN_PRIORITY: tuple[Domain, ...] = tuple(Domain)
RULE_DOMAINS: tuple[Domain, ...] = tuple(d for d in Domain if d is not Domain.ENGINE)


def domain_rank(domain: Domain) -> int:
    """Position of *domain* in the priority order (lower wins)."""
    return DOMAIN_PRIORITY.index(domain)


class Severity(enum.Enum):
    """Diagnostic severity, ordered ``info < warning < error``."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    @classmethod
    def parse(cls, value: str) -> Severity:
        """Parse a severity name; ``warn`` is accepted for ``warning``."""
        normalized = value.strip().lower()
        if normalized == "warn":
            normalized = "warning"
        try:
            return cls(normalized)
        except ValueError:
            valid = [s.value for s in cls]
            msg = f"invalid severity '{value}', must be one of {valid}"
            raise ValueError(msg) from None


_SEVERITY_RANK: dict[Severity, int] = {
    Severity.INFO: 0,
    Severity.WARNING: 1,
    Severity.ERROR: 2,
}


class ScriptShape(enum.Enum):
    """Syntactic shapes recognised in script syntax trees."""

    EXPORTED_BINDING = "exported-binding"  # export let x
    REACTIVE_ASSIGNMENT = "reactive-assignment"  # $: x = a * 2
    REACTIVE_STATEMENT = "reactive-statement"  # $: console.log(a)
    CALL = "call"  # createEventDispatcher()
    IDENTIFIER = "identifier"  # $$props


# ---------------------------------------------------------------------------
# Pattern specifications
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ScriptPattern:
    """Script construct matched by syntax-tree shape.

    ``name`` is a glob over the callee / identifier for ``CALL`` and
    ``IDENTIFIER`` shapes; statement shapes match on shape alone.
    """

    text: str
    replacement: str
    shape: ScriptShape
    name: str | None = None


@dataclass(frozen=True)
class ElementPattern:
    """Markup element by tag name plus ``(attribute glob, value glob)`` constraints."""

    text: str
    replacement: str
    name: str
    attributes: tuple[tuple[str, str | None], ...] = ()


@dataclass(frozen=True)
class AttributePattern:
    """Markup attribute or directive (``on:*``, ``slot="*"``)."""

    text: str
    replacement: str
    name: str
    value: str | None = None


@dataclass(frozen=True)
class TokenPattern:
    """A utility class token glob, compared against the variant-stripped token."""

    text: str
    replacement: str
    token: str


@dataclass(frozen=True)
class DynamicClassPattern:
    """Class tokens built by string interpolation.

    Constructions whose template text matches one of the ``allowlist`` globs
    are accepted.
    """

    text: str
    replacement: str
    allowlist: tuple[str, ...] = ()


@dataclass(frozen=True)
class AtRulePattern:
    """Stylesheet at-rule by name and optional prelude glob."""

    text: str
    replacement: str
    name: str
    prelude: str | None = None


@dataclass(frozen=True)
class ConfigKeyPattern:
    """Build-configuration entry by dotted key-path glob and optional value glob."""

    text: str
    replacement: str
    key: str
    value: str | None = None


Pattern = (
    ScriptPattern
    | ElementPattern
    | AttributePattern
    | TokenPattern
    | DynamicClassPattern
    | AtRulePattern
    | ConfigKeyPattern
)

# Which pattern shapes each domain may carry.
DOMAIN_PATTERN_TYPES: Mapping[Domain, tuple[type, ...]] = {
    Domain.REACTIVE_STATE: (ScriptPattern,),
    Domain.PROPS: (ScriptPattern, ElementPattern, AttributePattern),
    Domain.EVENTS: (ScriptPattern, AttributePattern),
    Domain.SLOTTED_CONTENT: (ScriptPattern, ElementPattern, AttributePattern),
    Domain.STYLING_TOKENS: (TokenPattern, DynamicClassPattern, AtRulePattern),
    Domain.BUILD_CONFIG: (ConfigKeyPattern,),
    Domain.ENGINE: (),
}


# ---------------------------------------------------------------------------
# Globs and templates
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=1024)
def compile_glob(glob: str) -> re.Pattern[str]:
    """Compile a ``*`` / ``?`` glob into a regex with one group per wildcard."""
    parts: list[str] = []
    for ch in glob:
        if ch == "*":
            parts.append("(.*)")
        elif ch == "?":
            parts.append("(.)")
        else:
            parts.append(re.escape(ch))
    return re.compile("".join(parts), re.DOTALL)


def glob_captures(glob: str, text: str) -> tuple[str, ...] | None:
    """Return the wildcard captures if *text* matches *glob* entirely, else ``None``."""
    match = compile_glob(glob).fullmatch(text)
    if match is None:
        return None
    return match.groups()


def literal_length(text: str) -> int:
    """Number of non-wildcard, non-whitespace characters in a pattern."""
    return sum(1 for ch in text if ch not in "*?" and not ch.isspace())


_PLACEHOLDER_RE = re.compile(r"%([A-Za-z0-9_.-]+)%")


def render_template(template: str, bindings: Mapping[str, str]) -> str:
    """Substitute ``%key%`` placeholders; unknown placeholders are left as-is."""
    return _PLACEHOLDER_RE.sub(lambda m: bindings.get(m.group(1), m.group(0)), template)


def pattern_specificity(pattern: Pattern) -> int:
    """Specificity score of a pattern: its literal antipattern length."""
    return literal_length(pattern.text)


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Rule:
    """A single convention rule derived from one rule-table row."""

    rule_id: str
    domain: Domain
    antipattern: str  # deprecated cell, as written
    replacement: str  # approved cell, as written
    patterns: tuple[Pattern, ...]
    rationale: str = ""
    severity: Severity = Severity.WARNING
    line: int = 0  # line in the rule table (0 for built-in engine rules)

    @property
    def specificity(self) -> int:
        if not self.patterns:
            return 0
        return max(pattern_specificity(p) for p in self.patterns)


INGESTION_ERROR_RULE = Rule(
    rule_id="ingestion-error",
    domain=Domain.ENGINE,
    antipattern="unreadable or unparsable source file",
    replacement="fix the syntax error or exclude the file",
    patterns=(),
    severity=Severity.ERROR,
)

MATCH_ERROR_RULE = Rule(
    rule_id="match-error",
    domain=Domain.ENGINE,
    antipattern="matcher failure",
    replacement="report the failing file to the rule-set maintainers",
    patterns=(),
    severity=Severity.ERROR,
)
