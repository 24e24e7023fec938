"""Rule registry: an immutable, domain-indexed view over loaded rules."""

from __future__ import annotations

import dataclasses
from types import MappingProxyType
from typing import TYPE_CHECKING

from convlint.errors import ConfigError
from convlint.rules.model import (
    DOMAIN_PRIORITY,
    RULE_DOMAINS,
    Domain,
    DynamicClassPattern,
    Rule,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping

ALL_RULESETS = "all"


class RuleRegistry:
    """Read-only lookup over rules.

    A registry never changes after construction; selecting a subset or
    injecting an allowlist returns a new registry.  Workers share one
    instance without locking.
    """

    __slots__ = ("_by_domain", "_by_id", "_content_hash", "_rules")

    def __init__(self, rules: Iterable[Rule], *, content_hash: str = "") -> None:
        rules_tuple = tuple(rules)
        by_id: dict[str, Rule] = {}
        for rule in rules_tuple:
            if rule.rule_id in by_id:
                msg = f"duplicate rule identifier '{rule.rule_id}'"
                raise ValueError(msg)
            by_id[rule.rule_id] = rule

        grouped: dict[Domain, tuple[Rule, ...]] = {}
        for domain in DOMAIN_PRIORITY:
            members = tuple(r for r in rules_tuple if r.domain is domain)
            if members:
                grouped[domain] = members

        self._rules = rules_tuple
        self._by_id: Mapping[str, Rule] = MappingProxyType(by_id)
        self._by_domain: Mapping[Domain, tuple[Rule, ...]] = MappingProxyType(grouped)
        self._content_hash = content_hash

    # -- queries ------------------------------------------------------------

    @property
    def rules(self) -> tuple[Rule, ...]:
        """All rules in load order."""
        return self._rules

    @property
    def domains(self) -> tuple[Domain, ...]:
        """Domains that have at least one rule, in priority order."""
        return tuple(self._by_domain)

    @property
    def priority(self) -> tuple[Domain, ...]:
        """The fixed domain priority used for tie-breaking."""
        return DOMAIN_PRIORITY

    @property
    def content_hash(self) -> str:
        """SHA-256 of the rule-table text this registry was loaded from."""
        return self._content_hash

    def for_domain(self, domain: Domain) -> tuple[Rule, ...]:
        return self._by_domain.get(domain, ())

    def get(self, rule_id: str) -> Rule | None:
        return self._by_id.get(rule_id)

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._by_id

    def __repr__(self) -> str:
        return f"RuleRegistry({len(self._rules)} rules, domains={[d.value for d in self.domains]})"

    # -- derived registries -------------------------------------------------

    def select(self, rulesets: Iterable[str] | None) -> RuleRegistry:
        """Return a registry restricted to the named domains.

        ``None``, an empty selection, or ``all`` keep every rule.  Names may be
        comma-separated.  Unknown names raise :class:`ConfigError`.
        """
        names: list[str] = []
        for entry in rulesets or ():
            names.extend(part.strip() for part in entry.split(",") if part.strip())
        if not names or ALL_RULESETS in names:
            return self

        valid = {d.value: d for d in RULE_DOMAINS}
        unknown = sorted(n for n in set(names) if n not in valid)
        if unknown:
            msg = (
                f"unknown ruleset {', '.join(repr(u) for u in unknown)}; "
                f"expected '{ALL_RULESETS}' or one of {sorted(valid)}"
            )
            raise ConfigError(msg)

        wanted = {valid[n] for n in names}
        return RuleRegistry(
            (r for r in self._rules if r.domain in wanted),
            content_hash=self._content_hash,
        )

    def with_dynamic_allowlist(self, allowlist: Iterable[str]) -> RuleRegistry:
        """Return a registry whose dynamic-class patterns accept *allowlist* globs."""
        globs = tuple(allowlist)
        if not globs:
            return self

        rebuilt: list[Rule] = []
        for rule in self._rules:
            if any(isinstance(p, DynamicClassPattern) for p in rule.patterns):
                patterns = tuple(
                    dataclasses.replace(p, allowlist=p.allowlist + globs)
                    if isinstance(p, DynamicClassPattern)
                    else p
                    for p in rule.patterns
                )
                rule = dataclasses.replace(rule, patterns=patterns)
            rebuilt.append(rule)
        return RuleRegistry(rebuilt, content_hash=self._content_hash)
