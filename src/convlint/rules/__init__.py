"""Rules domain - model, rule-table loader and registry."""

from convlint.rules.loader import default_rules_text, load_registry, parse_rule_table
from convlint.rules.model import (
    DOMAIN_PRIORITY,
    INGESTION_ERROR_RULE,
    MATCH_ERROR_RULE,
    RULE_DOMAINS,
    AtRulePattern,
    AttributePattern,
    ConfigKeyPattern,
    Domain,
    DynamicClassPattern,
    ElementPattern,
    Pattern,
    Rule,
    ScriptPattern,
    ScriptShape,
    Severity,
    TokenPattern,
)
from convlint.rules.patterns import parse_pattern
from convlint.rules.registry import ALL_RULESETS, RuleRegistry

__all__ = [
    "ALL_RULESETS",
    "DOMAIN_PRIORITY",
    "INGESTION_ERROR_RULE",
    "MATCH_ERROR_RULE",
    "RULE_DOMAINS",
    "AtRulePattern",
    "AttributePattern",
    "ConfigKeyPattern",
    "Domain",
    "DynamicClassPattern",
    "ElementPattern",
    "Pattern",
    "Rule",
    "RuleRegistry",
    "ScriptPattern",
    "ScriptShape",
    "Severity",
    "TokenPattern",
    "default_rules_text",
    "load_registry",
    "parse_pattern",
    "parse_rule_table",
]
