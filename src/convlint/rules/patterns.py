"""Translate deprecated-pattern text into domain-specific pattern specifications."""

from __future__ import annotations

import re

from convlint.rules.model import (
    DOMAIN_PATTERN_TYPES,
    AtRulePattern,
    AttributePattern,
    ConfigKeyPattern,
    Domain,
    DynamicClassPattern,
    ElementPattern,
    Pattern,
    ScriptPattern,
    ScriptShape,
    TokenPattern,
)

# ---------------------------------------------------------------------------
# Recognisers
# ---------------------------------------------------------------------------

_ELEMENT_RE = re.compile(r"<\s*([A-Za-z*?][\w:.*?-]*)(.*?)/?\s*>", re.DOTALL)
_ELEMENT_ATTR_RE = re.compile(
    r"""([^\s=/>"']+)(?:\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s/>"']+)))?"""
)
_EXPORTED_RE = re.compile(r"export\s+(?:let|var)\b")
_REACTIVE_ASSIGN_RE = re.compile(r"\$:\s*[\w$.\[\]*?]+\s*[-+*/]?=(?!=)")
_REACTIVE_RE = re.compile(r"\$:")
_CALL_RE = re.compile(r"([A-Za-z_$*?][\w$.*?]*)\s*\(.*\)?\s*;?", re.DOTALL)
_IDENTIFIER_RE = re.compile(r"[A-Za-z_$*?][\w$*?]*")
_ATTRIBUTE_RE = re.compile(
    r"""([A-Za-z_*?][\w:|.*?-]*)(?:\s*=\s*(?:"([^"]*)"|'([^']*)'|(\S+)))?"""
)
_AT_RULE_RE = re.compile(r"@([\w*?-]+)\s*(.*?)\s*;?\s*", re.DOTALL)
_TOKEN_RE = re.compile(r"\S+")
_CONFIG_RE = re.compile(r"""([^\s=]+)\s*(?:=\s*(.+?))?\s*""", re.DOTALL)


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'`":
        return value[1:-1]
    return value


def _parse_element(text: str, replacement: str) -> ElementPattern | None:
    match = _ELEMENT_RE.fullmatch(text)
    if match is None:
        return None
    constraints: list[tuple[str, str | None]] = []
    for attr in _ELEMENT_ATTR_RE.finditer(match.group(2)):
        name = attr.group(1)
        value = next((g for g in attr.group(2, 3, 4) if g is not None), None)
        constraints.append((name, value))
    return ElementPattern(
        text=text,
        replacement=replacement,
        name=match.group(1),
        attributes=tuple(constraints),
    )


def _parse_script(text: str, replacement: str) -> ScriptPattern | None:
    if _EXPORTED_RE.match(text):
        return ScriptPattern(text, replacement, ScriptShape.EXPORTED_BINDING)
    if _REACTIVE_ASSIGN_RE.match(text):
        return ScriptPattern(text, replacement, ScriptShape.REACTIVE_ASSIGNMENT)
    if _REACTIVE_RE.match(text):
        return ScriptPattern(text, replacement, ScriptShape.REACTIVE_STATEMENT)
    call = _CALL_RE.fullmatch(text)
    if call is not None and "(" in text:
        return ScriptPattern(text, replacement, ScriptShape.CALL, name=call.group(1))
    if _IDENTIFIER_RE.fullmatch(text):
        return ScriptPattern(text, replacement, ScriptShape.IDENTIFIER, name=text)
    return None


def _parse_attribute(text: str, replacement: str) -> AttributePattern | None:
    match = _ATTRIBUTE_RE.fullmatch(text)
    if match is None:
        return None
    name = match.group(1)
    value = next((g for g in match.group(2, 3, 4) if g is not None), None)
    if value is None and ":" not in name:
        # A bare word is an identifier, not an attribute.
        return None
    return AttributePattern(text=text, replacement=replacement, name=name, value=value)


def _parse_component_pattern(text: str, replacement: str) -> Pattern | None:
    if text.startswith("<"):
        return _parse_element(text, replacement)
    if not text.startswith("$:"):
        attribute = _parse_attribute(text, replacement)
        if attribute is not None:
            return attribute
    return _parse_script(text, replacement)


def _parse_styling_pattern(text: str, replacement: str) -> Pattern | None:
    if text.startswith("@"):
        match = _AT_RULE_RE.fullmatch(text)
        if match is None:
            return None
        prelude = match.group(2) or None
        return AtRulePattern(text, replacement, name=match.group(1), prelude=prelude)
    if "{" in text:
        return DynamicClassPattern(text, replacement)
    if _TOKEN_RE.fullmatch(text):
        return TokenPattern(text, replacement, token=text)
    return None


def _parse_config_pattern(text: str, replacement: str) -> Pattern | None:
    match = _CONFIG_RE.fullmatch(text)
    if match is None:
        return None
    value = match.group(2)
    return ConfigKeyPattern(
        text,
        replacement,
        key=match.group(1),
        value=_unquote(value) if value is not None else None,
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_pattern(domain: Domain, text: str, replacement: str) -> Pattern:
    """Build the pattern specification for *text* in *domain*.

    Raises ``ValueError`` when the text has no recognisable shape or the
    recognised shape is not allowed in the domain.
    """
    text = text.strip()
    if not text:
        msg = "empty pattern"
        raise ValueError(msg)

    if domain is Domain.STYLING_TOKENS:
        pattern = _parse_styling_pattern(text, replacement)
    elif domain is Domain.BUILD_CONFIG:
        pattern = _parse_config_pattern(text, replacement)
    else:
        pattern = _parse_component_pattern(text, replacement)

    if pattern is None:
        msg = f"unrecognised {domain.value} pattern '{text}'"
        raise ValueError(msg)

    allowed = DOMAIN_PATTERN_TYPES[domain]
    if not isinstance(pattern, allowed):
        kinds = sorted(t.__name__ for t in allowed)
        msg = (
            f"pattern '{text}' is a {type(pattern).__name__}, "
            f"{domain.value} rules accept {kinds}"
        )
        raise ValueError(msg)
    return pattern
