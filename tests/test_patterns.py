"""Tests for convlint.rules.patterns and the glob/template helpers in the model."""

from __future__ import annotations

import pytest

from convlint.rules import (
    AtRulePattern,
    AttributePattern,
    ConfigKeyPattern,
    Domain,
    DynamicClassPattern,
    ElementPattern,
    ScriptPattern,
    ScriptShape,
    TokenPattern,
    parse_pattern,
)
from convlint.rules.model import glob_captures, literal_length, render_template


class TestComponentPatterns:
    def test_element_with_attribute_constraint(self) -> None:
        pattern = parse_pattern(Domain.SLOTTED_CONTENT, '<slot name="*">', "x")
        assert isinstance(pattern, ElementPattern)
        assert pattern.name == "slot"
        assert pattern.attributes == (("name", "*"),)

    def test_self_closing_element(self) -> None:
        pattern = parse_pattern(Domain.SLOTTED_CONTENT, "<slot />", "x")
        assert isinstance(pattern, ElementPattern)
        assert pattern.attributes == ()

    def test_directive_attribute(self) -> None:
        pattern = parse_pattern(Domain.EVENTS, "on:*", "x")
        assert isinstance(pattern, AttributePattern)
        assert pattern.name == "on:*"
        assert pattern.value is None

    def test_attribute_with_value(self) -> None:
        pattern = parse_pattern(Domain.SLOTTED_CONTENT, 'slot="*"', "x")
        assert isinstance(pattern, AttributePattern)
        assert (pattern.name, pattern.value) == ("slot", "*")

    def test_identifier(self) -> None:
        pattern = parse_pattern(Domain.PROPS, "$$restProps", "x")
        assert isinstance(pattern, ScriptPattern)
        assert pattern.shape is ScriptShape.IDENTIFIER
        assert pattern.name == "$$restProps"

    def test_call(self) -> None:
        pattern = parse_pattern(Domain.EVENTS, "createEventDispatcher()", "x")
        assert isinstance(pattern, ScriptPattern)
        assert pattern.shape is ScriptShape.CALL
        assert pattern.name == "createEventDispatcher"

    def test_domain_restriction(self) -> None:
        with pytest.raises(ValueError, match="reactive-state rules accept"):
            parse_pattern(Domain.REACTIVE_STATE, "on:*", "x")

    def test_empty_pattern(self) -> None:
        with pytest.raises(ValueError, match="empty pattern"):
            parse_pattern(Domain.PROPS, "   ", "x")


class TestStylingPatterns:
    def test_token(self) -> None:
        pattern = parse_pattern(Domain.STYLING_TOKENS, "rounded-*-sm", "rounded-%1%-xs")
        assert isinstance(pattern, TokenPattern)
        assert pattern.token == "rounded-*-sm"

    def test_dynamic(self) -> None:
        pattern = parse_pattern(Domain.STYLING_TOKENS, "bg-{color}-500", "x")
        assert isinstance(pattern, DynamicClassPattern)

    def test_at_rule_without_prelude(self) -> None:
        pattern = parse_pattern(Domain.STYLING_TOKENS, "@screen", "x")
        assert isinstance(pattern, AtRulePattern)
        assert pattern.name == "screen"
        assert pattern.prelude is None


class TestConfigPatterns:
    def test_key_only(self) -> None:
        pattern = parse_pattern(Domain.BUILD_CONFIG, "plugins.tailwindcss", "x")
        assert isinstance(pattern, ConfigKeyPattern)
        assert (pattern.key, pattern.value) == ("plugins.tailwindcss", None)

    def test_key_and_quoted_value(self) -> None:
        pattern = parse_pattern(Domain.BUILD_CONFIG, 'devDependencies.svelte = "^4*"', "x")
        assert isinstance(pattern, ConfigKeyPattern)
        assert (pattern.key, pattern.value) == ("devDependencies.svelte", "^4*")


class TestGlobsAndTemplates:
    def test_glob_captures(self) -> None:
        assert glob_captures("rounded-*-sm", "rounded-tl-sm") == ("tl",)
        assert glob_captures("rounded-?", "rounded-t") == ("t",)
        assert glob_captures("rounded-?", "rounded-sm") is None
        assert glob_captures("rounded", "rounded") == ()

    def test_literal_length(self) -> None:
        assert literal_length("rounded-*-sm") == 11
        assert literal_length('<slot name="*">') == 13

    def test_render_template(self) -> None:
        rendered = render_template("let %name% = $derived(%value%)", {"name": "a", "value": "b * 2"})
        assert rendered == "let a = $derived(b * 2)"

    def test_unknown_placeholder_kept(self) -> None:
        assert render_template("%missing%-x", {}) == "%missing%-x"
