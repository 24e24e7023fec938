"""Tests for convlint.matching - domain matchers and overlap resolution."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from convlint.ingest import Category, parse_unit
from convlint.matching import engine, match_unit
from convlint.matching.styling import split_variants
from convlint.report import build_diagnostics
from convlint.rules import Domain, RuleRegistry, TokenPattern, parse_rule_table

if TYPE_CHECKING:
    from convlint.report import Diagnostic


def _diagnose(
    registry: RuleRegistry,
    rel_path: str,
    content: str,
    category: Category = Category.COMPONENT,
) -> list[Diagnostic]:
    suffix = "." + rel_path.rsplit(".", 1)[-1]
    unit = parse_unit(rel_path, content, category, suffix=suffix)
    return build_diagnostics(match_unit(registry, unit))


def _summary(diagnostics: list[Diagnostic]) -> list[tuple[str, int, int, str]]:
    return [(d.rule_id, d.line, d.column, d.suggestion) for d in diagnostics]


# ---------------------------------------------------------------------------
# Component scripts
# ---------------------------------------------------------------------------


class TestScriptShapes:
    def test_exported_prop_and_reactive_assignment(self, default_registry: RuleRegistry) -> None:
        content = (
            "<script>\n"
            "  export let count = 0;\n"
            "  $: doubled = count * 2;\n"
            "</script>\n"
            "\n"
            "<p>{doubled}</p>\n"
        )
        diagnostics = _diagnose(default_registry, "src/Counter.svelte", content)
        assert _summary(diagnostics) == [
            ("reactive-state-001", 2, 3, "let { count } = $props()"),
            ("reactive-state-002", 3, 3, "let doubled = $derived(count * 2)"),
        ]
        assert all(d.severity.value == "warning" for d in diagnostics)

    def test_reactive_statement(self, default_registry: RuleRegistry) -> None:
        content = "<script>\n  let n = 0;\n  $: console.log(n);\n</script>\n"
        (diag,) = _diagnose(default_registry, "Log.svelte", content)
        assert diag.rule_id == "reactive-state-003"
        assert diag.suggestion == "$effect(() => { console.log(n) })"

    def test_module_script_exports_are_not_props(self, default_registry: RuleRegistry) -> None:
        content = '<script context="module">\n  export let shared = 1;\n</script>\n'
        assert _diagnose(default_registry, "Mod.svelte", content) == []

    def test_event_dispatcher_call(self, default_registry: RuleRegistry) -> None:
        content = (
            "<script>\n"
            "  import { createEventDispatcher } from 'svelte';\n"
            "  const dispatch = createEventDispatcher();\n"
            "</script>\n"
        )
        (diag,) = _diagnose(default_registry, "Form.svelte", content)
        assert (diag.rule_id, diag.line, diag.column) == ("events-002", 3, 20)

    def test_identifier_in_template_expression(self, default_registry: RuleRegistry) -> None:
        (diag,) = _diagnose(default_registry, "Title.svelte", "<h1>{$$props.title}</h1>\n")
        assert (diag.rule_id, diag.line, diag.column) == ("props-001", 1, 6)
        assert diag.message.startswith("Deprecated props pattern `$$props`")

    def test_plain_script_file(self, default_registry: RuleRegistry) -> None:
        content = "import { beforeUpdate } from 'svelte';\n\nbeforeUpdate(() => {\n  sync();\n});\n"
        (diag,) = _diagnose(default_registry, "lib/hooks.ts", content, Category.SCRIPT)
        assert (diag.rule_id, diag.line, diag.column) == ("reactive-state-004", 3, 1)


# ---------------------------------------------------------------------------
# Markup
# ---------------------------------------------------------------------------


class TestMarkup:
    def test_event_directive(self, default_registry: RuleRegistry) -> None:
        content = "<button on:click={handler}>Save</button>\n"
        (diag,) = _diagnose(default_registry, "Save.svelte", content)
        assert _summary([diag]) == [("events-001", 1, 9, "onclick={handler}")]

    def test_named_slot_beats_default_slot(self, default_registry: RuleRegistry) -> None:
        content = '<header>\n  <slot name="header" />\n</header>\n'
        (diag,) = _diagnose(default_registry, "Card.svelte", content)
        assert _summary([diag]) == [("slotted-content-002", 2, 3, "{@render header?.()}")]

    def test_default_slot(self, default_registry: RuleRegistry) -> None:
        (diag,) = _diagnose(default_registry, "Box.svelte", "<div><slot /></div>\n")
        assert diag.rule_id == "slotted-content-001"
        assert diag.suggestion == "{@render children?.()}"


# ---------------------------------------------------------------------------
# Styling
# ---------------------------------------------------------------------------


class TestStyling:
    @pytest.mark.parametrize(
        ("token", "expected"),
        [
            ("rounded-sm", ("", "rounded-sm", "")),
            ("hover:shadow-sm", ("hover:", "shadow-sm", "")),
            ("!rounded", ("!", "rounded", "")),
            ("md:hover:blur!", ("md:hover:", "blur", "!")),
            ("[&>*]:rounded", ("[&>*]:", "rounded", "")),
            ("bg-[url(a:b)]", ("", "bg-[url(a:b)]", "")),
        ],
    )
    def test_split_variants(self, token: str, expected: tuple[str, str, str]) -> None:
        assert split_variants(token) == expected

    def test_renamed_token(self, default_registry: RuleRegistry) -> None:
        content = '<div class="rounded-sm p-4">x</div>\n'
        (diag,) = _diagnose(default_registry, "Panel.svelte", content)
        assert _summary([diag]) == [("styling-tokens-001", 1, 13, "rounded-xs")]

    def test_variants_carried_into_suggestion(self, default_registry: RuleRegistry) -> None:
        content = '<div class="hover:shadow-sm !rounded-sm">x</div>\n'
        suggestions = [d.suggestion for d in _diagnose(default_registry, "Panel.svelte", content)]
        assert suggestions == ["hover:shadow-xs", "!rounded-xs"]

    def test_bare_alias_gets_advice(self, default_registry: RuleRegistry) -> None:
        (diag,) = _diagnose(default_registry, "A.svelte", '<p class="md:rounded">x</p>')
        assert (diag.rule_id, diag.severity.value) == ("styling-tokens-002", "info")
        assert diag.suggestion.startswith("name the radius step explicitly")

    def test_default_suggestions_are_clean(self, default_registry: RuleRegistry) -> None:
        for rule in default_registry.for_domain(Domain.STYLING_TOKENS):
            for pattern in rule.patterns:
                if not isinstance(pattern, TokenPattern):
                    continue
                token = pattern.token.replace("*", "t").replace("?", "t")
                found = _diagnose(default_registry, "A.svelte", f'<p class="{token}">x</p>')
                assert [d.rule_id for d in found] == [rule.rule_id], token
                suggestion = found[0].suggestion
                if any(ch.isspace() for ch in suggestion):
                    continue
                again = _diagnose(default_registry, "A.svelte", f'<p class="{suggestion}">x</p>')
                assert again == [], f"{token} -> {suggestion} is itself flagged"

    def test_side_specific_capture(self, default_registry: RuleRegistry) -> None:
        (diag,) = _diagnose(default_registry, "A.svelte", '<p class="rounded-tl-sm">x</p>')
        assert diag.suggestion == "rounded-tl-xs"

    def test_stylesheet_at_rules(self, default_registry: RuleRegistry) -> None:
        content = "@tailwind base;\n@tailwind utilities;\n"
        diagnostics = _diagnose(default_registry, "app.css", content, Category.STYLESHEET)
        assert [(d.rule_id, d.line, d.severity.value) for d in diagnostics] == [
            ("styling-tokens-019", 1, "error"),
            ("styling-tokens-019", 2, "error"),
        ]

    def test_apply_in_component_style(self, default_registry: RuleRegistry) -> None:
        content = "<p>x</p>\n<style>\n  p { @apply shadow-sm; }\n</style>\n"
        (diag,) = _diagnose(default_registry, "A.svelte", content)
        assert (diag.rule_id, diag.line, diag.column) == ("styling-tokens-005", 3, 14)

    def test_dynamic_class(self, default_registry: RuleRegistry) -> None:
        content = '<div class="bg-{color}-500">x</div>\n'
        (diag,) = _diagnose(default_registry, "Badge.svelte", content)
        assert (diag.rule_id, diag.column) == ("styling-tokens-021", 13)

    def test_dynamic_class_allowlist(self, default_registry: RuleRegistry) -> None:
        registry = default_registry.with_dynamic_allowlist(["bg-{*}-500"])
        content = '<div class="bg-{color}-500">x</div>\n'
        assert _diagnose(registry, "Badge.svelte", content) == []


# ---------------------------------------------------------------------------
# Build configuration
# ---------------------------------------------------------------------------


class TestConfig:
    def test_postcss_plugins(self, default_registry: RuleRegistry) -> None:
        content = (
            "export default {\n"
            "  plugins: {\n"
            "    tailwindcss: {},\n"
            "    autoprefixer: {},\n"
            "  },\n"
            "};\n"
        )
        diagnostics = _diagnose(default_registry, "postcss.config.js", content, Category.CONFIG)
        assert [(d.rule_id, d.line, d.column, d.severity.value) for d in diagnostics] == [
            ("build-config-001", 3, 5, "error"),
            ("build-config-002", 4, 5, "warning"),
        ]

    def test_package_json_versions(self, default_registry: RuleRegistry) -> None:
        content = (
            "{\n"
            '  "devDependencies": {\n'
            '    "svelte": "^4.2.0",\n'
            '    "svelte-preprocess": "^5.0.0"\n'
            "  }\n"
            "}\n"
        )
        diagnostics = _diagnose(default_registry, "package.json", content, Category.CONFIG)
        assert [(d.rule_id, d.line) for d in diagnostics] == [
            ("build-config-006", 3),
            ("build-config-005", 4),
        ]

    def test_current_version_is_clean(self, default_registry: RuleRegistry) -> None:
        content = '{"devDependencies": {"svelte": "^5.1.0"}}'
        assert _diagnose(default_registry, "package.json", content, Category.CONFIG) == []


# ---------------------------------------------------------------------------
# Overlaps and isolation
# ---------------------------------------------------------------------------


class TestResolution:
    def test_more_specific_pattern_wins(self) -> None:
        table = (
            "| Category | Approved | Deprecated |\n"
            "|---|---|---|\n"
            "| Styling tokens | `radius-%1%` | `rounded-*` |\n"
            "| Styling tokens | `rounded-xs` | `rounded-sm` |\n"
        )
        registry = RuleRegistry(parse_rule_table(table))
        (diag,) = _diagnose(registry, "A.svelte", '<p class="rounded-sm">x</p>')
        assert diag.rule_id == "styling-tokens-002"
        diagnostics = _diagnose(registry, "A.svelte", '<p class="rounded-lg">x</p>')
        assert [d.suggestion for d in diagnostics] == ["radius-lg"]

    def test_equal_specificity_uses_rule_order(self) -> None:
        table = (
            "| Category | Approved | Deprecated |\n"
            "|---|---|---|\n"
            "| Styling tokens | `b-%1%` | `a-*` |\n"
            "| Styling tokens | `c-%1%` | `*-x` |\n"
        )
        registry = RuleRegistry(parse_rule_table(table))
        (diag,) = _diagnose(registry, "A.svelte", '<p class="a-x">x</p>')
        assert diag.rule_id == "styling-tokens-001"

    def test_equal_specificity_across_domains_uses_domain_priority(self) -> None:
        table = (
            "| Category | Approved | Deprecated |\n"
            "|---|---|---|\n"
            "| Events | `onLegacy` | `legacyProp` |\n"
            "| Props | `modernProp` | `legacyProp` |\n"
        )
        registry = RuleRegistry(parse_rule_table(table))
        content = "<script>\n  legacyProp();\n</script>\n"
        (diag,) = _diagnose(registry, "A.svelte", content)
        # events-001 sorts first by id; props ranks higher
        assert (diag.rule_id, diag.suggestion) == ("props-001", "modernProp")

    def test_matcher_failure_is_isolated(
        self, default_registry: RuleRegistry, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        def boom(rules: object, unit: object) -> list[object]:
            msg = "exploded"
            raise RuntimeError(msg)

        monkeypatch.setitem(engine.MATCHERS, Domain.STYLING_TOKENS, boom)
        content = '<script>\n  export let a;\n</script>\n<p class="rounded-sm">x</p>\n'
        diagnostics = _diagnose(default_registry, "A.svelte", content)
        assert [d.rule_id for d in diagnostics] == ["match-error", "reactive-state-001"]
        failure = diagnostics[0]
        assert failure.severity.value == "error"
        assert "styling-tokens matcher failed: RuntimeError: exploded" in failure.message
