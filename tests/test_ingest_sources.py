"""Tests for stylesheet and config scanning, classification and unit ingestion."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

import pytest

from convlint.errors import IngestionError, ScanError
from convlint.ingest import Category, classify, discover, ingest, parse_unit, scripts, sniff
from convlint.ingest.keyvalue import scan_config
from convlint.ingest.stylesheet import scan_stylesheet

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


# ---------------------------------------------------------------------------
# Stylesheets
# ---------------------------------------------------------------------------


class TestScanStylesheet:
    def test_at_rules(self) -> None:
        scan = scan_stylesheet("@tailwind base;\n@layer utilities {\n  .x { color: red; }\n}\n")
        assert [(a.name, a.prelude) for a in scan.at_rules] == [
            ("tailwind", "base"),
            ("layer", "utilities"),
        ]
        assert scan.at_rules[1].offset == 16

    def test_apply_tokens(self) -> None:
        text = ".btn { @apply rounded-sm hover:shadow !important; }"
        scan = scan_stylesheet(text, offset=100)
        assert [t.text for t in scan.classes] == ["rounded-sm", "hover:shadow"]
        first = scan.classes[0]
        assert text[first.offset - 100 :].startswith("rounded-sm")

    def test_comments_and_strings_ignored(self) -> None:
        text = '/* @tailwind base; { */\n.a::after { content: "}"; }\n'
        scan = scan_stylesheet(text)
        assert scan.at_rules == ()

    def test_prelude_stops_at_block(self) -> None:
        scan = scan_stylesheet('@media (min-width: 640px) { .a { color: red } }')
        (media,) = scan.at_rules
        assert media.prelude == "(min-width: 640px)"

    @pytest.mark.parametrize(
        ("text", "offset"),
        [
            (".a { color: red;\n", 3),
            (".a { color: red; } }", 19),
            ("/* never closed", 0),
        ],
    )
    def test_errors(self, text: str, offset: int) -> None:
        with pytest.raises(ScanError) as excinfo:
            scan_stylesheet(text)
        assert excinfo.value.offset == offset


# ---------------------------------------------------------------------------
# Config files
# ---------------------------------------------------------------------------


class TestScanConfig:
    def test_json_entries(self) -> None:
        text = '{\n  "devDependencies": {\n    "svelte": "^4.2.0"\n  }\n}\n'
        entries = scan_config(text, grammar="json")
        assert [(e.key, e.value) for e in entries] == [
            ("devDependencies", None),
            ("devDependencies.svelte", "^4.2.0"),
        ]
        assert text[entries[1].offset :].startswith('"svelte"')

    def test_js_object_export(self) -> None:
        text = (
            "export default {\n"
            "  plugins: {\n"
            "    tailwindcss: {},\n"
            "    autoprefixer: {},\n"
            "  },\n"
            "};\n"
        )
        keys = [e.key for e in scan_config(text, grammar="typescript")]
        assert keys == ["plugins", "plugins.tailwindcss", "plugins.autoprefixer"]

    def test_plugin_arrays(self) -> None:
        text = (
            "module.exports = {\n"
            "  content: ['./src/**/*.svelte'],\n"
            "  plugins: [require('@tailwindcss/forms'), sveltekit(), typography],\n"
            "  theme: { extend: { colors: {} } },\n"
            "};\n"
        )
        entries = {e.key: e.value for e in scan_config(text, grammar="typescript")}
        assert "content" in entries
        assert "plugins.@tailwindcss/forms" in entries
        assert "plugins.sveltekit" in entries
        assert "plugins.typography" in entries
        assert "theme.extend.colors" in entries

    def test_call_values_and_shorthand(self) -> None:
        text = "const config = { preprocess: vitePreprocess(), kit };\nexport default config;\n"
        entries = {e.key: e.value for e in scan_config(text, grammar="typescript")}
        assert entries == {"preprocess": "vitePreprocess()", "kit": "kit"}

    def test_syntax_error(self) -> None:
        with pytest.raises(ScanError):
            scan_config('{"a": }', grammar="json")


# ---------------------------------------------------------------------------
# Classification and discovery
# ---------------------------------------------------------------------------


class TestClassify:
    @pytest.mark.parametrize(
        ("name", "category"),
        [
            ("Button.svelte", Category.COMPONENT),
            ("index.html", Category.COMPONENT),
            ("store.svelte.ts", Category.SCRIPT),
            ("util.mjs", Category.SCRIPT),
            ("View.tsx", Category.SCRIPT),
            ("app.css", Category.STYLESHEET),
            ("theme.pcss", Category.STYLESHEET),
            ("tailwind.config.js", Category.CONFIG),
            ("vite.config.ts", Category.CONFIG),
            ("package.json", Category.CONFIG),
            ("tsconfig.json", Category.UNCLASSIFIED),
        ],
    )
    def test_by_name(self, tmp_path: Path, name: str, category: Category) -> None:
        path = tmp_path / name
        path.write_text("", encoding="utf-8")
        assert classify(path) is category

    def test_sniffing(self) -> None:
        assert sniff("\n<script>\n") is Category.COMPONENT
        assert sniff('@import "tailwindcss";') is Category.STYLESHEET
        assert sniff("# README") is Category.UNCLASSIFIED

    def test_unknown_extension_sniffed(self, tmp_path: Path) -> None:
        path = tmp_path / "Widget.component"
        path.write_text("<script>let a;</script>", encoding="utf-8")
        assert classify(path) is Category.COMPONENT


class TestDiscover:
    def test_sorted_relative_paths(self, make_tree: Callable[[dict[str, str]], Path]) -> None:
        root = make_tree({
            "src/routes/+page.svelte": "",
            "src/app.css": "",
            "README.md": "# hi",
            "node_modules/pkg/index.js": "",
            ".svelte-kit/output.js": "",
            "package.json": "{}",
        })
        found = [c.rel_path for c in discover(root)]
        assert found == ["package.json", "src/app.css", "src/routes/+page.svelte"]

    def test_exclude_globs(self, make_tree: Callable[[dict[str, str]], Path]) -> None:
        root = make_tree({
            "src/legacy/Old.svelte": "",
            "src/New.svelte": "",
            "src/gen.ts": "",
        })
        found = [c.rel_path for c in discover(root, exclude=["legacy", "*.ts"])]
        assert found == ["src/New.svelte"]

    def test_single_file_target(self, make_tree: Callable[[dict[str, str]], Path]) -> None:
        root = make_tree({"App.svelte": ""})
        (candidate,) = discover(root / "App.svelte")
        assert candidate.rel_path == "App.svelte"
        assert candidate.category is Category.COMPONENT

    def test_empty_tree(self, tmp_path: Path) -> None:
        assert discover(tmp_path) == []


# ---------------------------------------------------------------------------
# Units
# ---------------------------------------------------------------------------


class TestIngest:
    def test_component_unit(self) -> None:
        content = (
            "<script>\n"
            "  export let title;\n"
            "</script>\n"
            '<h1 class="shadow">{title}</h1>\n'
            "<style>@tailwind base;</style>\n"
        )
        unit = parse_unit("A.svelte", content, Category.COMPONENT, suffix=".svelte")
        origins = [s.origin for s in unit.scripts]
        assert origins == ["instance", "expression"]
        assert [c.text for c in unit.classes] == ["shadow"]
        assert [a.name for a in unit.at_rules] == ["tailwind"]
        assert unit.position(content.index("export")) == (2, 3)

    def test_module_script_origin(self) -> None:
        content = '<script context="module">export let x = 1;</script>'
        unit = parse_unit("A.svelte", content, Category.COMPONENT, suffix=".svelte")
        assert [s.origin for s in unit.scripts] == ["module"]

    def test_script_syntax_error_location(self) -> None:
        content = "<script>\n  let x = ;\n</script>\n"
        with pytest.raises(IngestionError) as excinfo:
            parse_unit("Bad.svelte", content, Category.COMPONENT, suffix=".svelte")
        assert excinfo.value.path == "Bad.svelte"
        assert excinfo.value.line == 2

    def test_markup_error_location(self) -> None:
        with pytest.raises(IngestionError) as excinfo:
            parse_unit("Bad.svelte", '<p>ok</p>\n<div class="a', Category.COMPONENT, suffix=".svelte")
        assert (excinfo.value.line, excinfo.value.column) == (2, 12)
        assert "unterminated attribute value" in str(excinfo.value)

    def test_undecodable_file(self, make_tree: Callable[[dict[str, str]], Path]) -> None:
        root = make_tree({"x.css": ""})
        (root / "x.css").write_bytes(b".a {}\n\xff\xfe")
        (candidate,) = discover(root)
        with pytest.raises(IngestionError, match="not valid UTF-8") as excinfo:
            ingest(candidate)
        assert excinfo.value.line == 2

    def test_bom_is_stripped(self, make_tree: Callable[[dict[str, str]], Path]) -> None:
        root = make_tree({"x.css": ""})
        (root / "x.css").write_bytes(b"\xef\xbb\xbf@tailwind base;")
        (candidate,) = discover(root)
        unit = ingest(candidate)
        assert unit.at_rules[0].offset == 0


class TestGrammars:
    def test_languages_cached(self) -> None:
        scripts.clear_cache()
        first = scripts.get_language("typescript")
        assert scripts.get_language("typescript") is first
        scripts.clear_cache()
        assert scripts.get_language("typescript") is not first

    def test_concurrent_loads_share_one_language(self) -> None:
        scripts.clear_cache()
        with ThreadPoolExecutor(max_workers=8) as pool:
            languages = list(pool.map(lambda _: scripts.get_language("json"), range(32)))
        assert all(language is languages[0] for language in languages)

    def test_unknown_grammar(self) -> None:
        with pytest.raises(ValueError, match="unknown grammar 'cobol'"):
            scripts.get_language("cobol")

    def test_tsx_block_offsets(self) -> None:
        block = scripts.parse_script("const a = <b>é</b>;", offset=10, grammar="tsx")
        assert not scripts.has_syntax_error(block)
        assert block.char_offset(len("const a = <b>é".encode())) == 10 + len("const a = <b>é")
