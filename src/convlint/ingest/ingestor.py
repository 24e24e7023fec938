"""Source ingestion: discover, classify and parse files into source units."""

from __future__ import annotations

import fnmatch
import logging
import re
from typing import TYPE_CHECKING

from convlint.errors import IngestionError, ScanError
from convlint.ingest.classes import extract_classes
from convlint.ingest.keyvalue import scan_config
from convlint.ingest.markup import expression_source, scan_markup
from convlint.ingest.scripts import (
    EXTENSION_GRAMMARS,
    first_error_offset,
    has_syntax_error,
    parse_script,
)
from convlint.ingest.stylesheet import scan_stylesheet
from convlint.ingest.units import Candidate, Category, LineIndex, SourceUnit

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from convlint.ingest.units import AtRule, ClassToken, ScriptBlock

logger = logging.getLogger(__name__)

# Dependency, VCS and build-output directories never linted.
_SKIP_DIRS = frozenset({
    "node_modules", ".git", ".hg", ".svn", ".svelte-kit", "build", "dist",
    ".output", ".vercel", ".netlify", ".turbo", ".cache", "coverage",
    "__pycache__", ".venv", "venv",
})

_COMPONENT_EXTENSIONS = frozenset({".svelte", ".html"})
_SCRIPT_EXTENSIONS = frozenset({".js", ".mjs", ".cjs", ".ts", ".mts", ".cts", ".jsx", ".tsx"})
_STYLESHEET_EXTENSIONS = frozenset({".css", ".pcss", ".postcss"})
_CONFIG_NAME_RE = re.compile(r".+\.config\.(js|mjs|cjs|ts|mts|json)$")
_CONFIG_FILE_NAMES = frozenset({"package.json", ".postcssrc.json"})

_SNIFF_BYTES = 512
_COMPONENT_SNIFF_RE = re.compile(r"<(script|style|template)\b", re.IGNORECASE)
_STYLESHEET_SNIFF_RE = re.compile(r"""@tailwind\b|@import\s+["']tailwindcss["']""")


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def sniff(head: str) -> Category:
    """Classify by the leading content of a file with an unknown extension."""
    stripped = head.lstrip()
    if _COMPONENT_SNIFF_RE.match(stripped):
        return Category.COMPONENT
    if _STYLESHEET_SNIFF_RE.match(stripped):
        return Category.STYLESHEET
    return Category.UNCLASSIFIED


def classify(path: Path) -> Category:
    """Classify *path* by file name and extension, then by content."""
    name = path.name.lower()
    suffix = path.suffix.lower()
    if name in _CONFIG_FILE_NAMES or _CONFIG_NAME_RE.match(name):
        return Category.CONFIG
    if suffix in _COMPONENT_EXTENSIONS:
        return Category.COMPONENT
    if suffix in _SCRIPT_EXTENSIONS:
        return Category.SCRIPT
    if suffix in _STYLESHEET_EXTENSIONS:
        return Category.STYLESHEET
    if suffix == ".json":
        return Category.UNCLASSIFIED

    try:
        with path.open("rb") as fh:
            head = fh.read(_SNIFF_BYTES).decode("utf-8", errors="replace")
    except OSError as exc:
        logger.debug("Cannot sniff %s: %s", path, exc)
        return Category.UNCLASSIFIED
    return sniff(head)


def _is_excluded(rel_path: str, patterns: Iterable[str]) -> bool:
    name = rel_path.rsplit("/", 1)[-1]
    return any(
        fnmatch.fnmatch(rel_path, pat) or fnmatch.fnmatch(name, pat)
        for pat in patterns
    )


def discover(target: Path, exclude: Iterable[str] = ()) -> list[Candidate]:
    """Walk *target* and return classified candidates sorted by relative path.

    *target* may be a single file.  Unclassified files are skipped silently.
    """
    patterns = tuple(exclude)
    if target.is_file():
        category = classify(target)
        if category is Category.UNCLASSIFIED:
            logger.debug("Skipping unclassified file %s", target)
            return []
        return [Candidate(target, target.name, category)]

    candidates: list[Candidate] = []
    for file_path in sorted(target.rglob("*")):
        rel_parts = file_path.relative_to(target).parts
        if any(part in _SKIP_DIRS for part in rel_parts[:-1]):
            continue
        if not file_path.is_file():
            continue
        rel_path = "/".join(rel_parts)
        if _is_excluded(rel_path, patterns) or any(
            _is_excluded("/".join(rel_parts[: i + 1]), patterns)
            for i in range(len(rel_parts) - 1)
        ):
            logger.debug("Excluded %s", rel_path)
            continue
        category = classify(file_path)
        if category is Category.UNCLASSIFIED:
            logger.debug("Skipping unclassified file %s", rel_path)
            continue
        candidates.append(Candidate(file_path, rel_path, category))

    candidates.sort(key=lambda c: c.rel_path)
    return candidates


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _parse_checked(text: str, *, offset: int, origin: str, grammar: str) -> ScriptBlock:
    block = parse_script(text, offset=offset, origin=origin, grammar=grammar)
    if has_syntax_error(block):
        msg = "script syntax error"
        raise ScanError(msg, first_error_offset(block))
    return block


def _ingest_component(rel_path: str, content: str, lines: LineIndex, *, svelte: bool) -> SourceUnit:
    scan = scan_markup(content, svelte=svelte)

    scripts: list[ScriptBlock] = []
    for raw in scan.scripts:
        if not raw.is_javascript:
            continue
        if svelte:
            origin = "module" if raw.is_module else "instance"
        else:
            origin = "file"
        scripts.append(
            _parse_checked(raw.content, offset=raw.offset, origin=origin, grammar="typescript")
        )

    # Template expressions are parsed leniently; error recovery keeps the
    # well-formed parts usable.
    for inner, offset in scan.expressions:
        extracted = expression_source(inner)
        if extracted is None:
            continue
        code, shift = extracted
        scripts.append(
            parse_script(code, offset=offset + shift, origin="expression", grammar="typescript")
        )

    classes, dynamic = extract_classes(scan.elements)
    at_rules: list[AtRule] = []
    style_classes: list[ClassToken] = []
    for raw in scan.styles:
        style = scan_stylesheet(raw.content, offset=raw.offset)
        at_rules.extend(style.at_rules)
        style_classes.extend(style.classes)

    return SourceUnit(
        path=rel_path,
        content=content,
        category=Category.COMPONENT,
        lines=lines,
        scripts=tuple(scripts),
        elements=tuple(scan.elements),
        classes=classes + tuple(style_classes),
        dynamic_classes=dynamic,
        at_rules=tuple(at_rules),
    )


def parse_unit(rel_path: str, content: str, category: Category, *, suffix: str = "") -> SourceUnit:
    """Parse already-decoded *content* into a :class:`SourceUnit`.

    Raises :class:`IngestionError` with the line and column of the first
    problem.
    """
    lines = LineIndex(content)
    try:
        if category is Category.COMPONENT:
            return _ingest_component(rel_path, content, lines, svelte=suffix != ".html")
        if category is Category.SCRIPT:
            grammar = EXTENSION_GRAMMARS.get(suffix, "typescript")
            block = _parse_checked(content, offset=0, origin="file", grammar=grammar)
            return SourceUnit(rel_path, content, category, lines, scripts=(block,))
        if category is Category.STYLESHEET:
            style = scan_stylesheet(content)
            return SourceUnit(
                rel_path, content, category, lines,
                classes=style.classes, at_rules=style.at_rules,
            )
        if category is Category.CONFIG:
            grammar = EXTENSION_GRAMMARS.get(suffix, "typescript")
            entries = scan_config(content, grammar=grammar)
            return SourceUnit(rel_path, content, category, lines, config=entries)
    except ScanError as exc:
        line, column = lines.position(exc.offset)
        raise IngestionError(rel_path, exc.reason, line=line, column=column) from exc

    msg = f"cannot ingest unclassified file {rel_path}"
    raise IngestionError(rel_path, msg)


def ingest(candidate: Candidate) -> SourceUnit:
    """Read and parse one classified file."""
    try:
        raw = candidate.path.read_bytes()
    except OSError as exc:
        raise IngestionError(candidate.rel_path, f"unreadable: {exc.strerror or exc}") from exc

    try:
        content = raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        prefix = raw[: exc.start].decode("utf-8-sig", errors="replace")
        line, column = LineIndex(prefix).position(len(prefix))
        raise IngestionError(
            candidate.rel_path, "not valid UTF-8 text", line=line, column=column,
        ) from exc

    return parse_unit(
        candidate.rel_path, content, candidate.category, suffix=candidate.path.suffix.lower(),
    )
