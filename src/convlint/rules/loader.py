"""Rule loader: parse Markdown rule tables into validated Rule objects."""

from __future__ import annotations

import hashlib
import logging
import re
from dataclasses import dataclass
from importlib import resources
from typing import TYPE_CHECKING

from convlint.errors import RuleLoadError
from convlint.rules.model import Domain, Rule, Severity
from convlint.rules.patterns import parse_pattern
from convlint.rules.registry import RuleRegistry

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_RULES_RESOURCE = "default_rules.md"

# ---------------------------------------------------------------------------
# Column and category vocabularies
# ---------------------------------------------------------------------------

_HEADER_ALIASES: dict[str, str] = {
    "category": "category",
    "domain": "category",
    "area": "category",
    "approved": "approved",
    "approved pattern": "approved",
    "recommended": "approved",
    "recommended pattern": "approved",
    "preferred": "approved",
    "use": "approved",
    "do": "approved",
    "deprecated": "deprecated",
    "deprecated pattern": "deprecated",
    "legacy": "deprecated",
    "legacy pattern": "deprecated",
    "avoid": "deprecated",
    "instead of": "deprecated",
    "don't": "deprecated",
    "dont": "deprecated",
    "rationale": "rationale",
    "why": "rationale",
    "reason": "rationale",
    "notes": "rationale",
    "severity": "severity",
    "level": "severity",
}

_REQUIRED_COLUMNS: tuple[str, ...] = ("category", "approved", "deprecated")

# Column key -> field name used in error messages.
_FIELD_NAMES: dict[str, str] = {
    "category": "category",
    "approved": "approved-pattern",
    "deprecated": "deprecated-pattern",
    "severity": "severity",
}

_CATEGORY_ALIASES: dict[str, Domain] = {
    "reactive state": Domain.REACTIVE_STATE,
    "reactivity": Domain.REACTIVE_STATE,
    "state": Domain.REACTIVE_STATE,
    "runes": Domain.REACTIVE_STATE,
    "props": Domain.PROPS,
    "component props": Domain.PROPS,
    "properties": Domain.PROPS,
    "events": Domain.EVENTS,
    "event handlers": Domain.EVENTS,
    "event handling": Domain.EVENTS,
    "slotted content": Domain.SLOTTED_CONTENT,
    "slots": Domain.SLOTTED_CONTENT,
    "snippets": Domain.SLOTTED_CONTENT,
    "styling tokens": Domain.STYLING_TOKENS,
    "styling": Domain.STYLING_TOKENS,
    "utility classes": Domain.STYLING_TOKENS,
    "tailwind": Domain.STYLING_TOKENS,
    "css": Domain.STYLING_TOKENS,
    "build config": Domain.BUILD_CONFIG,
    "build configuration": Domain.BUILD_CONFIG,
    "build": Domain.BUILD_CONFIG,
    "configuration": Domain.BUILD_CONFIG,
    "tooling": Domain.BUILD_CONFIG,
}

_SEPARATOR_CELL_RE = re.compile(r":?-{3,}:?")
_CODE_SPAN_RE = re.compile(r"(`+)(.+?)\1", re.DOTALL)
_UNESCAPED_PIPE_RE = re.compile(r"(?<!\\)\|")
_NORMALIZE_RE = re.compile(r"[\s_-]+")


def _normalize(label: str) -> str:
    label = label.strip().strip("*`_").strip().lower()
    return _NORMALIZE_RE.sub(" ", label)


def _category_domain(label: str) -> Domain | None:
    normalized = _normalize(label)
    if normalized in _CATEGORY_ALIASES:
        return _CATEGORY_ALIASES[normalized]
    for domain in Domain:
        if domain is not Domain.ENGINE and normalized == _normalize(domain.value):
            return domain
    return None


# ---------------------------------------------------------------------------
# Table scanning
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class _Row:
    """One data row of a rule table."""

    index: int  # 1-based, across all tables
    line: int  # 1-based line in the source text
    cells: dict[str, str]


def _split_cells(line: str) -> list[str]:
    body = line.strip()
    if body.startswith("|"):
        body = body[1:]
    if body.endswith("|") and not body.endswith("\\|"):
        body = body[:-1]
    return [cell.strip().replace("\\|", "|") for cell in _UNESCAPED_PIPE_RE.split(body)]


def _is_separator(line: str) -> bool:
    stripped = line.strip()
    if "|" not in stripped:
        return False
    cells = _split_cells(stripped)
    return bool(cells) and all(_SEPARATOR_CELL_RE.fullmatch(c) for c in cells)


def _is_table_line(line: str) -> bool:
    return line.strip().startswith("|")


def _header_columns(cells: list[str], line_no: int) -> list[str | None]:
    columns: list[str | None] = [_HEADER_ALIASES.get(_normalize(c)) for c in cells]
    for required in _REQUIRED_COLUMNS:
        if required not in columns:
            msg = f"rule table header is missing the '{_FIELD_NAMES[required]}' column"
            raise RuleLoadError(msg, line=line_no, field=_FIELD_NAMES[required])
    return columns


def _scan_rows(text: str) -> list[_Row]:
    """Collect data rows from every pipe table in *text*."""
    lines = text.splitlines()
    rows: list[_Row] = []
    i = 0
    while i < len(lines):
        line = lines[i]
        starts_table = (
            _is_table_line(line) and i + 1 < len(lines) and _is_separator(lines[i + 1])
        )
        if not starts_table:
            i += 1
            continue

        columns = _header_columns(_split_cells(line), i + 1)
        i += 2
        while i < len(lines) and _is_table_line(lines[i]):
            values = _split_cells(lines[i])
            cells: dict[str, str] = {}
            for col, value in zip(columns, values):
                if col is not None and col not in cells:
                    cells[col] = value
            rows.append(_Row(index=len(rows) + 1, line=i + 1, cells=cells))
            i += 1
    return rows


# ---------------------------------------------------------------------------
# Cell interpretation
# ---------------------------------------------------------------------------


def _alternatives(cell: str) -> list[str]:
    """Patterns in a cell: its code spans, or the whole cell when there are none."""
    spans = [m.group(2).strip() for m in _CODE_SPAN_RE.finditer(cell)]
    spans = [s for s in spans if s]
    if spans:
        return spans
    plain = cell.strip().strip("`").strip()
    return [plain] if plain else []


def _plain(cell: str) -> str:
    return cell.replace("`", "").strip()


def _build_rule(row: _Row, rule_id: str, domain: Domain) -> Rule:
    deprecated_cell = row.cells.get("deprecated", "")
    approved_cell = row.cells.get("approved", "")
    deprecated = _alternatives(deprecated_cell)
    approved = _alternatives(approved_cell)

    if len(approved) == len(deprecated):
        replacements = approved
    elif len(approved) == 1:
        replacements = approved * len(deprecated)
    else:
        replacements = [_plain(approved_cell)] * len(deprecated)

    patterns = []
    for text, replacement in zip(deprecated, replacements):
        try:
            patterns.append(parse_pattern(domain, text, replacement))
        except ValueError as exc:
            raise RuleLoadError(
                str(exc), row=row.index, line=row.line, field="deprecated-pattern"
            ) from exc

    severity_cell = row.cells.get("severity", "").strip()
    severity = Severity.WARNING
    if severity_cell:
        try:
            severity = Severity.parse(_plain(severity_cell))
        except ValueError as exc:
            raise RuleLoadError(
                str(exc), row=row.index, line=row.line, field="severity"
            ) from exc

    return Rule(
        rule_id=rule_id,
        domain=domain,
        antipattern=deprecated_cell.strip(),
        replacement=approved_cell.strip(),
        patterns=tuple(patterns),
        rationale=row.cells.get("rationale", "").strip(),
        severity=severity,
        line=row.line,
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_rule_table(text: str) -> list[Rule]:
    """Parse rule-table text and return validated Rule objects in table order.

    Rule identifiers are ``<domain>-NNN``, numbered per domain in row order,
    so identical text always yields identical rules.

    Raises
    ------
    RuleLoadError
        On a missing required column, an empty category / approved /
        deprecated cell, an unknown category or severity, an unrecognised
        pattern, or when the text contains no rule rows at all.
    """
    rows = _scan_rows(text)
    if not rows:
        msg = "no rule rows found (expected a table with Category, Approved and Deprecated columns)"
        raise RuleLoadError(msg)

    counters: dict[Domain, int] = {}
    rules: list[Rule] = []
    for row in rows:
        for column in ("category", "deprecated", "approved"):
            if not _alternatives(row.cells.get(column, "")):
                field = _FIELD_NAMES[column]
                raise RuleLoadError(
                    f"missing {field}", row=row.index, line=row.line, field=field
                )

        category = row.cells["category"]
        domain = _category_domain(category)
        if domain is None:
            msg = f"unknown category '{_plain(category)}'"
            raise RuleLoadError(msg, row=row.index, line=row.line, field="category")

        counters[domain] = counters.get(domain, 0) + 1
        rule_id = f"{domain.value}-{counters[domain]:03d}"
        rules.append(_build_rule(row, rule_id, domain))

    logger.debug("Parsed %d rules from %d table rows", len(rules), len(rows))
    return rules


def default_rules_text() -> str:
    """Return the bundled default rule table."""
    return (
        resources.files("convlint.rules")
        .joinpath(DEFAULT_RULES_RESOURCE)
        .read_text(encoding="utf-8")
    )


def load_registry(rules_path: Path | None = None) -> RuleRegistry:
    """Load a rule table (or the bundled default) into a :class:`RuleRegistry`.

    Raises ``RuleLoadError`` when the file cannot be read or is malformed.
    """
    if rules_path is None:
        text = default_rules_text()
        source = DEFAULT_RULES_RESOURCE
    else:
        try:
            text = rules_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            msg = f"cannot read rule table {rules_path}: {exc}"
            raise RuleLoadError(msg) from exc
        source = str(rules_path)

    rules = parse_rule_table(text)
    content_hash = hashlib.sha256(text.encode("utf-8")).hexdigest()
    logger.info("Loaded %d rules from %s", len(rules), source)
    return RuleRegistry(rules, content_hash=content_hash)
