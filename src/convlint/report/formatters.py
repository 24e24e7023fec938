"""Output formatters for lint results and rule listings."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from convlint.rules.model import Severity

if TYPE_CHECKING:
    from collections.abc import Sequence

    from convlint.linter import LintResult
    from convlint.report.diagnostics import Diagnostic
    from convlint.rules.registry import RuleRegistry


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def format_text(result: LintResult) -> str:
    """Format a lint result for the terminal.

    Example output::

        src/lib/Counter.svelte:2:3: warning [reactive-state-001] Deprecated ...
            suggestion: let { count } = $props()

        ✗ 2 problems (0 errors, 2 warnings, 0 info) in 3 files (23 rules evaluated, 0.1s)

    Example output without diagnostics::

        ✓ No problems found in 3 files (23 rules evaluated, 0.1s)
    """
    lines: list[str] = []
    for diag in result.diagnostics:
        lines.append(
            f"{diag.path}:{diag.line}:{diag.column}: "
            f"{diag.severity.value} [{diag.rule_id}] {diag.message}"
        )
        if diag.suggestion:
            lines.append(f"    suggestion: {diag.suggestion}")
    if lines:
        lines.append("")

    elapsed = f"{result.elapsed_ms / 1000:.1f}s"
    scope = (
        f"in {_plural(result.files_checked, 'file')} "
        f"({result.rules_evaluated} rules evaluated, {elapsed})"
    )
    if result.diagnostics:
        counts = {sev: 0 for sev in Severity}
        for diag in result.diagnostics:
            counts[diag.severity] += 1
        lines.append(
            f"✗ {_plural(len(result.diagnostics), 'problem')} "
            f"({_plural(counts[Severity.ERROR], 'error')}, "
            f"{_plural(counts[Severity.WARNING], 'warning')}, "
            f"{counts[Severity.INFO]} info) {scope}"
        )
    else:
        lines.append(f"✓ No problems found {scope}")

    if result.timed_out:
        lines.append(
            f"! Timed out: {_plural(result.files_not_checked, 'file')} not checked; "
            "results are partial"
        )
    return "\n".join(lines)


def format_json(diagnostics: Sequence[Diagnostic]) -> str:
    """Format diagnostics as an ordered JSON array."""
    return json.dumps([d.to_dict() for d in diagnostics], indent=2, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Rule listings
# ---------------------------------------------------------------------------


def format_rules_text(registry: RuleRegistry) -> str:
    """Render the registry as a Rich table (plain text when not a terminal)."""
    from io import StringIO

    from rich.console import Console
    from rich.table import Table

    buf = StringIO()
    console = Console(file=buf, width=120)

    table = Table(title=f"{_plural(len(registry), 'rule')} loaded", title_justify="left")
    table.add_column("ID", no_wrap=True)
    table.add_column("Severity")
    table.add_column("Deprecated", overflow="fold")
    table.add_column("Approved", overflow="fold")

    for rule in registry:
        table.add_row(rule.rule_id, rule.severity.value, rule.antipattern, rule.replacement)

    console.print(table)
    return buf.getvalue()


def format_rules_json(registry: RuleRegistry) -> str:
    rows: list[dict[str, object]] = [
        {
            "ruleId": rule.rule_id,
            "domain": rule.domain.value,
            "severity": rule.severity.value,
            "deprecated": rule.antipattern,
            "approved": rule.replacement,
            "rationale": rule.rationale,
            "specificity": rule.specificity,
            "line": rule.line,
        }
        for rule in registry
    ]
    output: dict[str, object] = {"contentHash": registry.content_hash, "rules": rows}
    return json.dumps(output, indent=2, ensure_ascii=False)
