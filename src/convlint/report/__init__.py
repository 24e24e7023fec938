"""Diagnostic reporter - diagnostics, ordering, exit status and formatters."""

from convlint.report.diagnostics import (
    Diagnostic,
    build_diagnostics,
    exit_status,
    max_severity,
    to_diagnostic,
)
from convlint.report.formatters import (
    format_json,
    format_rules_json,
    format_rules_text,
    format_text,
)

__all__ = [
    "Diagnostic",
    "build_diagnostics",
    "exit_status",
    "format_json",
    "format_rules_json",
    "format_rules_text",
    "format_text",
    "max_severity",
    "to_diagnostic",
]
