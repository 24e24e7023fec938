"""Exception taxonomy shared by the loader, ingestor, matchers and CLI."""

from __future__ import annotations


class ConvlintError(Exception):
    """Base class for all convlint errors."""


# ---------------------------------------------------------------------------
# Fatal errors (exit code 2, no diagnostics emitted)
# ---------------------------------------------------------------------------


class RuleLoadError(ConvlintError):
    """Raised when the rule table is malformed.

    ``row`` is the 1-based rule row (counted across all tables, ``0`` for
    problems that are not tied to a row), ``line`` the 1-based line in the
    rule-table text and ``field`` the offending column.
    """

    def __init__(
        self,
        reason: str,
        *,
        row: int = 0,
        line: int | None = None,
        field: str | None = None,
    ) -> None:
        self.reason = reason
        self.row = row
        self.line = line
        self.field = field
        parts: list[str] = []
        if row:
            parts.append(f"row {row}")
        if line is not None:
            parts.append(f"line {line}")
        location = f" ({', '.join(parts)})" if parts else ""
        super().__init__(f"{reason}{location}")


class ConfigError(ConvlintError):
    """Raised for invalid command-line or config-file settings."""


# ---------------------------------------------------------------------------
# Per-unit errors (recorded as diagnostics, the run continues)
# ---------------------------------------------------------------------------


class IngestionError(ConvlintError):
    """A source file could not be read or parsed."""

    def __init__(
        self,
        path: str,
        reason: str,
        *,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        self.path = path
        self.reason = reason
        self.line = line
        self.column = column
        loc = path
        if line is not None:
            loc += f":{line}"
            if column is not None:
                loc += f":{column}"
        super().__init__(f"{loc}: {reason}")


class MatchError(ConvlintError):
    """A matcher raised while scanning one unit."""

    def __init__(self, path: str, domain: str, cause: BaseException) -> None:
        self.path = path
        self.domain = domain
        self.cause = cause
        super().__init__(f"{domain} matcher failed: {type(cause).__name__}: {cause}")


class ScanError(ConvlintError):
    """A scanner rejected source text at a character ``offset``.

    Raised by the markup, stylesheet, script and key-value scanners; the
    ingestor converts it into an :class:`IngestionError` with a line and
    column.
    """

    def __init__(self, reason: str, offset: int) -> None:
        self.reason = reason
        self.offset = offset
        super().__init__(f"{reason} (offset {offset})")
