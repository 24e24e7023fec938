"""Linter orchestrator: discover units, check them on a worker pool, collect diagnostics."""

from __future__ import annotations

import logging
import queue
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from convlint.errors import ConfigError, IngestionError
from convlint.ingest import UnitState, discover, ingest
from convlint.matching import Match, match_unit
from convlint.report import build_diagnostics, exit_status
from convlint.rules import INGESTION_ERROR_RULE, load_registry

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from convlint.config import LintConfig
    from convlint.ingest import Candidate, Category
    from convlint.report import Diagnostic
    from convlint.rules import RuleRegistry, Severity

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class LintResult:
    """Result of a lint run."""

    diagnostics: list[Diagnostic] = field(default_factory=list)
    rules_evaluated: int = 0
    files_checked: int = 0
    files_failed: int = 0  # units that ended in a parse failure
    files_not_checked: int = 0  # units left in the queue at the deadline
    timed_out: bool = False
    elapsed_ms: float = 0.0

    def exit_code(self, threshold: Severity) -> int:
        return exit_status(self.diagnostics, threshold)


@dataclass(frozen=True)
class UnitOutcome:
    """Matches found in one unit and the states it passed through."""

    path: str
    category: Category
    trail: tuple[UnitState, ...]
    matches: tuple[Match, ...]

    @property
    def failed(self) -> bool:
        return UnitState.PARSE_FAILURE in self.trail


# ---------------------------------------------------------------------------
# Per-unit pipeline
# ---------------------------------------------------------------------------


def ingestion_match(path: str, error: IngestionError) -> Match:
    """Unit-level match recording why *path* could not be ingested."""
    line = error.line or 1
    column = error.column or 1
    text = f"Cannot parse file: {error.reason}"
    return Match(
        rule=INGESTION_ERROR_RULE,
        pattern=None,
        path=path,
        line=line,
        column=column,
        end_line=line,
        end_column=column,
        start=0,
        end=0,
        text=text,
        bindings=(("match", text),),
    )


def check_unit(candidate: Candidate, registry: RuleRegistry) -> UnitOutcome:
    """Read, parse and match one unit.

    Ingestion failures are recorded as an ``ingestion-error`` match rather
    than raised.
    """
    trail = [UnitState.CLASSIFIED]
    try:
        unit = ingest(candidate)
    except IngestionError as exc:
        logger.info("Ingestion failed: %s", exc)
        trail.extend((UnitState.PARSE_FAILURE, UnitState.REPORTED))
        return UnitOutcome(
            candidate.rel_path,
            candidate.category,
            tuple(trail),
            (ingestion_match(candidate.rel_path, exc),),
        )

    trail.append(UnitState.PARSED)
    matches = match_unit(registry, unit)
    trail.extend((UnitState.MATCHED, UnitState.REPORTED))
    logger.debug("%s: %d matches", candidate.rel_path, len(matches))
    return UnitOutcome(candidate.rel_path, candidate.category, tuple(trail), tuple(matches))


def _drain(
    pending: queue.Queue[Candidate],
    registry: RuleRegistry,
    deadline: float | None,
) -> list[UnitOutcome]:
    """Worker loop: take units until the queue is empty or the deadline passes."""
    outcomes: list[UnitOutcome] = []
    while True:
        if deadline is not None and time.monotonic() >= deadline:
            return outcomes
        try:
            candidate = pending.get_nowait()
        except queue.Empty:
            return outcomes
        outcomes.append(check_unit(candidate, registry))


# ---------------------------------------------------------------------------
# Main entry points
# ---------------------------------------------------------------------------


def prepare_registry(config: LintConfig) -> RuleRegistry:
    """Load the rule table and apply ruleset selection and the class allowlist.

    Raises :class:`~convlint.errors.RuleLoadError` or
    :class:`~convlint.errors.ConfigError`.
    """
    registry = load_registry(config.rules_path)
    return registry.select(config.rulesets).with_dynamic_allowlist(
        config.dynamic_class_allowlist,
    )


def lint(
    target: Path,
    registry: RuleRegistry,
    *,
    workers: int = 1,
    timeout: float | None = None,
    exclude: Iterable[str] = (),
) -> LintResult:
    """Lint every classified file under *target*.

    Parameters
    ----------
    target:
        Directory or single file to lint.
    registry:
        Rules to apply; shared read-only by all workers.
    workers:
        Size of the worker pool.
    timeout:
        Run-level deadline in seconds.  Workers stop taking new units once
        it passes; units in flight finish and their diagnostics are kept.
    exclude:
        Extra glob patterns matched against relative paths and file names.

    Returns
    -------
    LintResult
        Sorted diagnostics plus run counters.
    """
    start = time.monotonic()
    if not target.exists():
        msg = f"target not found: {target}"
        raise ConfigError(msg)

    deadline = start + timeout if timeout is not None else None
    candidates = discover(target, exclude)
    pending: queue.Queue[Candidate] = queue.Queue()
    for candidate in candidates:
        pending.put(candidate)

    outcomes: list[UnitOutcome] = []
    if candidates:
        pool_size = max(1, min(workers, len(candidates)))
        with ThreadPoolExecutor(max_workers=pool_size, thread_name_prefix="convlint") as pool:
            futures = [pool.submit(_drain, pending, registry, deadline) for _ in range(pool_size)]
            for future in futures:
                outcomes.extend(future.result())

    not_checked = pending.qsize()
    if not_checked:
        logger.warning("Timeout reached: %d of %d files not checked", not_checked, len(candidates))

    diagnostics = build_diagnostics(m for outcome in outcomes for m in outcome.matches)
    elapsed = (time.monotonic() - start) * 1000
    logger.info(
        "Checked %d files, %d diagnostics in %.0f ms", len(outcomes), len(diagnostics), elapsed,
    )
    return LintResult(
        diagnostics=diagnostics,
        rules_evaluated=len(registry),
        files_checked=len(outcomes),
        files_failed=sum(1 for o in outcomes if o.failed),
        files_not_checked=not_checked,
        timed_out=not_checked > 0,
        elapsed_ms=elapsed,
    )
