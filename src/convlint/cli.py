"""convlint CLI entry point."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from convlint import __version__
from convlint.rules.model import RULE_DOMAINS, Severity
from convlint.rules.registry import ALL_RULESETS

_SEVERITY_CHOICES = [s.value for s in Severity]
_RULESET_HELP = (
    f"Rule domain to apply: {ALL_RULESETS} (default) or one of "
    f"{', '.join(d.value for d in RULE_DOMAINS)}.  Repeatable; comma-separated "
    "names are accepted."
)


def _configure_logging(*, verbose: bool, quiet: bool) -> None:
    from rich.console import Console
    from rich.logging import RichHandler

    level = logging.WARNING
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@click.group()
@click.version_option(version=__version__, prog_name="convlint")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool) -> None:
    """convlint - convention-compliance linter for component and styling code."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    _configure_logging(verbose=verbose, quiet=quiet)


@main.command()
@click.argument(
    "path",
    type=click.Path(exists=True, path_type=Path),
    default=".",
)
@click.option("--ruleset", "rulesets", multiple=True, help=_RULESET_HELP)
@click.option(
    "--severity-min",
    type=click.Choice(_SEVERITY_CHOICES),
    default=None,
    help="Lowest severity that makes the exit status 1 (default: warning).",
)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["text", "json"]),
    default=None,
    help="Output format (default: text).",
)
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Stop taking new files after this many seconds; results are partial.",
)
@click.option(
    "--rules",
    "rules_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Rule table (Markdown).  Default: the built-in table.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: <path>/.convlint.yml when present).",
)
@click.option(
    "--workers",
    type=click.IntRange(min=1),
    default=None,
    help="Worker pool size (default: min(8, CPU count)).",
)
def lint(
    *,
    path: Path,
    rulesets: tuple[str, ...],
    severity_min: str | None,
    fmt: str | None,
    timeout: float | None,
    rules_path: Path | None,
    config_path: Path | None,
    workers: int | None,
) -> None:
    """Check PATH against the convention rules.

    Exit codes: 0 = no diagnostic at or above --severity-min,
    1 = at least one, 2 = rule-table or configuration error.
    """
    from convlint.config import load_config
    from convlint.errors import ConfigError, RuleLoadError
    from convlint.linter import lint as run_lint
    from convlint.linter import prepare_registry
    from convlint.report import format_json, format_text

    try:
        config = load_config(
            path,
            config_path=config_path,
            overrides={
                "rules_path": rules_path,
                "rulesets": rulesets,
                "severity_min": Severity(severity_min) if severity_min else None,
                "output_format": fmt,
                "timeout": timeout,
                "workers": workers,
            },
        )
        registry = prepare_registry(config)
        result = run_lint(
            path,
            registry,
            workers=config.worker_count,
            timeout=config.timeout,
            exclude=config.exclude,
        )
    except (ConfigError, RuleLoadError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    if config.output_format == "json":
        click.echo(format_json(result.diagnostics))
    else:
        click.echo(format_text(result))

    sys.exit(result.exit_code(config.severity_min))


@main.command()
@click.option(
    "--rules",
    "rules_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Rule table (Markdown).  Default: the built-in table.",
)
@click.option("--ruleset", "rulesets", multiple=True, help=_RULESET_HELP)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format.",
)
def rules(*, rules_path: Path | None, rulesets: tuple[str, ...], fmt: str) -> None:
    """List the loaded convention rules."""
    from convlint.errors import ConfigError, RuleLoadError
    from convlint.report import format_rules_json, format_rules_text
    from convlint.rules import load_registry

    try:
        registry = load_registry(rules_path).select(rulesets)
    except (ConfigError, RuleLoadError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    if fmt == "json":
        click.echo(format_rules_json(registry))
    else:
        click.echo(format_rules_text(registry), nl=False)
