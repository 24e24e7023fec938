"""Project configuration: ``.convlint.yml`` merged with command-line flags."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

from convlint.errors import ConfigError
from convlint.rules.model import Severity
from convlint.rules.registry import ALL_RULESETS

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".convlint.yml"
OUTPUT_FORMATS: tuple[str, ...] = ("text", "json")
MAX_DEFAULT_WORKERS = 8

_FILE_KEYS: frozenset[str] = frozenset({
    "rules", "ruleset", "severity_min", "format", "timeout", "workers",
    "exclude", "dynamic_class_allowlist",
})


def default_workers() -> int:
    return min(MAX_DEFAULT_WORKERS, os.cpu_count() or 1)


@dataclass(frozen=True)
class LintConfig:
    """Resolved settings for one lint run."""

    rules_path: Path | None = None
    rulesets: tuple[str, ...] = (ALL_RULESETS,)
    severity_min: Severity = Severity.WARNING
    output_format: str = "text"
    timeout: float | None = None
    workers: int = 0  # 0 -> default_workers()
    exclude: tuple[str, ...] = ()
    dynamic_class_allowlist: tuple[str, ...] = ()

    @property
    def worker_count(self) -> int:
        return self.workers or default_workers()


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _string_list(key: str, value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return tuple(value)
    msg = f"'{key}' must be a string or a list of strings"
    raise ConfigError(msg)


def parse_severity(value: Any) -> Severity:
    if not isinstance(value, str):
        msg = f"severity_min must be a string, got {type(value).__name__}"
        raise ConfigError(msg)
    try:
        return Severity.parse(value)
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc


def parse_timeout(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        msg = f"timeout must be a number of seconds, got {value!r}"
        raise ConfigError(msg)
    if value <= 0:
        msg = f"timeout must be positive, got {value}"
        raise ConfigError(msg)
    return float(value)


def parse_workers(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        msg = f"workers must be a positive integer, got {value!r}"
        raise ConfigError(msg)
    return value


def parse_format(value: Any) -> str:
    if value not in OUTPUT_FORMATS:
        msg = f"format must be one of {list(OUTPUT_FORMATS)}, got {value!r}"
        raise ConfigError(msg)
    return str(value)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def _from_mapping(data: dict[str, Any], base_dir: Path) -> dict[str, Any]:
    unknown = sorted(set(data) - _FILE_KEYS)
    if unknown:
        msg = f"unknown config keys: {', '.join(unknown)}"
        raise ConfigError(msg)

    values: dict[str, Any] = {}
    if "rules" in data:
        if not isinstance(data["rules"], str):
            msg = "'rules' must be a path string"
            raise ConfigError(msg)
        values["rules_path"] = base_dir / data["rules"]
    if "ruleset" in data:
        values["rulesets"] = _string_list("ruleset", data["ruleset"])
    if "severity_min" in data:
        values["severity_min"] = parse_severity(data["severity_min"])
    if "format" in data:
        values["output_format"] = parse_format(data["format"])
    if "timeout" in data and data["timeout"] is not None:
        values["timeout"] = parse_timeout(data["timeout"])
    if "workers" in data:
        values["workers"] = parse_workers(data["workers"])
    if "exclude" in data:
        values["exclude"] = _string_list("exclude", data["exclude"])
    if "dynamic_class_allowlist" in data:
        values["dynamic_class_allowlist"] = _string_list(
            "dynamic_class_allowlist", data["dynamic_class_allowlist"],
        )
    return values


def read_config_file(config_path: Path) -> dict[str, Any]:
    """Read and validate a config file, returning ``LintConfig`` field values."""
    try:
        text = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"cannot read config file {config_path}: {exc.strerror or exc}"
        raise ConfigError(msg) from exc
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        msg = f"invalid YAML in {config_path}: {exc}"
        raise ConfigError(msg) from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"{config_path}: top level must be a mapping"
        raise ConfigError(msg)
    return _from_mapping(data, config_path.parent)


def load_config(
    target: Path,
    *,
    config_path: Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> LintConfig:
    """Resolve the configuration for linting *target*.

    Parameters
    ----------
    target:
        Directory or file being linted.
    config_path:
        Explicit config file.  When *None*, ``<target>/.convlint.yml`` is
        used if *target* is a directory and the file exists.
    overrides:
        ``LintConfig`` field values from command-line flags; ``None``
        values are ignored.

    Raises
    ------
    ConfigError
        For unreadable or invalid config files and unknown override fields.
    """
    values: dict[str, Any] = {}
    if config_path is None and target.is_dir() and (target / CONFIG_FILE_NAME).is_file():
        config_path = target / CONFIG_FILE_NAME
    if config_path is not None:
        logger.debug("Reading config %s", config_path)
        values.update(read_config_file(config_path))

    known = {f.name for f in fields(LintConfig)}
    for key, value in (overrides or {}).items():
        if key not in known:
            msg = f"unknown setting '{key}'"
            raise ConfigError(msg)
        if value is None or value == ():
            continue
        values[key] = value

    if "timeout" in values and values["timeout"] is not None:
        values["timeout"] = parse_timeout(values["timeout"])
    return replace(LintConfig(), **values)
