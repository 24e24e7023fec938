"""Tests for convlint.config - .convlint.yml loading and flag overrides."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from convlint.config import CONFIG_FILE_NAME, LintConfig, default_workers, load_config
from convlint.errors import ConfigError
from convlint.rules import Severity

if TYPE_CHECKING:
    from pathlib import Path


def _write_config(root: Path, text: str) -> Path:
    path = root / CONFIG_FILE_NAME
    path.write_text(text, encoding="utf-8")
    return path


class TestDefaults:
    def test_no_config_file(self, tmp_path: Path) -> None:
        config = load_config(tmp_path)
        assert config == LintConfig()
        assert config.rulesets == ("all",)
        assert config.severity_min is Severity.WARNING
        assert config.output_format == "text"
        assert config.timeout is None

    def test_worker_count(self) -> None:
        assert LintConfig().worker_count == default_workers()
        assert 1 <= default_workers() <= 8
        assert LintConfig(workers=3).worker_count == 3


class TestConfigFile:
    def test_discovered_in_target(self, tmp_path: Path) -> None:
        _write_config(
            tmp_path,
            "ruleset: [styling-tokens, build-config]\n"
            "severity_min: error\n"
            "format: json\n"
            "timeout: 30\n"
            "workers: 2\n"
            "exclude: legacy\n"
            "dynamic_class_allowlist:\n"
            "  - 'bg-{*}-500'\n"
            "rules: conventions/rules.md\n",
        )
        config = load_config(tmp_path)
        assert config.rulesets == ("styling-tokens", "build-config")
        assert config.severity_min is Severity.ERROR
        assert config.output_format == "json"
        assert config.timeout == 30.0
        assert config.workers == 2
        assert config.exclude == ("legacy",)
        assert config.dynamic_class_allowlist == ("bg-{*}-500",)
        assert config.rules_path == tmp_path / "conventions" / "rules.md"

    def test_explicit_path(self, tmp_path: Path) -> None:
        other = tmp_path / "cfg"
        other.mkdir()
        path = _write_config(other, "severity_min: info\n")
        assert load_config(tmp_path, config_path=path).severity_min is Severity.INFO

    def test_empty_file(self, tmp_path: Path) -> None:
        _write_config(tmp_path, "")
        assert load_config(tmp_path) == LintConfig()

    @pytest.mark.parametrize(
        ("text", "message"),
        [
            ("colour: red\n", "unknown config keys: colour"),
            ("- a\n- b\n", "top level must be a mapping"),
            ("severity_min: fatal\n", "invalid severity"),
            ("timeout: 0\n", "timeout must be positive"),
            ("timeout: soon\n", "timeout must be a number"),
            ("workers: 0\n", "workers must be a positive integer"),
            ("format: xml\n", "format must be one of"),
            ("exclude: [1, 2]\n", "'exclude' must be a string or a list of strings"),
            ("ruleset: [a\n", "invalid YAML"),
        ],
    )
    def test_invalid(self, tmp_path: Path, text: str, message: str) -> None:
        _write_config(tmp_path, text)
        with pytest.raises(ConfigError, match=message):
            load_config(tmp_path)


class TestOverrides:
    def test_flags_win_over_file(self, tmp_path: Path) -> None:
        _write_config(tmp_path, "severity_min: error\nruleset: props\n")
        config = load_config(
            tmp_path,
            overrides={
                "severity_min": Severity.INFO,
                "rulesets": (),
                "timeout": None,
                "workers": 4,
            },
        )
        assert config.severity_min is Severity.INFO
        assert config.rulesets == ("props",)
        assert config.workers == 4

    def test_unknown_override(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="unknown setting 'colour'"):
            load_config(tmp_path, overrides={"colour": "red"})

    def test_negative_timeout_flag(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="timeout must be positive"):
            load_config(tmp_path, overrides={"timeout": -1.0})
