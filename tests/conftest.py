"""Shared test fixtures for convlint."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from convlint.rules import RuleRegistry, load_registry

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


@pytest.fixture(scope="session")
def default_registry() -> RuleRegistry:
    """The bundled rule table, loaded once per session."""
    return load_registry()


@pytest.fixture()
def make_tree(tmp_path: Path) -> Callable[[dict[str, str]], Path]:
    """Return a helper that writes ``{relative path: content}`` under a project dir."""

    def _make(files: dict[str, str]) -> Path:
        root = tmp_path / "proj"
        root.mkdir(exist_ok=True)
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return root

    return _make
