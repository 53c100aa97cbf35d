"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

from collections.abc import Callable
from pathlib import Path

import pytest

ProjectFactory = Callable[..., Path]


@pytest.fixture(autouse=True)
def isolated_xdg(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point all XDG base directories into the test's temp directory."""
    base = tmp_path / "xdg"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(base / "config"))
    monkeypatch.setenv("XDG_STATE_HOME", str(base / "state"))
    return base


@pytest.fixture
def unity_project(tmp_path: Path) -> ProjectFactory:
    """Factory creating a minimal valid Unity project.

    Usage:
        project = unity_project()                    # tmp_path / "Game"
        project = unity_project("Other", version="") # empty version marker
    """

    def _create(name: str = "Game", *, version: str = "2022.3.10f1") -> Path:
        root = tmp_path / name
        for folder in ("Assets", "Packages", "ProjectSettings", "Library"):
            (root / folder).mkdir(parents=True, exist_ok=True)
        marker = root / "ProjectSettings" / "ProjectVersion.txt"
        marker.write_text(f"m_EditorVersion: {version}\n" if version else "")
        (root / "Packages" / "manifest.json").write_text('{"dependencies": {}}')
        (root / "Assets" / "Main.unity.meta").write_text("guid: 1")
        return root

    return _create


@pytest.fixture
def write_files() -> Callable[..., list[Path]]:
    """Factory creating files (and parent directories) below a root."""

    def _write(root: Path, relative_paths: list[str], content: str = "x") -> list[Path]:
        created: list[Path] = []
        for rel in relative_paths:
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
            created.append(path)
        return created

    return _write
