"""Shared test fixtures."""

from __future__ import annotations

import json
from pathlib import Path

import pytest


class FakeChangelog:
    """Changelog collaborator with a fixed recommendation and canned notes."""

    def __init__(self, release_type: str = "minor") -> None:
        self.release_type = release_type
        self.recommend_calls: list[tuple[str, bool]] = []
        self.rendered: list[str] = []

    def recommend_release_type(
        self, current_version: str, *, tag_prefix: str, pre_major: bool
    ) -> str:
        self.recommend_calls.append((current_version, pre_major))
        return self.release_type

    def render(self, version: str, *, tag_prefix: str) -> str:
        self.rendered.append(version)
        return f"## {version} (2024-01-01)\n\n* release {version}\n\n"


@pytest.fixture
def fake_changelog() -> FakeChangelog:
    return FakeChangelog()


@pytest.fixture
def repo(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A working directory holding a public package.json at 1.0.0."""
    package_json = tmp_path / "package.json"
    package_json.write_text(
        json.dumps({"name": "pkg", "version": "1.0.0"}, indent=2) + "\n"
    )
    monkeypatch.chdir(tmp_path)
    return tmp_path
