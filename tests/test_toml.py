"""Tests for cut_release.toml."""

from __future__ import annotations

import pytest

from cut_release.toml import (
    dump_toml,
    find_lock_package,
    get_project_name,
    get_project_version,
    is_private_project,
    parse_toml,
)


class TestParseDump:
    def test_round_trip_preserves_formatting(self) -> None:
        content = '[project]\nname    = "pkg"  # aligned\nversion = "1.0.0"\n'
        assert dump_toml(parse_toml(content)) == content


class TestGetProjectName:
    def test_normalizes_name(self) -> None:
        doc = parse_toml('[project]\nname = "My_Package"')
        assert get_project_name(doc, "fallback") == "my-package"

    def test_returns_fallback_when_missing(self) -> None:
        assert get_project_name(parse_toml("[project]"), "my-fallback") == "my-fallback"

    def test_returns_none_without_project(self) -> None:
        assert get_project_name(parse_toml("")) is None


class TestGetProjectVersion:
    def test_returns_version(self) -> None:
        assert get_project_version(parse_toml('[project]\nversion = "2.0.0"')) == "2.0.0"

    def test_missing(self) -> None:
        with pytest.raises(KeyError):
            get_project_version(parse_toml('[project]\nname = "x"'))


class TestIsPrivateProject:
    def test_private_classifier(self) -> None:
        doc = parse_toml(
            '[project]\nclassifiers = [\n  "Private :: Do Not Upload",\n]\n'
        )
        assert is_private_project(doc)

    def test_public(self) -> None:
        doc = parse_toml('[project]\nclassifiers = ["License :: OSI Approved"]\n')
        assert not is_private_project(doc)


class TestFindLockPackage:
    def test_missing_package(self) -> None:
        doc = parse_toml('[[package]]\nname = "a"\nversion = "1.0.0"\n')
        with pytest.raises(KeyError, match="b"):
            find_lock_package(doc, "b")
