"""Tests for cut_release.registry."""

from __future__ import annotations

from pathlib import Path

import pytest

from cut_release.errors import InvalidUpdaterError, UnsupportedFileError
from cut_release.models import UpdateTarget
from cut_release.registry import (
    UpdaterRegistry,
    get_updater_by_type,
    infer_updater_kind,
    load_custom_updater,
)
from cut_release.updaters import (
    CargoLockUpdater,
    CustomUpdater,
    JsonUpdater,
    PlainTextUpdater,
    RegexUpdater,
    YamlUpdater,
)


class TestInferUpdaterKind:
    @pytest.mark.parametrize(
        ("filename", "kind"),
        [
            ("package.json", "json"),
            ("sub/dir/bower.json", "json"),
            ("package-lock.json", "json"),
            ("VERSION", "plain-text"),
            ("version.txt", "plain-text"),
            ("pom.xml", "xml-pom"),
            ("build.gradle", "gradle"),
            ("build.gradle.kts", "gradle"),
            ("Cargo.toml", "toml-cargo"),
            ("Cargo.lock", "toml-cargo-lock"),
            ("pyproject.toml", "toml-pyproject"),
            ("setup.py", "python"),
        ],
    )
    def test_known_files(self, filename: str, kind: str) -> None:
        assert infer_updater_kind(filename) == kind

    def test_unknown_file(self) -> None:
        with pytest.raises(UnsupportedFileError, match="settings.cfg"):
            infer_updater_kind("settings.cfg")


class TestGetUpdaterByType:
    def test_builtin(self) -> None:
        assert isinstance(get_updater_by_type("plain-text", {}), PlainTextUpdater)

    def test_yaml(self) -> None:
        assert isinstance(get_updater_by_type("yaml", {}), YamlUpdater)

    def test_regex_options(self) -> None:
        updater = get_updater_by_type(
            "regex", {"match": r"v(?P<version>\S+)", "replace": r"(?<=v)\S+"}
        )
        assert isinstance(updater, RegexUpdater)

    def test_unknown_type(self) -> None:
        with pytest.raises(InvalidUpdaterError, match="ini"):
            get_updater_by_type("ini", {})

    def test_cargo_lock_needs_name(self) -> None:
        with pytest.raises(InvalidUpdaterError, match="name"):
            get_updater_by_type("toml-cargo-lock", {})


class TestLoadCustomUpdater:
    def test_object(self) -> None:
        class Impl:
            def read_version(self, contents: str) -> str:
                return contents

            def write_version(self, contents: str, version: str) -> str:
                return version

        assert isinstance(load_custom_updater(Impl()), CustomUpdater)

    def test_python_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """A .py path is loaded as a module exposing the updater functions."""
        (tmp_path / "my_updater.py").write_text(
            "def read_version(contents):\n"
            "    return contents.strip()\n"
            "\n"
            "def write_version(contents, version):\n"
            "    return version + '\\n'\n"
        )
        monkeypatch.chdir(tmp_path)

        updater = load_custom_updater("my_updater.py")

        assert updater.read_version("1.0.0\n") == "1.0.0"
        assert updater.write_version("1.0.0\n", "1.0.1") == "1.0.1\n"

    def test_module_attribute(self) -> None:
        updater = load_custom_updater("cut_release.updaters:PlainTextUpdater")
        assert isinstance(updater, CustomUpdater)

    def test_missing_module(self) -> None:
        with pytest.raises(InvalidUpdaterError):
            load_custom_updater("no_such_module_for_updaters:Updater")

    def test_missing_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        with pytest.raises(InvalidUpdaterError):
            load_custom_updater("missing.py")

    def test_file_with_syntax_error(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "broken_updater.py").write_text("def read_version(contents)\n")
        monkeypatch.chdir(tmp_path)

        with pytest.raises(InvalidUpdaterError, match="broken_updater.py"):
            load_custom_updater("broken_updater.py")

    def test_file_raising_on_load(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "failing_updater.py").write_text("raise RuntimeError('no config')\n")
        monkeypatch.chdir(tmp_path)

        with pytest.raises(InvalidUpdaterError, match="failing_updater.py"):
            load_custom_updater("failing_updater.py")


class TestUpdaterRegistry:
    """Tests for UpdaterRegistry.resolve()."""

    def test_infers_from_filename(self) -> None:
        registry = UpdaterRegistry()
        assert isinstance(registry.resolve(UpdateTarget(filename="package.json")), JsonUpdater)

    def test_type_beats_filename(self) -> None:
        registry = UpdaterRegistry()
        target = UpdateTarget(filename="package.json", type="plain-text")
        assert isinstance(registry.resolve(target), PlainTextUpdater)

    def test_custom_beats_type(self) -> None:
        class Impl:
            def read_version(self, contents: str) -> str:
                return contents

            def write_version(self, contents: str, version: str) -> str:
                return version

        registry = UpdaterRegistry()
        target = UpdateTarget(filename="VERSION", type="json", updater=Impl())
        assert isinstance(registry.resolve(target), CustomUpdater)

    def test_caches_per_filename(self) -> None:
        registry = UpdaterRegistry()
        target = UpdateTarget(filename="VERSION")
        assert registry.resolve(target) is registry.resolve(target)

    def test_registries_do_not_share_cache(self) -> None:
        target = UpdateTarget(filename="VERSION")
        assert UpdaterRegistry().resolve(target) is not UpdaterRegistry().resolve(target)

    def test_cargo_lock_uses_package_name(self) -> None:
        registry = UpdaterRegistry(package_name="my-crate")
        updater = registry.resolve(UpdateTarget(filename="Cargo.lock"))
        assert isinstance(updater, CargoLockUpdater)
        assert updater.name == "my-crate"

    def test_cargo_lock_explicit_name(self) -> None:
        registry = UpdaterRegistry(package_name="my-crate")
        updater = registry.resolve(
            UpdateTarget.model_validate({"filename": "Cargo.lock", "name": "other"})
        )
        assert updater.name == "other"

    def test_unsupported(self) -> None:
        with pytest.raises(UnsupportedFileError):
            UpdaterRegistry().resolve(UpdateTarget(filename="setup.cfg"))


class TestUpdateTarget:
    def test_from_filename(self) -> None:
        assert UpdateTarget.model_validate("VERSION").filename == "VERSION"

    def test_collects_options(self) -> None:
        target = UpdateTarget.model_validate(
            {"filename": "x.txt", "type": "regex", "match": "m", "replace": "r"}
        )
        assert target.type == "regex"
        assert target.options == {"match": "m", "replace": "r"}
