"""Resolve bump targets into concrete updaters.

Resolution order for an UpdateTarget:
1. An explicit custom ``updater`` (an object, or an import path to one)
2. An explicit ``type`` naming a built-in updater
3. Inference from the file name

Resolved updaters are cached per registry, and a registry belongs to a single
release run, so repeated reads of a target always see the same strategy.
"""

from __future__ import annotations

import importlib
import importlib.util
from collections.abc import Callable
from pathlib import Path
from typing import Any

from .errors import InvalidUpdaterError, UnsupportedFileError
from .models import UpdateTarget
from .updaters import (
    CargoLockUpdater,
    CargoUpdater,
    CustomUpdater,
    GradleUpdater,
    JsonUpdater,
    PlainTextUpdater,
    PomUpdater,
    PyprojectUpdater,
    PythonUpdater,
    RegexUpdater,
    Updater,
    YamlUpdater,
)

JSON_BUMP_FILES = (
    "package.json",
    "bower.json",
    "manifest.json",
    "composer.json",
    "package-lock.json",
    "npm-shrinkwrap.json",
)
PLAIN_TEXT_BUMP_FILES = ("VERSION", "VERSION.txt", "version.txt")


def _cargo_lock(options: dict[str, Any]) -> Updater:
    name = options.get("name")
    if not name:
        raise InvalidUpdaterError(
            "The `toml-cargo-lock` updater needs a package `name` option."
        )
    return CargoLockUpdater(str(name))


BUILTIN_UPDATERS: dict[str, Callable[[dict[str, Any]], Updater]] = {
    "json": lambda options: JsonUpdater(),
    "plain-text": lambda options: PlainTextUpdater(),
    "toml-cargo": lambda options: CargoUpdater(),
    "toml-cargo-lock": _cargo_lock,
    "toml-pyproject": lambda options: PyprojectUpdater(),
    "python": lambda options: PythonUpdater(),
    "xml-pom": lambda options: PomUpdater(),
    "gradle": lambda options: GradleUpdater(),
    "yaml": lambda options: YamlUpdater(),
    "regex": lambda options: RegexUpdater(options.get("match"), options.get("replace")),
}


def get_updater_by_type(kind: str, options: dict[str, Any]) -> Updater:
    """Instantiate the built-in updater registered under kind."""
    factory = BUILTIN_UPDATERS.get(kind)
    if factory is None:
        raise InvalidUpdaterError(
            f"Unable to locate updater for provided type ({kind}). "
            f"Known types: {', '.join(sorted(BUILTIN_UPDATERS))}"
        )
    return factory(options)


def infer_updater_kind(filename: str) -> str:
    """Map a file name to a built-in updater kind.

    Raises:
        UnsupportedFileError: If the file name is not recognised.
    """
    basename = Path(filename).name
    if basename in JSON_BUMP_FILES:
        return "json"
    if basename in PLAIN_TEXT_BUMP_FILES:
        return "plain-text"
    if basename == "pom.xml":
        return "xml-pom"
    if basename in ("build.gradle", "build.gradle.kts"):
        return "gradle"
    if basename == "Cargo.toml":
        return "toml-cargo"
    if basename == "Cargo.lock":
        return "toml-cargo-lock"
    if basename == "pyproject.toml":
        return "toml-pyproject"
    if basename == "setup.py":
        return "python"
    raise UnsupportedFileError(
        f"Unsupported file ({filename}) provided for bumping.\n"
        " Please specify the updater `type` or use a custom `updater`."
    )


def load_custom_updater(ref: Any) -> Updater:
    """Wrap a custom updater given as an object or an import reference.

    String references may be a path to a ``.py`` file (relative to the
    working directory) or ``package.module[:attribute]``.
    """
    if not isinstance(ref, str):
        return CustomUpdater(ref)

    try:
        if ref.endswith(".py"):
            path = Path.cwd() / ref
            spec = importlib.util.spec_from_file_location(path.stem, path)
            if spec is None or spec.loader is None:
                raise ImportError(f"cannot load {path}")
            impl: Any = importlib.util.module_from_spec(spec)
            spec.loader.exec_module(impl)
        else:
            module_name, _, attr = ref.partition(":")
            impl = importlib.import_module(module_name)
            if attr:
                impl = getattr(impl, attr)
    except Exception as exc:
        # Module code runs on load, so any error can surface here
        raise InvalidUpdaterError(f"Unable to load custom updater {ref!r}: {exc}", exc) from exc
    return CustomUpdater(impl)


class UpdaterRegistry:
    """Resolves and caches updaters for the bump targets of one run.

    Args:
        package_name: Name of the main package, used to scope lock files
                      whose target does not name a package explicitly.
    """

    def __init__(self, package_name: str | None = None) -> None:
        self.package_name = package_name
        self._cache: dict[str, Updater] = {}

    def resolve(self, target: UpdateTarget) -> Updater:
        """Return the updater for target, resolving it on first use.

        Raises:
            InvalidUpdaterError: If a custom or typed updater is unusable.
            UnsupportedFileError: If nothing matches the file name.
        """
        cached = self._cache.get(target.filename)
        if cached is not None:
            return cached

        options = dict(target.options)
        if self.package_name and "name" not in options:
            options["name"] = self.package_name

        if target.updater is not None:
            updater = load_custom_updater(target.updater)
        elif target.type:
            updater = get_updater_by_type(target.type, options)
        else:
            updater = get_updater_by_type(infer_updater_kind(target.filename), options)

        self._cache[target.filename] = updater
        return updater
