"""Release configuration.

Settings come from, in increasing precedence:
1. Built-in defaults (ReleaseConfig field defaults)
2. A configuration file: ``.versionrc`` / ``.versionrc.json`` (JSON), or the
   ``[tool.cut-release]`` table of ``pyproject.toml``
3. Explicit overrides, usually CLI flags

Keys may be written in snake_case, kebab-case or camelCase
(``tag_prefix``, ``tag-prefix``, ``tagPrefix``).
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from .changelog import DEFAULT_HEADER
from .errors import ConfigurationError
from .models import Hook, SkipFlags, UpdateTarget, as_hook
from .toml import parse_toml
from .versions import BUMP_TYPES, exact_version

CONFIGURATION_FILES = (".versionrc", ".versionrc.json")
PYPROJECT_TABLE = "cut-release"

DEFAULT_PACKAGE_FILES = ["pyproject.toml", "package.json", "bower.json", "manifest.json"]
DEFAULT_BUMP_FILES = [
    *DEFAULT_PACKAGE_FILES,
    "package-lock.json",
    "npm-shrinkwrap.json",
]


class ReleaseConfig(BaseModel):
    """Options for a single release run.

    Attributes:
        infile: Changelog file to read and write.
        header: Text placed at the top of the changelog.
        release_commit_message_format: Commit and tag message;
            ``{{currentTag}}`` is replaced with the new version.
        first_release: Release the current version without bumping it.
        sign: Sign the commit and tag.
        no_verify: Bypass git commit hooks.
        commit_all: Commit everything staged, not only the touched files.
        silent: Suppress all output.
        tag_prefix: Prefix of the release tag ("v" → "v1.2.3").
        release_as: Force a bump type (major/minor/patch) or exact version.
        prerelease: Prerelease identifier; "" for a bare numeric prerelease.
        dry_run: Compute and print everything, change nothing.
        git_tag_fallback: Read the current version from the latest semver
            tag when no package file exists.
        skip: Per-stage skip switches.
        scripts: Lifecycle hooks, keyed by hook name.
        package_files: Files the current version and package name are read
            from; the first readable one wins.
        bump_files: Files the new version is written to.
    """

    infile: str = "CHANGELOG.md"
    header: str = DEFAULT_HEADER
    release_commit_message_format: str = "chore(release): {{currentTag}}"
    first_release: bool = False
    sign: bool = False
    no_verify: bool = False
    commit_all: bool = False
    silent: bool = False
    tag_prefix: str = "v"
    release_as: str | None = None
    prerelease: str | None = None
    dry_run: bool = False
    git_tag_fallback: bool = True
    skip: SkipFlags = Field(default_factory=SkipFlags)
    scripts: dict[str, Hook] = Field(default_factory=dict)
    package_files: list[UpdateTarget] = Field(
        default_factory=lambda: [UpdateTarget(filename=f) for f in DEFAULT_PACKAGE_FILES]
    )
    bump_files: list[UpdateTarget] = Field(
        default_factory=lambda: [UpdateTarget(filename=f) for f in DEFAULT_BUMP_FILES]
    )

    @field_validator("scripts", mode="before")
    @classmethod
    def _coerce_scripts(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {name: as_hook(hook) for name, hook in value.items()}
        return value

    @field_validator("release_as")
    @classmethod
    def _check_release_as(cls, value: str | None) -> str | None:
        if not value:
            return None
        if value in BUMP_TYPES or exact_version(value):
            return value
        raise ValueError(
            f"release-as must be one of {', '.join(BUMP_TYPES)} or a semantic version, got {value!r}"
        )


def _normalize_key(key: str) -> str:
    """Convert tagPrefix / tag-prefix to tag_prefix."""
    return re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "_", key).replace("-", "_").lower()


def _normalize_keys(data: dict[str, Any]) -> dict[str, Any]:
    return {_normalize_key(key): value for key, value in data.items()}


def find_configuration_file(cwd: Path) -> Path | None:
    for name in CONFIGURATION_FILES:
        path = cwd / name
        if path.is_file():
            return path
    return None


def load_configuration(cwd: Path | None = None) -> dict[str, Any]:
    """Read raw settings from a configuration file in cwd.

    Returns an empty dict when no configuration is present.

    Raises:
        ConfigurationError: If the file cannot be parsed or is not a mapping.
    """
    cwd = cwd or Path.cwd()
    path = find_configuration_file(cwd)
    if path is not None:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Invalid JSON in {path.name}: {exc}", exc) from exc
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Invalid configuration in {path.name}: expected an object."
            )
        return _normalize_keys(data)

    pyproject = cwd / "pyproject.toml"
    if pyproject.is_file():
        doc = parse_toml(pyproject.read_text(encoding="utf-8"))
        table = doc.get("tool", {}).get(PYPROJECT_TABLE)
        if table is not None:
            return _normalize_keys(table.unwrap())

    return {}


def build_config(
    file_values: dict[str, Any] | None = None, **overrides: Any
) -> ReleaseConfig:
    """Merge file values with overrides (None overrides are ignored).

    Raises:
        ConfigurationError: If the merged settings fail validation.
    """
    data = dict(file_values or {})
    for key, value in overrides.items():
        if value is None:
            continue
        if key == "skip" and isinstance(value, dict):
            skip = dict(data.get("skip") or {})
            skip.update({k: v for k, v in value.items() if v is not None})
            data["skip"] = skip
        else:
            data[key] = value
    try:
        return ReleaseConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration:\n{exc}", exc) from exc
