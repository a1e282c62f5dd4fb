"""Data models for cut-release.

These Pydantic models represent the core data structures passed between the
stages of the release pipeline.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

ReleaseType = Literal["major", "minor", "patch", "prerelease"]


class ReleaseContext(BaseModel):
    """Everything the version resolver needs, built once per run.

    Attributes:
        current_version: Version read from the main manifest or latest tag.
        requested_release_type: Bump type forced via --release-as, if any.
        recommended_release_type: Bump type recommended from commit history.
        exact_version: Exact version forced via --release-as, if any.
        prerelease_id: Prerelease identifier. None means a regular release,
                       an empty string a prerelease without identifier.
        first_release: Release the current version without bumping.
    """

    model_config = ConfigDict(frozen=True)

    current_version: str
    requested_release_type: ReleaseType | None = None
    recommended_release_type: ReleaseType | None = None
    exact_version: str | None = None
    prerelease_id: str | None = None
    first_release: bool = False


class ResolvedVersion(BaseModel):
    """The next version; computed once and never recomputed within a run."""

    model_config = ConfigDict(frozen=True)

    version: str


class MainPackage(BaseModel):
    """Name, version and privacy of the first manifest found in the repo."""

    filename: str
    name: str | None = None
    version: str
    private: bool = False


class UpdateTarget(BaseModel):
    """A file whose version string should be rewritten on bump.

    Accepts a bare filename or a mapping. Keys other than filename, type and
    updater are collected into options (e.g. ``match``/``replace`` for the
    regex updater, ``name`` for Cargo.lock).

    Attributes:
        filename: Path relative to the working directory.
        type: Built-in updater kind ("json", "plain-text", "regex", ...).
        updater: Custom updater object, or an import path to one.
        options: Updater-specific options.
    """

    filename: str
    type: str | None = None
    updater: Any = None
    options: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _coerce(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"filename": value}
        if isinstance(value, dict):
            known = {"filename", "type", "updater", "options"}
            options = dict(value.get("options") or {})
            options.update({k: v for k, v in value.items() if k not in known})
            data = {k: v for k, v in value.items() if k in known}
            data["options"] = options
            return data
        return value


class SkipFlags(BaseModel):
    """Per-stage skip switches."""

    bump: bool = False
    changelog: bool = False
    commit: bool = False
    tag: bool = False


class HookContext(BaseModel):
    """Information handed to in-process lifecycle hooks."""

    hook_name: str
    version: str | None = None
    package_private: bool = False
    dry_run: bool = False


class ShellHook(BaseModel):
    """A lifecycle hook run as a shell command."""

    kind: Literal["shell"] = "shell"
    command: str


class CallableHook(BaseModel):
    """A lifecycle hook run as an in-process callable."""

    kind: Literal["callable"] = "callable"
    fn: Callable[[HookContext], Any]


Hook = Annotated[ShellHook | CallableHook, Field(discriminator="kind")]


def as_hook(value: Any) -> Any:
    """Coerce a command string or callable into a ShellHook/CallableHook."""
    if isinstance(value, str):
        return ShellHook(command=value)
    if callable(value) and not isinstance(value, BaseModel):
        return CallableHook(fn=value)
    return value


class Commit(BaseModel):
    """A commit parsed as a Conventional Commit.

    Attributes:
        hash: Full commit hash.
        type: Commit type ("feat", "fix", ...), None if the header does not
              follow the convention.
        scope: Optional scope from "type(scope): subject".
        subject: Header text after the colon, or the raw header.
        breaking: Whether the commit carries a breaking change.
        notes: BREAKING CHANGE footer texts.
    """

    hash: str
    type: str | None = None
    scope: str | None = None
    subject: str
    breaking: bool = False
    notes: list[str] = Field(default_factory=list)
