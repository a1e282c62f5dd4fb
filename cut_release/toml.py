"""TOML reading and writing utilities.

Uses tomlkit to preserve formatting and comments when modifying manifest
files. This is important for maintaining readable, diff-friendly files: a
version bump must only ever touch the version value.
"""

from __future__ import annotations

from typing import Any

import tomlkit
from packaging.utils import canonicalize_name


def parse_toml(contents: str) -> tomlkit.TOMLDocument:
    """Parse TOML text into a document that preserves formatting."""
    return tomlkit.parse(contents)


def dump_toml(doc: tomlkit.TOMLDocument) -> str:
    """Serialize a TOMLDocument, preserving original formatting."""
    return tomlkit.dumps(doc)


def get_project_name(doc: tomlkit.TOMLDocument, fallback: str | None = None) -> str | None:
    """Extract the canonical package name from [project].name.

    Names are normalized per PEP 503 (lowercase, hyphens instead of
    underscores) for consistent comparison.
    """
    name = doc.get("project", {}).get("name")
    if name is None:
        return fallback
    return canonicalize_name(str(name))


def get_project_version(doc: tomlkit.TOMLDocument) -> str:
    """Extract version from [project].version.

    Raises:
        KeyError: If the document has no [project].version.
    """
    return str(doc["project"]["version"])


def is_private_project(doc: tomlkit.TOMLDocument) -> bool:
    """A project is private when it carries the "Private :: Do Not Upload"
    trove classifier, which package indexes refuse to accept."""
    classifiers = doc.get("project", {}).get("classifiers", [])
    return any(str(c).startswith("Private ::") for c in classifiers)


def get_cargo_package(doc: tomlkit.TOMLDocument) -> Any:
    """Return the [package] table of a Cargo.toml.

    Raises:
        KeyError: If there is no [package] table (e.g. a virtual workspace).
    """
    return doc["package"]


def find_lock_package(doc: tomlkit.TOMLDocument, name: str) -> Any:
    """Find the [[package]] entry named name in a Cargo.lock.

    Raises:
        KeyError: If no entry with that name exists.
    """
    for package in doc.get("package", []):
        if package.get("name") == name:
            return package
    raise KeyError(f"No [[package]] named {name!r} in lock file")
