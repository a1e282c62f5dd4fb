"""Format-specific strategies for reading and writing version strings.

Every updater exposes ``read_version(contents)`` and
``write_version(contents, version)``; ``read_name`` and ``is_private`` have
defaults so that only formats which know about package names or privacy
override them. Updaters operate on file contents, never on paths: reading
and writing files is the pipeline's job.
"""

from __future__ import annotations

import io
import json
import re
from abc import ABC, abstractmethod
from collections import Counter
from json.decoder import scanstring
from typing import Any

from ruamel.yaml import YAML
from ruamel.yaml.scalarstring import ScalarString
from ruamel.yaml.util import load_yaml_guess_indent

from .errors import InvalidUpdaterError
from .toml import (
    dump_toml,
    find_lock_package,
    get_cargo_package,
    get_project_name,
    get_project_version,
    is_private_project,
    parse_toml,
)


def detect_indent(contents: str) -> str:
    """Return the most common indentation step ("" if nothing is indented).

    A step is the whitespace a line adds on top of the previous non-blank
    line's indentation.
    """
    steps: Counter[str] = Counter()
    previous = ""
    for line in contents.splitlines():
        if not line.strip():
            continue
        current = line[: len(line) - len(line.lstrip(" \t"))]
        if len(current) > len(previous) and current.startswith(previous):
            steps[current[len(previous) :]] += 1
        previous = current
    if not steps:
        return ""
    return steps.most_common(1)[0][0]


_JSON_WS = re.compile(r"[ \t\n\r]*")


def _skip_ws(contents: str, idx: int) -> int:
    return _JSON_WS.match(contents, idx).end()


def json_member_spans(contents: str, start: int = 0) -> dict[str, tuple[int, int]]:
    """Map each member of the JSON object at ``start`` to its value's span.

    Only the members of that one object are returned; nested objects can be
    walked by calling again with a member's start offset. The text must
    already be known to be valid JSON.

    Raises:
        ValueError: If there is no object at ``start``.
    """
    decoder = json.JSONDecoder()
    idx = _skip_ws(contents, start)
    if contents[idx : idx + 1] != "{":
        raise ValueError("Expected a JSON object")
    spans: dict[str, tuple[int, int]] = {}
    idx = _skip_ws(contents, idx + 1)
    while contents[idx] != "}":
        key, idx = scanstring(contents, idx + 1)
        idx = _skip_ws(contents, _skip_ws(contents, idx) + 1)
        _, end = decoder.raw_decode(contents, idx)
        spans[key] = (idx, end)
        idx = _skip_ws(contents, end)
        if contents[idx] == ",":
            idx = _skip_ws(contents, idx + 1)
    return spans


def _load_json_object(contents: str) -> dict[str, Any]:
    data = json.loads(contents)
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data


class Updater(ABC):
    """Base class for version updaters."""

    @abstractmethod
    def read_version(self, contents: str) -> str: ...

    @abstractmethod
    def write_version(self, contents: str, version: str) -> str: ...

    def read_name(self, contents: str) -> str | None:
        return None

    def is_private(self, contents: str) -> bool:
        return False


class JsonUpdater(Updater):
    """Top-level ``version`` key of a JSON manifest.

    The new version is spliced into the text in place of the old value, so
    formatting, key order and escapes are left exactly as they were.
    """

    def read_version(self, contents: str) -> str:
        return _load_json_object(contents)["version"]

    def write_version(self, contents: str, version: str) -> str:
        data = _load_json_object(contents)
        members = json_member_spans(contents)
        if "version" not in members:
            raise KeyError("version")
        spans = [members["version"]]

        # npm lockfile v2+ repeats the root package version
        packages = data.get("packages")
        if isinstance(packages, dict) and isinstance(packages.get(""), dict):
            package_members = json_member_spans(contents, members["packages"][0])
            root_members = json_member_spans(contents, package_members[""][0])
            if "version" in root_members:
                spans.append(root_members["version"])

        value = json.dumps(version)
        for start, end in sorted(spans, reverse=True):
            contents = contents[:start] + value + contents[end:]
        return contents

    def read_name(self, contents: str) -> str | None:
        return _load_json_object(contents).get("name")

    def is_private(self, contents: str) -> bool:
        return _load_json_object(contents).get("private") is True


class PlainTextUpdater(Updater):
    """A file holding nothing but the version."""

    def read_version(self, contents: str) -> str:
        return contents.strip()

    def write_version(self, contents: str, version: str) -> str:
        return version + ("\n" if contents.endswith("\n") else "")


class CargoUpdater(Updater):
    """[package].version of a Cargo.toml."""

    def read_version(self, contents: str) -> str:
        return str(get_cargo_package(parse_toml(contents))["version"])

    def write_version(self, contents: str, version: str) -> str:
        doc = parse_toml(contents)
        get_cargo_package(doc)["version"] = version
        return dump_toml(doc)

    def read_name(self, contents: str) -> str | None:
        return str(get_cargo_package(parse_toml(contents))["name"])

    def is_private(self, contents: str) -> bool:
        # Crates are never published by this tool
        return True


class CargoLockUpdater(Updater):
    """The [[package]] entry of a Cargo.lock, scoped by package name."""

    def __init__(self, name: str) -> None:
        self.name = name

    def read_version(self, contents: str) -> str:
        return str(find_lock_package(parse_toml(contents), self.name)["version"])

    def write_version(self, contents: str, version: str) -> str:
        doc = parse_toml(contents)
        find_lock_package(doc, self.name)["version"] = version
        return dump_toml(doc)

    def read_name(self, contents: str) -> str | None:
        return self.name

    def is_private(self, contents: str) -> bool:
        return True


class PyprojectUpdater(Updater):
    """[project].version of a pyproject.toml."""

    def read_version(self, contents: str) -> str:
        return get_project_version(parse_toml(contents))

    def write_version(self, contents: str, version: str) -> str:
        doc = parse_toml(contents)
        doc["project"]["version"] = version
        return dump_toml(doc)

    def read_name(self, contents: str) -> str | None:
        return get_project_name(parse_toml(contents))

    def is_private(self, contents: str) -> bool:
        return is_private_project(parse_toml(contents))


def _load_yaml_mapping(contents: str) -> tuple[YAML, Any]:
    """Load a YAML mapping with a dumper that reproduces its indentation."""
    _, indent, block_seq_indent = load_yaml_guess_indent(contents)
    yaml = YAML()
    yaml.preserve_quotes = True
    yaml.indent(mapping=indent, sequence=indent, offset=block_seq_indent)
    data = yaml.load(contents)
    if not isinstance(data, dict):
        raise ValueError(f"Expected a YAML mapping, got {type(data).__name__}")
    return yaml, data


class YamlUpdater(Updater):
    """Top-level ``version`` key of a YAML manifest (pubspec.yaml, Chart.yaml).

    Loaded and dumped in ruamel's round-trip mode, which keeps comments, key
    order and quoting.
    """

    def read_version(self, contents: str) -> str:
        _, data = _load_yaml_mapping(contents)
        return str(data["version"])

    def write_version(self, contents: str, version: str) -> str:
        yaml, data = _load_yaml_mapping(contents)
        old = data["version"]
        data["version"] = type(old)(version) if isinstance(old, ScalarString) else version
        stream = io.StringIO()
        yaml.dump(data, stream)
        return stream.getvalue()

    def read_name(self, contents: str) -> str | None:
        _, data = _load_yaml_mapping(contents)
        name = data.get("name")
        return None if name is None else str(name)


class _PatternUpdater(Updater):
    """Version held in the ``version`` group of the first match of a regex."""

    pattern: re.Pattern[str]
    description: str

    def _pattern(self, contents: str) -> re.Pattern[str]:
        return self.pattern

    def _match(self, contents: str) -> re.Match[str]:
        match = self._pattern(contents).search(contents)
        if match is None:
            raise ValueError(
                f"Failed to read the version field in your {self.description} - is it present?"
            )
        return match

    def read_version(self, contents: str) -> str:
        return self._match(contents).group("version")

    def write_version(self, contents: str, version: str) -> str:
        match = self._match(contents)
        start, end = match.span("version")
        return contents[:start] + version + contents[end:]


class PythonUpdater(_PatternUpdater):
    """``version = "..."`` / ``__version__ = '...'`` / ``version="..."``."""

    pattern = re.compile(
        r"""version(?:__)?[" ]*=[ ]*["'](?P<version>[^"']*)["']""", re.IGNORECASE
    )
    description = "python file"


class GradleUpdater(_PatternUpdater):
    """Top-level ``version = "..."`` assignment of a Gradle build script."""

    pattern = re.compile(
        r"""^version\s*=\s*['"](?P<version>[^'"]+)['"]""", re.MULTILINE
    )
    description = "gradle file"


class PomUpdater(_PatternUpdater):
    """Root-level ``<version>`` of a Maven pom.xml.

    Dependencies and plugins carry their own version tags, so only a tag at
    exactly one level of indentation is considered.
    """

    description = "pom file"

    def _pattern(self, contents: str) -> re.Pattern[str]:
        indent = re.escape(detect_indent(contents))
        return re.compile(
            rf"^{indent}<version>(?P<version>[^<]+)</version>", re.MULTILINE
        )


class RegexUpdater(Updater):
    """User-supplied ``match`` (with a ``version`` group) and ``replace``."""

    def __init__(self, match: Any, replace: Any) -> None:
        if not match:
            raise InvalidUpdaterError(
                "You must provide a `match` option when using the `regex` updater."
            )
        if not replace:
            raise InvalidUpdaterError(
                "You must provide a `replace` option when using the `regex` updater."
            )
        try:
            self.match = re.compile(match, re.MULTILINE)
            self.replace = re.compile(replace, re.MULTILINE)
        except re.error as exc:
            raise InvalidUpdaterError(f"Invalid regex updater pattern: {exc}", exc) from exc
        if "version" not in self.match.groupindex:
            raise InvalidUpdaterError(
                "The named capture group `version` was not found in `match`."
            )

    def read_version(self, contents: str) -> str:
        found = self.match.search(contents)
        if found is None:
            raise ValueError("No matches found for provided `match`.")
        return found.group("version")

    def write_version(self, contents: str, version: str) -> str:
        return self.replace.sub(lambda _: version, contents)


class CustomUpdater(Updater):
    """Wraps a user-supplied object that satisfies the updater contract.

    The object needs ``read_version`` and ``write_version``; ``read_name``
    and ``is_private`` are used when present.
    """

    def __init__(self, impl: Any) -> None:
        missing = [
            attr
            for attr in ("read_version", "write_version")
            if not callable(getattr(impl, attr, None))
        ]
        if missing:
            raise InvalidUpdaterError(
                f"Custom updater {impl!r} is missing {', '.join(missing)}"
            )
        self.impl = impl

    def read_version(self, contents: str) -> str:
        return self.impl.read_version(contents)

    def write_version(self, contents: str, version: str) -> str:
        return self.impl.write_version(contents, version)

    def read_name(self, contents: str) -> str | None:
        read_name = getattr(self.impl, "read_name", None)
        return read_name(contents) if callable(read_name) else None

    def is_private(self, contents: str) -> bool:
        is_private = getattr(self.impl, "is_private", None)
        return bool(is_private(contents)) if callable(is_private) else False
