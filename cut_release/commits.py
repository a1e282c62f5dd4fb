"""Commit history: semver tags, conventional commits and release notes.

This is the default changelog collaborator. It reads the commits made since
the last release tag, recommends the kind of bump they warrant and renders a
markdown section for the changelog.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone

import semver

from .models import Commit
from .shell import git
from .versions import exact_version, parse_version

_HEADER_RE = re.compile(
    r"^(?P<type>\w+)(?:\((?P<scope>[^)]*)\))?(?P<breaking>!)?: (?P<subject>.+)$"
)
_BREAKING_RE = re.compile(r"^BREAKING[ -]CHANGE: ?(?P<note>.*)$", re.MULTILINE)

# Field and record separators for `git log --format`
_FS = "\x1f"
_RS = "\x1e"

SECTIONS = (
    ("feat", "Features"),
    ("fix", "Bug Fixes"),
    ("perf", "Performance Improvements"),
    ("revert", "Reverts"),
)


def find_semver_tags(tag_prefix: str) -> list[str]:
    """List tags named <tag_prefix><semver>, highest version first."""
    output = git("tag", "--list", f"{tag_prefix}*", check=False)
    found: list[tuple[semver.Version, str]] = []
    for tag in output.splitlines():
        tag = tag.strip()
        if not tag.startswith(tag_prefix):
            continue
        version = exact_version(tag[len(tag_prefix) :])
        if version:
            found.append((semver.Version.parse(version), tag))
    found.sort(key=lambda item: item[0], reverse=True)
    return [tag for _, tag in found]


def latest_semver_tag(tag_prefix: str) -> str:
    """Version of the highest semver tag, or "1.0.0" when there is none."""
    tags = find_semver_tags(tag_prefix)
    if not tags:
        return "1.0.0"
    return exact_version(tags[0][len(tag_prefix) :]) or "1.0.0"


def parse_commit(commit_hash: str, message: str) -> Commit:
    """Parse a raw commit message into a Commit."""
    header, _, body = message.strip().partition("\n")
    notes = [m.group("note").strip() for m in _BREAKING_RE.finditer(body)]
    match = _HEADER_RE.match(header.strip())
    if match is None:
        return Commit(hash=commit_hash, subject=header.strip(), notes=notes, breaking=bool(notes))
    return Commit(
        hash=commit_hash,
        type=match.group("type").lower(),
        scope=match.group("scope") or None,
        subject=match.group("subject").strip(),
        breaking=bool(match.group("breaking")) or bool(notes),
        notes=notes,
    )


def read_commits(since: str | None) -> list[Commit]:
    """Read commits reachable from HEAD, newest first, excluding ``since``."""
    args = ["log", f"--format=%H{_FS}%B{_RS}"]
    if since:
        args.append(f"{since}..HEAD")
    output = git(*args, check=False)

    commits: list[Commit] = []
    for record in output.split(_RS):
        record = record.strip()
        if not record:
            continue
        commit_hash, _, message = record.partition(_FS)
        commits.append(parse_commit(commit_hash.strip(), message))
    return commits


class ConventionalCommits:
    """Recommends bumps and renders release notes from Conventional Commits."""

    def commits(self, tag_prefix: str) -> list[Commit]:
        tags = find_semver_tags(tag_prefix)
        return read_commits(tags[0] if tags else None)

    def recommend_release_type(
        self, current_version: str, *, tag_prefix: str, pre_major: bool
    ) -> str:
        """Breaking changes → major, features → minor, anything else → patch.

        Before 1.0.0 (pre_major) breaking changes only warrant a minor bump.
        """
        commits = self.commits(tag_prefix)
        if any(c.breaking for c in commits):
            return "minor" if pre_major else "major"
        if any(c.type == "feat" for c in commits):
            return "minor"
        return "patch"

    def render(self, version: str, *, tag_prefix: str) -> str:
        """Render the changelog section for version."""
        commits = self.commits(tag_prefix)
        date = datetime.now(timezone.utc).strftime("%Y-%m-%d")
        # Patch releases get a smaller heading
        heading = "###" if parse_version(version).patch else "##"
        lines = [f"{heading} {version} ({date})"]

        notes = [note for c in commits for note in c.notes] + [
            c.subject for c in commits if c.breaking and not c.notes
        ]
        if notes:
            lines += ["", "### ⚠ BREAKING CHANGES", ""]
            lines += [f"* {note}" for note in notes]

        for commit_type, title in SECTIONS:
            entries = [_format_entry(c) for c in commits if c.type == commit_type]
            if entries:
                lines += ["", f"### {title}", ""]
                lines += entries

        return "\n".join(lines) + "\n\n"


def _format_entry(commit: Commit) -> str:
    scope = f"**{commit.scope}:** " if commit.scope else ""
    return f"* {scope}{commit.subject} ({commit.hash[:7]})"
