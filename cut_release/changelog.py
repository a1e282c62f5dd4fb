"""Changelog file handling.

New release notes are spliced in above the entry of the previous release;
anything before that entry (usually the old header) is replaced by the
configured header, and everything from the previous entry on is kept
verbatim.
"""

from __future__ import annotations

import re
from typing import Protocol

START_OF_LAST_RELEASE_PATTERN = re.compile(
    r"(^#+ (?:<.*>)?\[?[0-9]+\.[0-9]+\.[0-9]+|<a name=)", re.MULTILINE
)

DEFAULT_HEADER = (
    "# Changelog\n\n"
    "All notable changes to this project will be documented in this file. "
    "See [Conventional Commits](https://conventionalcommits.org) for commit guidelines.\n"
)


class ChangelogSource(Protocol):
    """Commit-history collaborator: recommends a bump and renders notes."""

    def recommend_release_type(
        self, current_version: str, *, tag_prefix: str, pre_major: bool
    ) -> str: ...

    def render(self, version: str, *, tag_prefix: str) -> str: ...


def strip_header(old_content: str) -> str:
    """Drop everything before the previous release entry, if there is one."""
    match = START_OF_LAST_RELEASE_PATTERN.search(old_content)
    if match is None:
        return old_content
    return old_content[match.start() :]


def merge_changelog(header: str, new_content: str, old_content: str) -> str:
    """Build the new changelog text.

    Trailing newlines are collapsed into one.
    """
    body = re.sub(r"\n+\Z", "\n", new_content + strip_header(old_content))
    return header + "\n" + body

