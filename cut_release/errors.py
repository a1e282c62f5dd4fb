"""Exception types raised by the release pipeline.

Everything derives from ReleaseError so the CLI can turn any failure into a
single error message and a non-zero exit code.
"""

from __future__ import annotations


class ReleaseError(Exception):
    """Base exception for all release-related errors."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class InvalidVersionError(ReleaseError):
    """The current version is not a valid semantic version."""


class UnsupportedFileError(ReleaseError):
    """No updater could be inferred for a bump target."""


class InvalidUpdaterError(ReleaseError):
    """A custom or configured updater does not satisfy the updater contract."""


class HookFailureError(ReleaseError):
    """A lifecycle hook exited non-zero or raised."""

    def __init__(
        self, hook_name: str, message: str, cause: BaseException | None = None
    ) -> None:
        super().__init__(message, cause)
        self.hook_name = hook_name


class SubprocessError(ReleaseError):
    """A git command failed."""

    def __init__(
        self,
        command: list[str],
        message: str,
        returncode: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, cause)
        self.command = command
        self.returncode = returncode


class NoPackageFileFoundError(ReleaseError):
    """No manifest was found and falling back to git tags is disabled."""


class ConfigurationError(ReleaseError):
    """A configuration file could not be loaded or validated."""
