"""Version parsing, incrementing and next-version resolution.

Increments follow npm-style semver rules so that prerelease lines behave the
way JavaScript tooling users expect:

- "1.2.3" + patch → "1.2.4", but "1.2.4-dev.3" + patch → "1.2.4"
- "1.2.3" + preminor("dev") → "1.3.0-dev.0"
- "1.3.0-dev.0" + prerelease("dev") → "1.3.0-dev.1"

resolve_version() decides *which* increment to apply; the arithmetic itself
is left to semver.Version.
"""

from __future__ import annotations

import semver

from .errors import InvalidVersionError, ReleaseError
from .models import ReleaseContext, ResolvedVersion

BUMP_TYPES = ("major", "minor", "patch")
RELEASE_TYPES = (
    "major",
    "minor",
    "patch",
    "premajor",
    "preminor",
    "prepatch",
    "prerelease",
)

# Index is the priority: patch=0, minor=1, major=2
_TYPE_PRIORITY = ("patch", "minor", "major")


def clean_version(version_str: str) -> str:
    """Strip whitespace and a leading "v" or "=" ("v1.0.0" → "1.0.0")."""
    return version_str.strip().lstrip("=v")


def parse_version(version_str: str) -> semver.Version:
    """Parse a version string into a semver.Version object.

    Raises:
        InvalidVersionError: If the string is not a valid semantic version.
    """
    try:
        return semver.Version.parse(clean_version(version_str))
    except (TypeError, ValueError) as exc:
        raise InvalidVersionError(
            f"Invalid semantic version: {version_str!r}", exc
        ) from exc


def exact_version(value: str | None) -> str | None:
    """Return the cleaned version if value is an exact semver, else None."""
    if not value:
        return None
    cleaned = clean_version(value)
    if semver.Version.is_valid(cleaned):
        return cleaned
    return None


def is_prerelease(version_str: str) -> bool:
    return parse_version(version_str).prerelease is not None


def active_prerelease_type(version_str: str) -> str | None:
    """Infer which kind of prerelease line a version belongs to.

    The first non-zero component, looking at patch, then minor, then major,
    wins: "1.0.1-dev.0" is a patch prerelease, "1.1.0-dev.0" a minor one and
    "2.0.0-dev.0" a major one.
    """
    version = parse_version(version_str)
    for release_type in _TYPE_PRIORITY:
        if getattr(version, release_type):
            return release_type
    return None


def type_priority(release_type: str | None) -> int:
    """Priority of a bump type: major=2, minor=1, patch=0, unknown=-1."""
    if release_type in _TYPE_PRIORITY:
        return _TYPE_PRIORITY.index(release_type)
    return -1


def get_release_type(
    prerelease_id: str | None, expected_release_type: str, current_version: str
) -> str:
    """Choose the increment keyword for a requested bump.

    Without a prerelease id the bump is used as-is. With one, an ongoing
    prerelease line is continued when it is of the same or a higher type
    than the requested bump; otherwise a new "pre<type>" line is started.
    """
    if prerelease_id is None:
        return expected_release_type

    if is_prerelease(current_version):
        active = active_prerelease_type(current_version)
        if active == expected_release_type or type_priority(active) > type_priority(
            expected_release_type
        ):
            return "prerelease"

    return "pre" + expected_release_type


def _bump_prerelease(version: semver.Version, identifier: str | None) -> semver.Version:
    """Advance the prerelease part, resetting it when the identifier changes."""
    if version.prerelease is None:
        prerelease = f"{identifier}.0" if identifier else "0"
        return version.replace(prerelease=prerelease, build=None)

    parts = version.prerelease.split(".")
    if any(part.isdigit() for part in parts):
        bumped = version.bump_prerelease()
    else:
        bumped = version.replace(prerelease=f"{version.prerelease}.0", build=None)

    if identifier:
        bumped_parts = bumped.prerelease.split(".")
        if bumped_parts[0] != identifier or not (
            len(bumped_parts) > 1 and bumped_parts[1].isdigit()
        ):
            return bumped.replace(prerelease=f"{identifier}.0")
    return bumped


def increment(version_str: str, release_type: str, identifier: str | None = None) -> str:
    """Increment a version by release type, npm semver style.

    Args:
        version_str: Current version.
        release_type: One of RELEASE_TYPES.
        identifier: Prerelease identifier ("dev", "beta", ...). An empty
                    string yields a bare numeric prerelease ("1.0.1-0").

    Raises:
        InvalidVersionError: If version_str is invalid or release_type unknown.
    """
    version = parse_version(version_str).replace(build=None)

    if release_type == "major":
        # "2.0.0-dev.1" is already on its way to 2.0.0
        if version.minor != 0 or version.patch != 0 or version.prerelease is None:
            return str(version.bump_major())
        return str(version.replace(prerelease=None))
    if release_type == "minor":
        if version.patch != 0 or version.prerelease is None:
            return str(version.bump_minor())
        return str(version.replace(prerelease=None))
    if release_type == "patch":
        if version.prerelease is None:
            return str(version.bump_patch())
        return str(version.replace(prerelease=None))
    if release_type == "premajor":
        return str(_bump_prerelease(version.bump_major(), identifier))
    if release_type == "preminor":
        return str(_bump_prerelease(version.bump_minor(), identifier))
    if release_type == "prepatch":
        return str(_bump_prerelease(version.bump_patch(), identifier))
    if release_type == "prerelease":
        if version.prerelease is None:
            version = version.bump_patch()
        return str(_bump_prerelease(version, identifier))

    raise InvalidVersionError(
        f"Unknown release type {release_type!r}; expected one of {', '.join(RELEASE_TYPES)}"
    )


def resolve_version(
    current_version: str,
    override: str | None,
    recommendation: str | None,
    prerelease_id: str | None,
    first_release: bool,
) -> str:
    """Compute the next version for a release.

    Args:
        current_version: Version currently recorded in the manifest or tag.
        override: Exact version ("v100.0.0") or bump type from --release-as.
        recommendation: Bump type recommended from the commit history.
        prerelease_id: Prerelease identifier, None for a regular release.
        first_release: If True the current version is released unchanged.

    Raises:
        InvalidVersionError: If current_version is not a valid semver, or the
            override is neither a version nor a release type.
    """
    parse_version(current_version)

    if first_release:
        return current_version

    exact = exact_version(override)
    if exact:
        return exact

    if override:
        if override not in BUMP_TYPES and override != "prerelease":
            raise InvalidVersionError(
                f"Invalid release-as value {override!r}: expected major, minor, "
                "patch or an exact version"
            )
        release_as = override
    else:
        release_as = recommendation

    if not release_as:
        raise ReleaseError("Unable to determine a release type for the next version")

    if release_as == "prerelease":
        return increment(current_version, "prerelease", prerelease_id)

    release_type = get_release_type(prerelease_id, release_as, current_version)
    return increment(current_version, release_type, prerelease_id)


def resolve(context: ReleaseContext) -> ResolvedVersion:
    """Resolve a ReleaseContext into the version every later stage uses."""
    return ResolvedVersion(
        version=resolve_version(
            context.current_version,
            context.exact_version or context.requested_release_type,
            context.recommended_release_type,
            context.prerelease_id,
            context.first_release,
        )
    )
