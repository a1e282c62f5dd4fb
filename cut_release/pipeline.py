"""Release pipeline: bump → changelog → commit → tag.

This module orchestrates a release:
1. Read the current version from the main package file (or the latest tag)
2. Resolve the next version and write it into every bump file
3. Render release notes and splice them into the changelog
4. Commit the touched files
5. Create the release tag and print how to publish it

Each stage can be skipped, and lifecycle hooks run around every stage. In
dry-run mode nothing is written and no git command with side effects runs,
but versions and release notes are still computed and printed.
"""

from __future__ import annotations

from pathlib import Path

from .changelog import ChangelogSource, merge_changelog
from .commits import ConventionalCommits, latest_semver_tag
from .config import ReleaseConfig
from .errors import InvalidVersionError, NoPackageFileFoundError
from .hooks import HookRunner
from .models import MainPackage, ReleaseContext
from .registry import UpdaterRegistry
from .shell import (
    checkpoint,
    cross_figure,
    git,
    info_figure,
    is_ignored,
    preview,
    print_error,
)
from .versions import BUMP_TYPES, exact_version, parse_version, resolve

VERSION_TOKEN = "{{currentTag}}"


class ReleaseRun:
    """State owned by a single pipeline run.

    Holds the ledger of files touched by the bump stage, the updater cache
    and hook-supplied overrides, so repeated runs in one process never see
    each other's state.
    """

    def __init__(
        self, config: ReleaseConfig, changelog_source: ChangelogSource | None = None
    ) -> None:
        self.config = config
        self.changelog_source = changelog_source or ConventionalCommits()
        self.hooks = HookRunner(
            config.scripts, dry_run=config.dry_run, silent=config.silent
        )
        self.registry = UpdaterRegistry()
        self.touched_files: dict[str, bool] = {}
        self.package: MainPackage | None = None
        self.release_as = config.release_as
        self.message_format = config.release_commit_message_format

    def checkpoint(self, msg: str, *args: object, figure: str | None = None) -> None:
        checkpoint(
            msg,
            *args,
            silent=self.config.silent,
            dry_run=self.config.dry_run,
            figure=figure,
        )

    def warn(self, msg: str) -> None:
        print_error(msg, silent=self.config.silent, level="warn")

    def git(self, *args: str) -> str:
        """Run a git command with side effects; a no-op in dry-run mode."""
        if self.config.dry_run:
            return ""
        return git(*args)


def read_file(path: Path) -> str:
    """Read text without translating line endings."""
    with path.open(encoding="utf-8", newline="") as fh:
        return fh.read()


def write_file(run: ReleaseRun, path: Path, contents: str) -> None:
    """Write text without translating line endings; skipped in dry-run mode."""
    if run.config.dry_run:
        return
    path.write_text(contents, encoding="utf-8", newline="")


def format_commit_message(message_format: str, version: str) -> str:
    """Substitute the new version into a message format."""
    return message_format.replace(VERSION_TOKEN, version)


def find_main_package(run: ReleaseRun) -> MainPackage | None:
    """Read name, version and privacy from the first usable package file."""
    for target in run.config.package_files:
        path = Path(target.filename)
        if not path.is_file():
            continue
        try:
            updater = run.registry.resolve(target)
            contents = read_file(path)
            name = updater.read_name(contents)
            version = updater.read_version(contents)
            private = updater.is_private(contents)
            package = MainPackage(
                filename=target.filename, name=name, version=version, private=private
            )
        except Exception as exc:
            # Unreadable package files fall through to the next candidate
            run.warn(f"Unable to read version from {target.filename}: {exc}")
            continue

        run.registry.package_name = name
        return package
    return None


def read_current_version(run: ReleaseRun) -> str:
    """Current version from the main package file, or the latest semver tag.

    Raises:
        NoPackageFileFoundError: If there is no package file and falling back
            to git tags is disabled.
    """
    run.package = find_main_package(run)
    if run.package is not None:
        return run.package.version
    if run.config.git_tag_fallback:
        return latest_semver_tag(run.config.tag_prefix)
    raise NoPackageFileFoundError("no package file found")


def build_release_context(run: ReleaseRun, current_version: str) -> ReleaseContext:
    """Combine the current version, --release-as and the commit history.

    The commit history is only consulted when --release-as does not already
    decide the bump.
    """
    release_as = run.release_as
    exact = exact_version(release_as)
    requested = None
    if release_as and not exact:
        if release_as not in BUMP_TYPES and release_as != "prerelease":
            raise InvalidVersionError(
                f"Invalid release-as value {release_as!r}: expected major, minor, "
                "patch or an exact version"
            )
        requested = release_as

    recommended = None
    if not run.config.first_release and not exact and not requested:
        pre_major = parse_version(current_version).compare("1.0.0") < 0
        recommended = run.changelog_source.recommend_release_type(
            current_version, tag_prefix=run.config.tag_prefix, pre_major=pre_major
        )

    return ReleaseContext(
        current_version=current_version,
        requested_release_type=requested,
        recommended_release_type=recommended,
        exact_version=exact,
        prerelease_id=run.config.prerelease,
        first_release=run.config.first_release,
    )


def update_configs(run: ReleaseRun, new_version: str) -> None:
    """Write new_version into every bump file, recording the touched ones.

    Missing files are skipped silently; files excluded by the repository's
    ignore rules are never read. Any other problem with a file is reported
    as a warning and that file is left alone.
    """
    for target in run.config.bump_files:
        path = Path(target.filename)
        if is_ignored(target.filename) or not path.is_file():
            continue
        try:
            updater = run.registry.resolve(target)
            contents = read_file(path)
            old_version = updater.read_version(contents)
            run.checkpoint(
                "bumping version in %s from %s to %s",
                target.filename,
                old_version,
                new_version,
            )
            write_file(run, path, updater.write_version(contents, new_version))
        except FileNotFoundError:
            continue
        except Exception as exc:
            # Custom updaters may raise anything; only this target is skipped
            run.warn(f"Unable to bump version in {target.filename}: {exc}")
            continue
        run.touched_files[target.filename] = True


def bump(run: ReleaseRun, current_version: str) -> str:
    """Bump stage: resolve the next version and write it to the bump files."""
    # The ledger only ever describes the current bump
    run.touched_files = {}
    if run.config.skip.bump:
        return current_version

    run.hooks.run("prerelease")
    release_as = run.hooks.run("prebump")
    if release_as:
        run.release_as = release_as

    new_version = resolve(build_release_context(run, current_version)).version

    if run.config.first_release:
        run.checkpoint("skip version bump on first release", figure=cross_figure())
    else:
        update_configs(run, new_version)

    run.hooks.run("postbump", new_version)
    return new_version


def output_changelog(run: ReleaseRun, new_version: str) -> None:
    """Render release notes and splice them into the changelog file."""
    config = run.config
    infile = Path(config.infile)
    if not infile.exists():
        run.checkpoint("created %s", config.infile)
        write_file(run, infile, "\n")

    old_content = "" if config.dry_run else read_file(infile)
    content = run.changelog_source.render(new_version, tag_prefix=config.tag_prefix)

    run.checkpoint("outputting changes to %s", config.infile)
    if config.dry_run:
        preview(content, silent=config.silent)
    else:
        write_file(run, infile, merge_changelog(config.header, content, old_content))


def changelog(run: ReleaseRun, new_version: str) -> None:
    """Changelog stage."""
    if run.config.skip.changelog:
        return
    run.hooks.run("prechangelog", new_version)
    output_changelog(run, new_version)
    run.hooks.run("postchangelog", new_version)


def exec_commit(run: ReleaseRun, new_version: str) -> None:
    """Stage the touched files and the changelog, then commit them.

    With ``commit_all`` the commit takes everything already staged in the
    index, not only those paths. The rest of the working tree is never
    staged.
    """
    config = run.config
    paths = [name for name, touched in run.touched_files.items() if touched]
    if not config.skip.changelog:
        paths.append(config.infile)

    if not paths and not config.commit_all:
        run.checkpoint("nothing to commit", figure=cross_figure())
        return

    described = paths + (["all staged files"] if config.commit_all else [])
    run.checkpoint("committing " + " and ".join(["%s"] * len(described)), *described)

    if paths:
        run.git("add", *paths)

    args = ["commit"]
    if config.no_verify:
        args.append("--no-verify")
    if config.sign:
        args.append("-S")
    if not config.commit_all:
        args.extend(paths)
    args.extend(["-m", format_commit_message(run.message_format, new_version)])
    run.git(*args)


def commit(run: ReleaseRun, new_version: str) -> None:
    """Commit stage. A precommit hook's output replaces the message format."""
    if run.config.skip.commit:
        return
    message = run.hooks.run("precommit", new_version)
    if message:
        run.message_format = message
    exec_commit(run, new_version)
    run.hooks.run("postcommit", new_version)


def publish_hint(run: ReleaseRun) -> str | None:
    """Command that publishes the package, if this release warrants one.

    Only a public package whose manifest was actually bumped is published.
    """
    package = run.package
    if package is None or package.private:
        return None
    if not run.touched_files.get(package.filename):
        return None

    basename = Path(package.filename).name
    if basename == "package.json":
        hint = "npm publish"
        if run.config.prerelease is not None:
            hint += f" --tag {run.config.prerelease or 'prerelease'}"
        return hint
    if basename == "pyproject.toml":
        return "uv build && uv publish"
    return None


def exec_tag(run: ReleaseRun, new_version: str) -> None:
    """Create the release tag and print the push/publish hint."""
    config = run.config
    tag_option = "-s" if config.sign else "-a"
    run.checkpoint("tagging release %s%s", config.tag_prefix, new_version)
    run.git(
        "tag",
        tag_option,
        config.tag_prefix + new_version,
        "-m",
        format_commit_message(run.message_format, new_version),
    )

    branch = git("rev-parse", "--abbrev-ref", "HEAD")
    message = f"git push --follow-tags origin {branch}"
    hint = publish_hint(run)
    if hint:
        message += f" && {hint}"
    run.checkpoint("Run `%s` to publish", message, figure=info_figure())


def tag(run: ReleaseRun, new_version: str) -> None:
    """Tag stage."""
    if run.config.skip.tag:
        return
    private = run.package.private if run.package is not None else False
    run.hooks.run("pretag", new_version, private)
    exec_tag(run, new_version)
    run.hooks.run("posttag", new_version, private)


def run_release(
    config: ReleaseConfig, changelog_source: ChangelogSource | None = None
) -> str:
    """Execute the full release pipeline.

    Args:
        config: Release options.
        changelog_source: Commit-history collaborator; defaults to
            ConventionalCommits read from git.

    Returns:
        The released version.

    Raises:
        ReleaseError: On the first failing stage. Files already written and
            commits already made are left in place.
    """
    run = ReleaseRun(config, changelog_source)
    try:
        current_version = read_current_version(run)
        new_version = bump(run, current_version)
        changelog(run, new_version)
        commit(run, new_version)
        tag(run, new_version)
    except Exception as exc:
        print_error(str(exc), silent=config.silent)
        raise
    return new_version
