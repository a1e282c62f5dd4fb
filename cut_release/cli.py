"""CLI entry point for cut-release."""

from __future__ import annotations

import click

from cut_release.config import build_config, load_configuration
from cut_release.errors import ConfigurationError, ReleaseError
from cut_release.pipeline import run_release


@click.command()
@click.version_option(package_name="cut-release")
@click.option(
    "-r",
    "--release-as",
    default=None,
    help="Specify the release type manually (major, minor, patch) or an exact version.",
)
@click.option(
    "-p",
    "--prerelease",
    is_flag=False,
    flag_value="",
    default=None,
    help="Make a prerelease, optionally with an identifier (e.g. -p beta).",
)
@click.option("-i", "--infile", default=None, help="Read the changelog from this file.")
@click.option(
    "-m",
    "--message",
    default=None,
    help="Commit and tag message; {{currentTag}} is replaced with the new version.",
)
@click.option("-f", "--first-release", is_flag=True, help="Is this the first release?")
@click.option("-s", "--sign", is_flag=True, help="Sign the git commit and tag.")
@click.option(
    "-n", "--no-verify", is_flag=True, help="Bypass git hooks during the commit phase."
)
@click.option(
    "-a",
    "--commit-all",
    is_flag=True,
    help="Commit all staged changes, not just the files touched by the release.",
)
@click.option("--silent", is_flag=True, help="Don't print logs and errors.")
@click.option("-t", "--tag-prefix", default=None, help="Prefix for the release tag.")
@click.option("--dry-run", is_flag=True, help="Show what would happen without changing anything.")
@click.option("--skip-bump", is_flag=True, help="Skip the version bump.")
@click.option("--skip-changelog", is_flag=True, help="Skip the changelog update.")
@click.option("--skip-commit", is_flag=True, help="Skip the release commit.")
@click.option("--skip-tag", is_flag=True, help="Skip the release tag.")
@click.option(
    "--no-git-tag-fallback",
    is_flag=True,
    help="Fail instead of reading the version from git tags when no package file exists.",
)
def cli(
    release_as: str | None,
    prerelease: str | None,
    infile: str | None,
    message: str | None,
    first_release: bool,
    sign: bool,
    no_verify: bool,
    commit_all: bool,
    silent: bool,
    tag_prefix: str | None,
    dry_run: bool,
    skip_bump: bool,
    skip_changelog: bool,
    skip_commit: bool,
    skip_tag: bool,
    no_git_tag_fallback: bool,
) -> None:
    """Bump the version, update the changelog, then commit and tag a release."""
    # Flags only override the configuration file when given
    try:
        config = build_config(
            load_configuration(),
            release_as=release_as,
            prerelease=prerelease,
            infile=infile,
            release_commit_message_format=message,
            first_release=first_release or None,
            sign=sign or None,
            no_verify=no_verify or None,
            commit_all=commit_all or None,
            silent=silent or None,
            tag_prefix=tag_prefix,
            dry_run=dry_run or None,
            git_tag_fallback=False if no_git_tag_fallback else None,
            skip={
                "bump": skip_bump or None,
                "changelog": skip_changelog or None,
                "commit": skip_commit or None,
                "tag": skip_tag or None,
            },
        )
    except ConfigurationError as exc:
        raise click.ClickException(str(exc)) from exc

    try:
        version = run_release(config)
    except ReleaseError as exc:
        # Already reported by the pipeline
        raise click.exceptions.Exit(1) from exc

    if not config.silent:
        click.echo(f"\nReleased version {version}")


if __name__ == "__main__":
    cli()
