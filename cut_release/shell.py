"""Shell and git utilities.

Provides simple wrappers around subprocess calls for running shell commands
and git operations, plus the terminal output helpers used by every stage.
"""

from __future__ import annotations

import subprocess

import click

from .errors import SubprocessError

TICK = "✔"
CROSS = "✖"
INFO = "ℹ"


def git(*args: str, check: bool = True) -> str:
    """Run a git command and return stdout.

    Args:
        *args: Arguments to pass to git (e.g., "status", "--short").
        check: If True (default), raise on non-zero exit. Set to False
               for commands that may legitimately fail (e.g., tag lookup).

    Returns:
        Stripped stdout from the git command.

    Raises:
        SubprocessError: If check is True and git exits non-zero.
    """
    command = ["git", *args]
    result = subprocess.run(command, capture_output=True, text=True)
    if check and result.returncode != 0:
        message = result.stderr.strip() or (
            f"git {' '.join(args)} exited with code {result.returncode}"
        )
        raise SubprocessError(command, message, result.returncode)
    return result.stdout.strip()


def run_shell(command: str) -> subprocess.CompletedProcess[str]:
    """Run a shell command, capturing stdout and stderr as text."""
    return subprocess.run(command, shell=True, capture_output=True, text=True)


def is_ignored(path: str) -> bool:
    """Check whether the repository's ignore rules exclude a path.

    Outside a git repository (or without git installed) nothing is ignored.
    """
    try:
        result = subprocess.run(
            ["git", "check-ignore", "-q", "--", path], capture_output=True
        )
    except FileNotFoundError:
        return False
    return result.returncode == 0


def checkpoint(
    msg: str,
    *args: object,
    silent: bool = False,
    dry_run: bool = False,
    figure: str | None = None,
) -> None:
    """Print a one-line progress message.

    ``%s`` placeholders in msg are filled with args, rendered in bold. The
    default figure is a green tick, or a yellow one in dry-run mode.
    """
    if silent:
        return
    if figure is None:
        figure = click.style(TICK, fg="yellow" if dry_run else "green")
    text = msg % tuple(click.style(str(arg), bold=True) for arg in args) if args else msg
    click.echo(f"{figure} {text}")


def print_error(msg: str, *, silent: bool = False, level: str = "error") -> None:
    """Print an error (red) or warning (yellow) to stderr."""
    if silent:
        return
    click.echo(click.style(msg, fg="red" if level == "error" else "yellow"), err=True)


def preview(text: str, *, silent: bool = False) -> None:
    """Show content a dry run would have written."""
    if silent:
        return
    click.echo(f"\n---\n{click.style(text.strip(), dim=True)}\n---\n")


def info_figure() -> str:
    return click.style(INFO, fg="blue")


def cross_figure() -> str:
    return click.style(CROSS, fg="red")
