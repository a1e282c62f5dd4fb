"""Lifecycle hook execution.

Hooks are configured per lifecycle event (prerelease, prebump, postbump,
prechangelog, postchangelog, precommit, postcommit, pretag, posttag). A hook
is either a shell command or an in-process callable; whatever it prints (or
returns) is handed back to the pipeline as an optional override.
"""

from __future__ import annotations

import shlex
from collections.abc import Mapping

from .errors import HookFailureError
from .models import CallableHook, HookContext, ShellHook
from .shell import checkpoint, info_figure, print_error, run_shell

HOOK_NAMES = (
    "prerelease",
    "prebump",
    "postbump",
    "prechangelog",
    "postchangelog",
    "precommit",
    "postcommit",
    "pretag",
    "posttag",
)


class HookRunner:
    """Runs the configured lifecycle hooks.

    Hooks also run in dry-run mode; only the built-in stages hold back their
    side effects.
    """

    def __init__(
        self,
        scripts: Mapping[str, ShellHook | CallableHook],
        *,
        dry_run: bool = False,
        silent: bool = False,
    ) -> None:
        self.scripts = scripts
        self.dry_run = dry_run
        self.silent = silent

    def run(
        self,
        hook_name: str,
        version: str | None = None,
        package_private: bool = False,
    ) -> str | None:
        """Run a hook and return its trimmed output, or None.

        Raises:
            HookFailureError: If the hook exits non-zero or raises.
        """
        hook = self.scripts.get(hook_name)
        if hook is None:
            return None

        checkpoint(
            'Running lifecycle script "%s"',
            hook_name,
            silent=self.silent,
            dry_run=self.dry_run,
        )
        if hook.kind == "shell":
            return self._run_shell(hook_name, hook, version)
        context = HookContext(
            hook_name=hook_name,
            version=version,
            package_private=package_private,
            dry_run=self.dry_run,
        )
        return self._run_callable(hook_name, hook, context)

    def _run_shell(self, hook_name: str, hook: ShellHook, version: str | None) -> str | None:
        command = hook.command
        if version:
            command += f" --new-version={shlex.quote(version)}"
        checkpoint(
            '- execute command: "%s"', command, silent=self.silent, figure=info_figure()
        )

        result = run_shell(command)
        if result.returncode != 0:
            message = result.stderr.strip() or (
                f'Lifecycle script "{hook_name}" exited with code {result.returncode}'
            )
            raise HookFailureError(hook_name, message)
        if result.stderr.strip():
            print_error(result.stderr.strip(), silent=self.silent, level="warn")

        return result.stdout.strip() or None

    def _run_callable(
        self, hook_name: str, hook: CallableHook, context: HookContext
    ) -> str | None:
        checkpoint(
            '- execute command: "%s"',
            getattr(hook.fn, "__name__", repr(hook.fn)),
            silent=self.silent,
            figure=info_figure(),
        )
        try:
            result = hook.fn(context)
        except Exception as exc:
            message = str(exc) or type(exc).__name__
            raise HookFailureError(hook_name, message, exc) from exc

        if result is None:
            return None
        return str(result).strip() or None
