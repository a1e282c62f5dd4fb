"""Tests for cut_release.cli."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from cut_release.cli import cli
from cut_release.config import ReleaseConfig
from cut_release.errors import HookFailureError


@pytest.fixture
def runner(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> CliRunner:
    monkeypatch.chdir(tmp_path)
    return CliRunner()


def _config(mock_run: MagicMock) -> ReleaseConfig:
    return mock_run.call_args.args[0]


class TestCli:
    """Tests for the cut-release command."""

    @patch("cut_release.cli.run_release", return_value="1.1.0")
    def test_defaults(self, mock_run: MagicMock, runner: CliRunner) -> None:
        result = runner.invoke(cli, [])

        assert result.exit_code == 0, result.output
        assert "Released version 1.1.0" in result.output
        config = _config(mock_run)
        assert config.tag_prefix == "v"
        assert config.prerelease is None
        assert not config.dry_run

    @patch("cut_release.cli.run_release", return_value="2.0.0")
    def test_flags(self, mock_run: MagicMock, runner: CliRunner) -> None:
        result = runner.invoke(
            cli,
            [
                "--release-as",
                "major",
                "--dry-run",
                "--skip-tag",
                "-t",
                "release-",
                "-m",
                "release {{currentTag}}",
                "-s",
                "-n",
                "--no-git-tag-fallback",
            ],
        )

        assert result.exit_code == 0, result.output
        config = _config(mock_run)
        assert config.release_as == "major"
        assert config.dry_run
        assert config.skip.tag
        assert not config.skip.bump
        assert config.tag_prefix == "release-"
        assert config.release_commit_message_format == "release {{currentTag}}"
        assert config.sign
        assert config.no_verify
        assert not config.git_tag_fallback

    @patch("cut_release.cli.run_release", return_value="1.0.1-beta.0")
    def test_prerelease_identifier(self, mock_run: MagicMock, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["-p", "beta"])

        assert result.exit_code == 0, result.output
        assert _config(mock_run).prerelease == "beta"

    @patch("cut_release.cli.run_release", return_value="1.0.1-0")
    def test_bare_prerelease(self, mock_run: MagicMock, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--prerelease"])

        assert result.exit_code == 0, result.output
        assert _config(mock_run).prerelease == ""

    @patch("cut_release.cli.run_release", return_value="1.1.0")
    def test_silent(self, mock_run: MagicMock, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--silent"])

        assert result.exit_code == 0
        assert result.output == ""

    @patch("cut_release.cli.run_release", return_value="1.1.0")
    def test_configuration_file(
        self, mock_run: MagicMock, runner: CliRunner, tmp_path: Path
    ) -> None:
        """Values from .versionrc apply unless a flag overrides them."""
        (tmp_path / ".versionrc").write_text(
            '{"tagPrefix": "rel-", "infile": "HISTORY.md", "skip": {"commit": true}}'
        )

        result = runner.invoke(cli, ["--infile", "NEWS.md", "--skip-tag"])

        assert result.exit_code == 0, result.output
        config = _config(mock_run)
        assert config.tag_prefix == "rel-"
        assert config.infile == "NEWS.md"
        assert config.skip.commit
        assert config.skip.tag

    @patch("cut_release.cli.run_release")
    def test_invalid_release_as(self, mock_run: MagicMock, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--release-as", "huge"])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output
        mock_run.assert_not_called()

    @patch("cut_release.cli.run_release")
    def test_release_failure_exits_non_zero(
        self, mock_run: MagicMock, runner: CliRunner
    ) -> None:
        mock_run.side_effect = HookFailureError("prebump", "blocked")

        result = runner.invoke(cli, [])

        assert result.exit_code == 1
        assert "Released version" not in result.output
