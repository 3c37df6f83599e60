"""
Unit tests for the command line interface.
"""

from pathlib import Path

import pytest
from click.testing import CliRunner

from vcr import __version__
from vcr.cli import cli
from vcr.config import config
from vcr.core.errors import EXIT_CODES, ErrorKind


@pytest.fixture
def runner(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """A runner inside an initialised repository."""
    monkeypatch.setattr(config.logging, "enable_console_logging", False)
    runner = CliRunner()
    with runner.isolated_filesystem(temp_dir=tmp_path):
        result = runner.invoke(cli, ["init"])
        assert result.exit_code == 0, result.output
        yield runner


def _commit(runner: CliRunner, path: str, text: str, message: str) -> None:
    Path(path).write_text(text)
    assert runner.invoke(cli, ["stage", path]).exit_code == 0
    result = runner.invoke(cli, ["commit", message])
    assert result.exit_code == 0, result.output


class TestInit:
    """Tests for vcr init."""

    def test_init_creates_repository(self, runner: CliRunner) -> None:
        assert Path(".vcr").is_dir()
        assert Path(".vcr/HEAD").read_text() == "ref: tracks/master"

    def test_init_twice(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["init"])
        assert result.exit_code == EXIT_CODES[ErrorKind.ALREADY_INITIALIZED]
        assert "error[already_initialized]" in result.stderr

    def test_outside_repository(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(config.logging, "enable_console_logging", False)
        runner = CliRunner()
        with runner.isolated_filesystem(temp_dir=tmp_path):
            result = runner.invoke(cli, ["status"])
        assert result.exit_code == EXIT_CODES[ErrorKind.NOT_A_REPOSITORY]

    def test_version(self) -> None:
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestWorkflow:
    """Tests for staging, committing and inspecting."""

    def test_stage_and_commit(self, runner: CliRunner) -> None:
        Path("a.txt").write_text("x\n")
        result = runner.invoke(cli, ["stage", "a.txt"])
        assert result.exit_code == 0
        assert "staged a.txt" in result.stdout

        result = runner.invoke(cli, ["commit", "first"])
        assert result.exit_code == 0
        assert result.stdout.startswith("[master ")

        result = runner.invoke(cli, ["status"])
        assert "On track master" in result.stdout
        assert "Nothing to commit" in result.stdout

    def test_status_and_diff(self, runner: CliRunner) -> None:
        _commit(runner, "a.txt", "x\n", "first")
        Path("a.txt").write_text("y\n")

        status = runner.invoke(cli, ["status"])
        assert "Not staged for commit" in status.stdout
        assert "a.txt" in status.stdout

        diff = runner.invoke(cli, ["diff"])
        assert diff.exit_code == 0
        assert "--- a/a.txt" in diff.stdout
        assert "-x" in diff.stdout
        assert "+y" in diff.stdout

    def test_commit_without_message(self, runner: CliRunner) -> None:
        Path("a.txt").write_text("x")
        runner.invoke(cli, ["stage", "a.txt"])
        result = runner.invoke(cli, ["commit"])
        assert result.exit_code == EXIT_CODES[ErrorKind.MISSING_COMMIT_MESSAGE]

    def test_nothing_to_commit(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["commit", "empty"])
        assert result.exit_code == EXIT_CODES[ErrorKind.NOTHING_TO_COMMIT]
        assert "error[nothing_to_commit]" in result.stderr

    def test_unstage_not_staged(self, runner: CliRunner) -> None:
        Path("a.txt").write_text("x")
        result = runner.invoke(cli, ["unstage", "a.txt"])
        assert result.exit_code == EXIT_CODES[ErrorKind.NOT_STAGED]

    def test_history_and_show(self, runner: CliRunner) -> None:
        _commit(runner, "a.txt", "1\n", "first")
        _commit(runner, "a.txt", "2\n", "second")

        result = runner.invoke(cli, ["history"])
        assert result.stdout.count("frame ") == 2
        assert result.stdout.index("second") < result.stdout.index("first")

        limited = runner.invoke(cli, ["history", "-n", "1"])
        assert limited.stdout.count("frame ") == 1

        show = runner.invoke(cli, ["show", "master"])
        assert "second" in show.stdout
        assert "+2" in show.stdout


class TestTracksAndMerge:
    """Tests for track, tag, checkout and merge commands."""

    def test_tracks(self, runner: CliRunner) -> None:
        _commit(runner, "a.txt", "x", "first")
        assert runner.invoke(cli, ["track", "new", "feature"]).exit_code == 0

        result = runner.invoke(cli, ["track", "list"])
        assert result.stdout.splitlines() == ["  feature", "* master"]

        duplicate = runner.invoke(cli, ["track", "new", "feature"])
        assert duplicate.exit_code == EXIT_CODES[ErrorKind.NAME_ALREADY_EXISTS]

    def test_delete_unmerged_track_prompts(self, runner: CliRunner) -> None:
        _commit(runner, "a.txt", "x", "first")
        runner.invoke(cli, ["track", "new", "feature", "--checkout"])
        _commit(runner, "a.txt", "y", "on feature")
        runner.invoke(cli, ["checkout", "master"])

        kept = runner.invoke(cli, ["track", "delete", "feature"], input="n\n")
        assert "Kept track feature" in kept.stdout

        deleted = runner.invoke(cli, ["track", "delete", "feature"], input="y\n")
        assert "Deleted track feature" in deleted.stdout

    def test_tags_and_checkout(self, runner: CliRunner) -> None:
        _commit(runner, "a.txt", "x", "first")
        assert runner.invoke(cli, ["tag", "new", "v1"]).exit_code == 0
        assert runner.invoke(cli, ["tag", "list"]).stdout.startswith("v1\t")

        result = runner.invoke(cli, ["checkout", "v1"])
        assert result.exit_code == 0
        assert "HEAD is now at ref: tags/v1" in result.stdout

        unknown = runner.invoke(cli, ["checkout", "nowhere"])
        assert unknown.exit_code == EXIT_CODES[ErrorKind.UNRECOGNISED_REFERENCE]

    def test_merge_conflict_and_abort(self, runner: CliRunner) -> None:
        _commit(runner, "a.txt", "base\n", "base")
        runner.invoke(cli, ["track", "new", "feature", "--checkout"])
        _commit(runner, "a.txt", "feature\n", "feature change")
        runner.invoke(cli, ["checkout", "master"])
        _commit(runner, "a.txt", "master\n", "master change")

        result = runner.invoke(cli, ["merge", "feature"])
        assert result.exit_code == EXIT_CODES[ErrorKind.MERGE_CONFLICTS]
        assert "conflict: a.txt" in result.stderr

        status = runner.invoke(cli, ["status"])
        assert "Unresolved merge conflicts" in status.stdout

        aborted = runner.invoke(cli, ["merge", "--abort"])
        assert aborted.exit_code == 0
        assert "Aborted merge into master" in aborted.stdout

    def test_fast_forward(self, runner: CliRunner) -> None:
        _commit(runner, "a.txt", "x", "first")
        runner.invoke(cli, ["track", "new", "feature", "--checkout"])
        _commit(runner, "a.txt", "y", "second")
        runner.invoke(cli, ["checkout", "master"])

        result = runner.invoke(cli, ["merge", "feature"])
        assert result.exit_code == 0
        assert "Fast-forward master" in result.stdout

        again = runner.invoke(cli, ["merge", "feature"])
        assert "Already up to date." in again.stdout
