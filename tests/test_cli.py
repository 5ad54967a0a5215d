"""Tests for cli.py."""

import os
import signal
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from docdrift.cli import cli
from docdrift.core.models import PassReport
from docdrift.core.watcher import DocumentationWatcher
from conftest import commit_all, write_file

USER_V1 = "<?php\nclass User\n{\n    public function name(): string\n    {\n        return $this->name;\n    }\n}\n"
USER_V2 = (
    "<?php\nclass User\n{\n    public function name(): string\n    {\n        return $this->name;\n    }\n\n"
    "    public function email(): string\n    {\n        return $this->email;\n    }\n}\n"
)


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def in_repo(git_repo, monkeypatch):
    monkeypatch.chdir(git_repo)
    return git_repo


def _invoke(runner: CliRunner, tmp_path, *args: str):
    return runner.invoke(cli, ["--database", str(tmp_path / "data" / "docdrift.db"), *args])


def test_run__reports_no_commits_in_empty_repository(runner, tmp_path, in_repo) -> None:
    result = _invoke(runner, tmp_path, "run")

    assert result.exit_code == 0
    assert "No commits found" in result.output


def test_run__first_pass_starts_tracking(runner, tmp_path, in_repo) -> None:
    write_file(in_repo, "app/User.php", USER_V1)
    head = commit_all(in_repo, "Initial")

    result = _invoke(runner, tmp_path, "run")

    assert result.exit_code == 0
    assert f"Started tracking at commit {head[:8]}" in result.output
    assert "Evaluated 1 file(s): 1 processed" in result.output
    assert (in_repo / "docs" / "code" / "User.md").exists()


def test_run__regenerates_changed_files_and_writes_docs(runner, tmp_path, in_repo) -> None:
    write_file(in_repo, "app/User.php", USER_V1)
    commit_all(in_repo, "Initial")
    _invoke(runner, tmp_path, "run")

    write_file(in_repo, "app/User.php", USER_V2)
    commit_all(in_repo, "Add email")
    result = _invoke(runner, tmp_path, "run")

    assert result.exit_code == 0
    assert (in_repo / "docs" / "code" / "User.md").exists()

    status = _invoke(runner, tmp_path, "status")
    assert status.exit_code == 0
    assert "app/User.php" in status.output


def test_run__selected_files_are_forced_without_scoring(runner, tmp_path, in_repo) -> None:
    write_file(in_repo, "app/User.php", USER_V1)
    commit_all(in_repo, "Initial")

    result = _invoke(runner, tmp_path, "run", "--force", "--file", "app/User.php")

    assert result.exit_code == 0
    assert (in_repo / "docs" / "code" / "User.md").exists()


def test_analyze__scores_working_copy_against_head(runner, tmp_path, in_repo) -> None:
    write_file(in_repo, "app/User.php", USER_V1)
    commit_all(in_repo, "Initial")
    write_file(in_repo, "app/User.php", USER_V2)

    result = _invoke(runner, tmp_path, "analyze", "app/User.php")

    assert result.exit_code == 0
    assert "Change analysis: app/User.php" in result.output
    assert "REGENERATE" in result.output


def test_analyze__missing_file_exits_with_error(runner, tmp_path, in_repo) -> None:
    result = _invoke(runner, tmp_path, "analyze", "app/Missing.php")

    assert result.exit_code == 1
    assert "Cannot read app/Missing.php" in result.output


def test_estimate__prices_a_file_with_default_rates(runner, tmp_path, in_repo) -> None:
    write_file(in_repo, "app/User.php", USER_V1)

    result = _invoke(runner, tmp_path, "estimate", "app/User.php", "--model", "unknown-model")

    assert result.exit_code == 0
    assert "unknown-model" in result.output
    assert "default" in result.output


def test_costs__reports_empty_ledger(runner, tmp_path, in_repo) -> None:
    result = _invoke(runner, tmp_path, "costs")

    assert result.exit_code == 0
    assert "No token usage recorded" in result.output


def test_cleanup__reports_removed_entries(runner, tmp_path, in_repo) -> None:
    result = _invoke(runner, tmp_path, "cleanup")

    assert result.exit_code == 0
    assert "Removed 0 stale tracking entries" in result.output


def test_migrations__all_applied_on_fresh_database(runner, tmp_path, in_repo) -> None:
    result = _invoke(runner, tmp_path, "migrations")

    assert result.exit_code == 0
    assert "All migrations are up to date!" in result.output


def test_stats__renders_tracking_table(runner, tmp_path, in_repo) -> None:
    result = _invoke(runner, tmp_path, "stats")

    assert result.exit_code == 0
    assert "Tracking Statistics" in result.output


@pytest.mark.parametrize("signum", [signal.SIGINT, signal.SIGTERM])
def test_watch__signal_during_a_pass_stops_after_it_finishes(runner, tmp_path, in_repo, signum) -> None:
    previous = signal.getsignal(signum)

    def interrupted_pass(force=False):
        os.kill(os.getpid(), signum)
        return PassReport()

    with patch.object(DocumentationWatcher, "run_pass", side_effect=interrupted_pass) as run_pass:
        result = _invoke(runner, tmp_path, "watch", "--interval", "0")

    assert result.exit_code == 0
    assert run_pass.call_count == 1
    assert "No commits found" in result.output
    assert "Stopped watching" in result.output
    assert signal.getsignal(signum) is previous
