import subprocess
from unittest.mock import patch

import pytest

from docdrift.core.errors import GitError
from docdrift.core.git_tracker import GitTracker
from conftest import commit_all, write_file


@pytest.fixture
def history(git_repo):
    """Two commits: the first adds two files, the second edits one and adds another."""
    write_file(git_repo, "app/User.php", "<?php class User {}\n")
    write_file(git_repo, "README.md", "# Project\n")
    first = commit_all(git_repo, "Initial commit")

    write_file(git_repo, "app/User.php", "<?php class User { public $name; }\n")
    write_file(git_repo, "app/Post.php", "<?php class Post {}\n")
    second = commit_all(git_repo, "Add posts")
    return git_repo, first, second


def test_is_git_repo__true_inside_repository(git_repo) -> None:
    assert GitTracker(git_repo).is_git_repo() is True


def test_is_git_repo__false_outside_repository(tmp_path) -> None:
    outside = tmp_path / "plain"
    outside.mkdir()

    assert GitTracker(outside).is_git_repo() is False


def test_current_commit_hash__none_without_commits(git_repo) -> None:
    assert GitTracker(git_repo).current_commit_hash() is None


def test_current_commit_hash__returns_head(history) -> None:
    repo, _, second = history

    assert GitTracker(repo).current_commit_hash() == second


def test_changed_files__lists_files_between_commits(history) -> None:
    repo, first, second = history

    assert sorted(GitTracker(repo).changed_files(first, second)) == ["app/Post.php", "app/User.php"]


def test_changed_files__root_commit_lists_its_files(history) -> None:
    repo, first, _ = history

    assert sorted(GitTracker(repo).changed_files(None, first)) == ["README.md", "app/User.php"]


def test_changed_files__excludes_deleted_files(history) -> None:
    repo, _, second = history
    (repo / "app" / "Post.php").unlink()
    third = commit_all(repo, "Remove posts")

    assert GitTracker(repo).changed_files(second, third) == []


def test_changed_files__raises_git_error_for_unknown_commit(history) -> None:
    repo, _, second = history

    with pytest.raises(GitError):
        GitTracker(repo).changed_files("0" * 40, second)


def test_changed_files__raises_git_error_when_git_cannot_run(history) -> None:
    repo, first, second = history

    with patch("docdrift.core.git_tracker.subprocess.run", side_effect=OSError("git not found")):
        with pytest.raises(GitError):
            GitTracker(repo).changed_files(first, second)


def test_commit_log__lists_commits_newest_first(history) -> None:
    repo, first, second = history

    commits = GitTracker(repo).commit_log(None)

    assert [c.hash for c in commits] == [second, first]
    assert commits[0].message == "Add posts"
    assert commits[0].author == "Test User"


def test_commit_log__respects_range_and_limit(history) -> None:
    repo, first, second = history
    tracker = GitTracker(repo)

    assert [c.hash for c in tracker.commit_log(first, second)] == [second]
    assert len(tracker.commit_log(None, limit=1)) == 1


def test_last_commit_info__describes_head(history) -> None:
    repo, _, second = history

    info = GitTracker(repo).last_commit_info()

    assert info.hash == second
    assert info.short_hash == second[:8]


def test_read_file_at__returns_historical_content(history) -> None:
    repo, first, _ = history

    assert GitTracker(repo).read_file_at("app/User.php", first) == "<?php class User {}\n"


def test_read_file_at__none_when_file_did_not_exist(history) -> None:
    repo, first, _ = history

    assert GitTracker(repo).read_file_at("app/Post.php", first) is None


def test_read_file_at__none_when_git_times_out(history) -> None:
    repo, first, _ = history

    with patch(
        "docdrift.core.git_tracker.subprocess.run",
        side_effect=subprocess.TimeoutExpired(cmd="git", timeout=10),
    ):
        assert GitTracker(repo).read_file_at("app/User.php", first) is None
