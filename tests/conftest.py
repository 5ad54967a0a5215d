"""Shared test fixtures and helpers."""

import subprocess
from pathlib import Path

import pytest

from docdrift.core.database import TrackingStore


def git(repo: Path, *args: str) -> str:
    """Run a git command in ``repo`` and return its stripped stdout."""
    result = subprocess.run(["git", *args], cwd=repo, check=True, capture_output=True, text=True)
    return result.stdout.strip()


def commit_all(repo: Path, message: str) -> str:
    """Stage everything, commit, and return the new HEAD hash."""
    git(repo, "add", "-A")
    git(repo, "commit", "-q", "-m", message)
    return git(repo, "rev-parse", "HEAD")


def write_file(root: Path, relative: str, content: str) -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """An empty git repository with a committer identity configured."""
    repo = tmp_path / "repo"
    repo.mkdir()
    git(repo, "init", "-q")
    git(repo, "config", "user.email", "test@example.com")
    git(repo, "config", "user.name", "Test User")
    git(repo, "config", "commit.gpgsign", "false")
    return repo


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def store(tmp_path: Path, project_root: Path) -> TrackingStore:
    return TrackingStore(db_path=tmp_path / "data" / "docdrift.db", project_root=project_root)


@pytest.fixture
def repo_store(tmp_path: Path, git_repo: Path) -> TrackingStore:
    """A store whose project root is the temporary git repository."""
    return TrackingStore(db_path=tmp_path / "data" / "docdrift.db", project_root=git_repo)
