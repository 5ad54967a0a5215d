"""Git plumbing for the documentation watcher."""

import logging
import subprocess
from datetime import datetime
from pathlib import Path

from docdrift.core.errors import GitError
from docdrift.core.models import CommitInfo

logger = logging.getLogger(__name__)

_FIELD_SEP = "\x1f"
_LOG_FORMAT = _FIELD_SEP.join(["%H", "%an", "%aI", "%s"])


class GitTracker:
    """Reads commits, diffs and historical file content from a repository."""

    def __init__(self, working_dir: Path | None = None):
        self.working_dir = working_dir or Path.cwd()

    def _run(self, args: list[str], timeout: int = 10) -> subprocess.CompletedProcess:
        return subprocess.run(
            ["git", *args],
            cwd=self.working_dir,
            capture_output=True,
            text=True,
            timeout=timeout,
        )

    def is_git_repo(self) -> bool:
        try:
            result = self._run(["rev-parse", "--is-inside-work-tree"], timeout=5)
            return result.returncode == 0 and result.stdout.strip() == "true"
        except (subprocess.TimeoutExpired, subprocess.SubprocessError, OSError):
            return False

    def current_commit_hash(self) -> str | None:
        """Get the commit SHA at HEAD.

        Returns:
            Current commit SHA or None if not a repository or no commits yet
        """
        try:
            result = self._run(["rev-parse", "HEAD"], timeout=5)
            if result.returncode == 0:
                return result.stdout.strip() or None
        except (subprocess.TimeoutExpired, subprocess.SubprocessError, OSError):
            pass

        return None

    def changed_files(self, from_commit: str | None, to_commit: str) -> list[str]:
        """List files added, copied, modified or renamed between two commits.

        With no ``from_commit`` the files touched by ``to_commit`` itself are listed.

        Raises:
            GitError: If git cannot produce the diff
        """
        if from_commit is None:
            args = ["diff-tree", "--root", "--no-commit-id", "--name-only", "-r", "--diff-filter=ACMR", to_commit]
        else:
            args = ["diff", "--name-only", "--diff-filter=ACMR", from_commit, to_commit]

        try:
            result = self._run(args, timeout=30)
        except (subprocess.TimeoutExpired, subprocess.SubprocessError, OSError) as e:
            raise GitError(f"git diff failed: {e}") from e

        if result.returncode != 0:
            raise GitError(f"git diff {from_commit}..{to_commit} failed: {result.stderr.strip()}")

        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def commit_log(
        self, from_commit: str | None, to_commit: str = "HEAD", limit: int | None = None
    ) -> list[CommitInfo]:
        """Commits reachable from ``to_commit`` but not from ``from_commit``, newest first."""
        revision = f"{from_commit}..{to_commit}" if from_commit else to_commit
        args = ["log", f"--format={_LOG_FORMAT}", revision]
        if limit is not None:
            args.insert(1, f"--max-count={limit}")

        try:
            result = self._run(args)
        except (subprocess.TimeoutExpired, subprocess.SubprocessError, OSError) as e:
            logger.warning(f"git log failed: {e}")
            return []

        if result.returncode != 0:
            logger.warning(f"git log {revision} failed: {result.stderr.strip()}")
            return []

        commits = []
        for line in result.stdout.splitlines():
            parts = line.split(_FIELD_SEP)
            if len(parts) != 4:
                continue
            commit_hash, author, date, message = parts
            commits.append(
                CommitInfo(hash=commit_hash, author=author, date=datetime.fromisoformat(date), message=message)
            )
        return commits

    def last_commit_info(self) -> CommitInfo | None:
        commits = self.commit_log(None, "HEAD", limit=1)
        return commits[0] if commits else None

    def read_file_at(self, path: str, ref: str) -> str | None:
        """Content of ``path`` at ``ref``, or None when it did not exist there."""
        try:
            result = self._run(["show", f"{ref}:{path}"])
        except (subprocess.TimeoutExpired, subprocess.SubprocessError, OSError, UnicodeDecodeError) as e:
            logger.debug(f"git show {ref}:{path} failed: {e}")
            return None

        if result.returncode != 0:
            return None
        return result.stdout
