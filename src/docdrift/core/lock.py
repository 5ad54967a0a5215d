"""File-based locking so only one evaluation pass runs against a store at a time."""

import fcntl
import logging
import tempfile
import time
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from docdrift.core.settings import settings

logger = logging.getLogger(__name__)


class WatcherLock:
    """Acquires a file lock next to the tracking database."""

    def __init__(self, db_path: Path | None = None, timeout: float | None = None):
        self.timeout = settings.lock_timeout if timeout is None else timeout
        self.lock_file_path = self._get_lock_file_path(db_path)
        self._lock_file_fd = None

    def _get_lock_file_path(self, db_path: Path | None) -> Path:
        db_path = db_path or settings.resolved_database_path
        if db_path.parent.exists():
            return db_path.parent / f"{db_path.name}.lock"

        logger.debug(f"Store directory {db_path.parent} missing, using tempdir for lock file")
        return Path(tempfile.gettempdir()) / "docdrift.lock"

    @contextmanager
    def acquire(self) -> Generator[bool]:
        """Attempt to acquire the lock.

        Yields:
            True if lock acquired, False if timed out.
        """
        start_time = time.time()
        self._lock_file_fd = open(self.lock_file_path, "w")

        acquired = False
        try:
            while True:
                try:
                    fcntl.flock(self._lock_file_fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
                    acquired = True
                    break
                except OSError:
                    if time.time() - start_time >= self.timeout:
                        break
                    time.sleep(0.1)

            yield acquired

        finally:
            if acquired:
                try:
                    fcntl.flock(self._lock_file_fd, fcntl.LOCK_UN)
                except OSError as e:
                    logger.debug(f"Failed to unlock file (may already be released): {e}")

            try:
                self._lock_file_fd.close()
            except OSError as e:
                logger.debug(f"Failed to close lock file (may already be closed): {e}")
