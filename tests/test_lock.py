"""Tests for WatcherLock."""

import tempfile
import time
from pathlib import Path

from docdrift.core.lock import WatcherLock


class TestWatcherLock:
    def test_acquire_release__acquires_and_releases_lock(self, tmp_path):
        lock = WatcherLock(tmp_path / "docdrift.db", timeout=1.0)

        with lock.acquire() as acquired:
            assert acquired
            assert lock.lock_file_path.exists()

    def test_acquire__times_out_when_locked_by_another(self, tmp_path):
        """Second acquisition against the same store fails after the timeout."""
        lock1 = WatcherLock(tmp_path / "docdrift.db", timeout=0.1)
        lock2 = WatcherLock(tmp_path / "docdrift.db", timeout=0.1)

        with lock1.acquire() as acquired1:
            assert acquired1

            start = time.time()
            with lock2.acquire() as acquired2:
                assert not acquired2
            duration = time.time() - start
            assert duration >= 0.1

    def test_acquire__releases_lock_after_exception(self, tmp_path):
        lock = WatcherLock(tmp_path / "docdrift.db", timeout=1.0)

        try:
            with lock.acquire() as acquired:
                assert acquired
                raise ValueError("Test exception")
        except ValueError:
            pass

        with WatcherLock(tmp_path / "docdrift.db", timeout=0.1).acquire() as acquired2:
            assert acquired2

    def test_get_lock_file_path__uses_db_parent_when_exists(self, tmp_path):
        lock = WatcherLock(tmp_path / "docdrift.db")

        assert lock.lock_file_path == tmp_path / "docdrift.db.lock"

    def test_get_lock_file_path__falls_back_to_tempdir(self, tmp_path):
        lock = WatcherLock(tmp_path / "missing" / "docdrift.db")

        assert lock.lock_file_path == Path(tempfile.gettempdir()) / "docdrift.lock"

    def test_timeout__defaults_to_settings(self, tmp_path):
        from docdrift.core.settings import settings

        assert WatcherLock(tmp_path / "docdrift.db").timeout == settings.lock_timeout
