"""SQLite tracking store: file hashes, commit markers, documented symbols, usage and analysis audit."""

import logging
import sqlite3
import threading
from collections.abc import Generator, Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta
from pathlib import Path

from docdrift.core.errors import ReadError, StoreError
from docdrift.core.hashing import hash_file
from docdrift.core.migrations import MigrationRunner
from docdrift.core.models import (
    ChangeAnalysisAudit,
    Classification,
    CommitMarker,
    CostStats,
    DocumentedSymbol,
    FileHashEntry,
    ModelCostBreakdown,
    NeedsDocumentationResult,
    Recommendation,
    SignificanceResult,
    TrackingStats,
    UsageLedgerEntry,
)
from docdrift.core.settings import settings

logger = logging.getLogger(__name__)

DEFAULT_REPOSITORY = "default"


class TrackingStore:
    """Durable state that makes repeated watcher passes idempotent.

    Paths are stored relative to ``project_root`` whenever they live inside it.
    Writes for the same path are serialized; different paths may be written
    concurrently. Every SQLite failure surfaces as ``StoreError``.
    """

    def __init__(self, db_path: Path | None = None, project_root: Path | None = None):
        if db_path is None:
            db_path = settings.resolved_database_path
        else:
            db_path = Path(db_path)

        self.db_path = db_path.resolve()
        self.project_root = (project_root or Path.cwd()).resolve()
        self._path_locks: dict[str, threading.Lock] = {}
        self._path_locks_guard = threading.Lock()

        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreError(f"Cannot create store directory {self.db_path.parent}: {e}") from e

        self._create_tables()
        self._run_migrations()

    @contextmanager
    def _get_db_connection(self) -> Generator[sqlite3.Connection]:
        """Context manager that commits on success, rolls back on error and always closes."""
        try:
            conn = sqlite3.connect(self.db_path, timeout=30)
        except sqlite3.Error as e:
            raise StoreError(f"Cannot open tracking store {self.db_path}: {e}") from e

        try:
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL")
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StoreError(f"Tracking store operation failed: {e}") from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @contextmanager
    def _path_lock(self, key: str) -> Iterator[None]:
        with self._path_locks_guard:
            lock = self._path_locks.setdefault(key, threading.Lock())
        with lock:
            yield

    def _run_migrations(self) -> None:
        try:
            applied_migrations = MigrationRunner(self.db_path).run_migrations()
        except sqlite3.Error as e:
            raise StoreError(f"Tracking store migration failed: {e}") from e

        if applied_migrations:
            logger.debug(f"docdrift applied migrations: {applied_migrations}")

    def _create_tables(self) -> None:
        with self._get_db_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS file_hashes (
                    path TEXT PRIMARY KEY,
                    last_hash TEXT NOT NULL,
                    doc_path TEXT,
                    updated_at TEXT NOT NULL
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS commit_markers (
                    repository TEXT PRIMARY KEY,
                    commit_hash TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS documented_symbols (
                    file_path TEXT NOT NULL,
                    symbol_name TEXT NOT NULL,
                    first_documented_at TEXT NOT NULL,
                    last_seen_hash TEXT NOT NULL,
                    PRIMARY KEY (file_path, symbol_name)
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS usage_ledger (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    model TEXT NOT NULL,
                    input_tokens INTEGER NOT NULL,
                    output_tokens INTEGER NOT NULL,
                    cost REAL NOT NULL,
                    file_path TEXT,
                    timestamp TEXT NOT NULL
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS change_analysis_audit (
                    file_path TEXT NOT NULL,
                    old_hash TEXT NOT NULL,
                    new_hash TEXT NOT NULL,
                    score INTEGER NOT NULL,
                    should_regenerate INTEGER NOT NULL,
                    confidence REAL NOT NULL,
                    classification TEXT NOT NULL,
                    recommendation TEXT NOT NULL,
                    timestamp TEXT NOT NULL,
                    PRIMARY KEY (file_path, old_hash, new_hash)
                )
            """)

    def _key(self, path: str | Path) -> str:
        """Store key for a path: relative to the project root when inside it."""
        candidate = Path(path)
        if candidate.is_absolute():
            try:
                return candidate.resolve().relative_to(self.project_root).as_posix()
            except ValueError:
                return candidate.as_posix()
        return candidate.as_posix()

    def _full_path(self, key: str) -> Path:
        candidate = Path(key)
        return candidate if candidate.is_absolute() else self.project_root / candidate

    # File hash ledger

    def needs_documentation(self, path: str | Path) -> NeedsDocumentationResult:
        """Compare a file's current hash with the last documented one.

        Unreadable files are reported through ``error`` rather than raised.
        """
        key = self._key(path)
        try:
            current_hash = hash_file(self._full_path(key))
        except ReadError as e:
            return NeedsDocumentationResult(path=key, needs_update=False, is_new=False, error=e.reason)

        with self._path_lock(key):
            entry = self.get_file_entry(key)

        if entry is None:
            return NeedsDocumentationResult(path=key, needs_update=True, is_new=True, current_hash=current_hash)

        return NeedsDocumentationResult(
            path=key,
            needs_update=entry.last_hash != current_hash,
            is_new=False,
            current_hash=current_hash,
            last_hash=entry.last_hash,
        )

    def record_documentation(self, path: str | Path, file_hash: str, doc_path: str | Path | None) -> None:
        """Upsert the hash ledger entry for a path in a single statement."""
        key = self._key(path)
        with self._path_lock(key), self._get_db_connection() as conn:
            conn.execute(
                """
                INSERT INTO file_hashes (path, last_hash, doc_path, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(path) DO UPDATE SET
                    last_hash = excluded.last_hash,
                    doc_path = excluded.doc_path,
                    updated_at = excluded.updated_at
                """,
                (key, file_hash, str(doc_path) if doc_path is not None else None, datetime.now().isoformat()),
            )
        logger.debug(f"Recorded documentation for {key} at {file_hash[:12]}")

    def get_file_entry(self, path: str | Path) -> FileHashEntry | None:
        key = self._key(path)
        with self._get_db_connection() as conn:
            row = conn.execute(
                "SELECT path, last_hash, doc_path, updated_at FROM file_hashes WHERE path = ?", (key,)
            ).fetchone()

        if row is None:
            return None
        return self._row_to_file_entry(row)

    def list_file_entries(self) -> list[FileHashEntry]:
        with self._get_db_connection() as conn:
            rows = conn.execute(
                "SELECT path, last_hash, doc_path, updated_at FROM file_hashes ORDER BY path"
            ).fetchall()
        return [self._row_to_file_entry(row) for row in rows]

    @staticmethod
    def _row_to_file_entry(row: sqlite3.Row) -> FileHashEntry:
        return FileHashEntry(
            path=row["path"],
            last_hash=row["last_hash"],
            doc_path=row["doc_path"],
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def cleanup(self) -> int:
        """Delete hash ledger entries whose file no longer exists.

        Commit markers, the usage ledger and the audit cache are never touched.

        Returns:
            Number of entries removed
        """
        removed = 0
        for entry in self.list_file_entries():
            if self._full_path(entry.path).exists():
                continue
            with self._path_lock(entry.path), self._get_db_connection() as conn:
                cursor = conn.execute("DELETE FROM file_hashes WHERE path = ?", (entry.path,))
                removed += cursor.rowcount
            logger.info(f"Removed tracking entry for deleted file {entry.path}")
        return removed

    # Commit marker

    def get_last_processed_commit(self, repository: str = DEFAULT_REPOSITORY) -> str | None:
        marker = self.get_commit_marker(repository)
        return marker.commit_hash if marker else None

    def get_commit_marker(self, repository: str = DEFAULT_REPOSITORY) -> CommitMarker | None:
        with self._get_db_connection() as conn:
            row = conn.execute(
                "SELECT repository, commit_hash, updated_at FROM commit_markers WHERE repository = ?",
                (repository,),
            ).fetchone()

        if row is None:
            return None
        return CommitMarker(
            repository=row["repository"],
            commit_hash=row["commit_hash"],
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def set_last_processed_commit(self, commit_hash: str, repository: str = DEFAULT_REPOSITORY) -> None:
        with self._get_db_connection() as conn:
            conn.execute(
                """
                INSERT INTO commit_markers (repository, commit_hash, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(repository) DO UPDATE SET
                    commit_hash = excluded.commit_hash,
                    updated_at = excluded.updated_at
                """,
                (repository, commit_hash, datetime.now().isoformat()),
            )
        logger.debug(f"Commit marker for {repository} set to {commit_hash}")

    # Documented symbol registry

    def record_documented_symbols(self, path: str | Path, symbols: Iterable[str], file_hash: str) -> None:
        """Replace the registry for a path, keeping first-documented times of surviving symbols."""
        key = self._key(path)
        names = list(dict.fromkeys(symbols))
        now = datetime.now().isoformat()

        with self._path_lock(key), self._get_db_connection() as conn:
            if names:
                placeholders = ", ".join("?" for _ in names)
                conn.execute(
                    f"DELETE FROM documented_symbols WHERE file_path = ? AND symbol_name NOT IN ({placeholders})",
                    (key, *names),
                )
            else:
                conn.execute("DELETE FROM documented_symbols WHERE file_path = ?", (key,))

            conn.executemany(
                """
                INSERT INTO documented_symbols (file_path, symbol_name, first_documented_at, last_seen_hash, symbol_kind)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(file_path, symbol_name) DO UPDATE SET last_seen_hash = excluded.last_seen_hash
                """,
                [(key, name, now, file_hash, "member" if "::" in name else "declaration") for name in names],
            )

    def get_documented_symbols(self, path: str | Path) -> list[DocumentedSymbol]:
        key = self._key(path)
        with self._get_db_connection() as conn:
            rows = conn.execute(
                """
                SELECT file_path, symbol_name, first_documented_at, last_seen_hash
                FROM documented_symbols
                WHERE file_path = ?
                ORDER BY symbol_name
                """,
                (key,),
            ).fetchall()

        return [
            DocumentedSymbol(
                file_path=row["file_path"],
                symbol_name=row["symbol_name"],
                first_documented_at=datetime.fromisoformat(row["first_documented_at"]),
                last_seen_hash=row["last_seen_hash"],
            )
            for row in rows
        ]

    # Usage ledger

    def record_token_usage(
        self, model: str, input_tokens: int, output_tokens: int, cost: float, path: str | Path | None = None
    ) -> None:
        """Append one usage entry. Ledger rows are never updated or deleted."""
        with self._get_db_connection() as conn:
            conn.execute(
                """
                INSERT INTO usage_ledger (model, input_tokens, output_tokens, cost, file_path, timestamp)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    model,
                    input_tokens,
                    output_tokens,
                    cost,
                    self._key(path) if path is not None else None,
                    datetime.now().isoformat(),
                ),
            )

    def get_usage_entries(self, limit: int | None = None) -> list[UsageLedgerEntry]:
        query = """
            SELECT model, input_tokens, output_tokens, cost, file_path, timestamp
            FROM usage_ledger
            ORDER BY id DESC
        """
        params: tuple = ()
        if limit is not None:
            query += " LIMIT ?"
            params = (limit,)

        with self._get_db_connection() as conn:
            rows = conn.execute(query, params).fetchall()

        return [
            UsageLedgerEntry(
                model=row["model"],
                input_tokens=row["input_tokens"],
                output_tokens=row["output_tokens"],
                cost=row["cost"],
                file_path=row["file_path"],
                timestamp=datetime.fromisoformat(row["timestamp"]),
            )
            for row in rows
        ]

    # Change analysis audit cache

    def get_cached_analysis(self, path: str | Path, old_hash: str, new_hash: str) -> ChangeAnalysisAudit | None:
        key = self._key(path)
        with self._get_db_connection() as conn:
            row = conn.execute(
                """
                SELECT file_path, old_hash, new_hash, score, classification, recommendation, timestamp
                FROM change_analysis_audit
                WHERE file_path = ? AND old_hash = ? AND new_hash = ?
                """,
                (key, old_hash, new_hash),
            ).fetchone()

        if row is None:
            return None
        return ChangeAnalysisAudit(
            file_path=row["file_path"],
            old_hash=row["old_hash"],
            new_hash=row["new_hash"],
            score=row["score"],
            classification=Classification.model_validate_json(row["classification"]),
            recommendation=Recommendation.model_validate_json(row["recommendation"]),
            timestamp=datetime.fromisoformat(row["timestamp"]),
        )

    def save_analysis(self, path: str | Path, old_hash: str, new_hash: str, result: SignificanceResult) -> None:
        key = self._key(path)
        with self._path_lock(key), self._get_db_connection() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO change_analysis_audit
                (file_path, old_hash, new_hash, score, should_regenerate, confidence,
                 classification, recommendation, timestamp)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    key,
                    old_hash,
                    new_hash,
                    result.score,
                    int(result.recommendation.should_regenerate),
                    result.recommendation.confidence,
                    result.classification.model_dump_json(),
                    result.recommendation.model_dump_json(),
                    datetime.now().isoformat(),
                ),
            )

    # Aggregates

    def get_stats(self, repository: str = DEFAULT_REPOSITORY) -> TrackingStats:
        """Ledger and analysis aggregates, computed fresh on every call."""
        cutoff = (datetime.now() - timedelta(days=7)).isoformat()
        with self._get_db_connection() as conn:
            files_row = conn.execute(
                """
                SELECT COUNT(*) AS total_files,
                       COUNT(CASE WHEN updated_at > ? THEN 1 END) AS recent_updates
                FROM file_hashes
                """,
                (cutoff,),
            ).fetchone()
            symbols_count = conn.execute("SELECT COUNT(*) FROM documented_symbols").fetchone()[0]
            analysis_row = conn.execute("""
                SELECT COUNT(*) AS total_analyses,
                       COUNT(CASE WHEN should_regenerate = 1 THEN 1 END) AS recommended,
                       COUNT(CASE WHEN should_regenerate = 0 THEN 1 END) AS skipped,
                       AVG(confidence) AS avg_confidence,
                       AVG(score) AS avg_score
                FROM change_analysis_audit
            """).fetchone()
            marker_row = conn.execute(
                "SELECT commit_hash FROM commit_markers WHERE repository = ?", (repository,)
            ).fetchone()

        return TrackingStats(
            total_files=files_row["total_files"],
            recent_updates=files_row["recent_updates"],
            last_commit=marker_row["commit_hash"] if marker_row else None,
            documented_symbols=symbols_count,
            total_analyses=analysis_row["total_analyses"],
            recommended_regenerations=analysis_row["recommended"],
            skipped_regenerations=analysis_row["skipped"],
            avg_confidence=round(analysis_row["avg_confidence"] or 0.0, 3),
            avg_score=round(analysis_row["avg_score"] or 0.0, 1),
        )

    def get_cost_stats(self) -> CostStats:
        with self._get_db_connection() as conn:
            totals = conn.execute("""
                SELECT COUNT(*) AS calls,
                       COALESCE(SUM(input_tokens), 0) AS input_tokens,
                       COALESCE(SUM(output_tokens), 0) AS output_tokens,
                       COALESCE(SUM(cost), 0.0) AS cost
                FROM usage_ledger
            """).fetchone()
            model_rows = conn.execute("""
                SELECT model,
                       COUNT(*) AS calls,
                       SUM(input_tokens) AS input_tokens,
                       SUM(output_tokens) AS output_tokens,
                       SUM(cost) AS cost
                FROM usage_ledger
                GROUP BY model
                ORDER BY cost DESC, model
            """).fetchall()

        return CostStats(
            total_calls=totals["calls"],
            total_input_tokens=totals["input_tokens"],
            total_output_tokens=totals["output_tokens"],
            total_cost=round(totals["cost"], 6),
            by_model=[
                ModelCostBreakdown(
                    model=row["model"],
                    calls=row["calls"],
                    input_tokens=row["input_tokens"],
                    output_tokens=row["output_tokens"],
                    cost=round(row["cost"], 6),
                )
                for row in model_rows
            ],
        )
