"""Database migrations for the docdrift tracking store."""

import sqlite3
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any


class Migration(ABC):
    """Base class for database migrations."""

    @property
    @abstractmethod
    def version(self) -> str:
        """Version identifier for this migration."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description of this migration."""

    @abstractmethod
    def up(self, conn: sqlite3.Connection) -> None:
        """Apply the migration."""


class Migration001AddUsageLedgerIndexes(Migration):
    """Index the usage ledger for per-model cost reports."""

    @property
    def version(self) -> str:
        return "001"

    @property
    def description(self) -> str:
        return "Add model and timestamp indexes to usage_ledger"

    def up(self, conn: sqlite3.Connection) -> None:
        conn.execute("CREATE INDEX IF NOT EXISTS idx_usage_ledger_model ON usage_ledger(model)")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_usage_ledger_timestamp ON usage_ledger(timestamp)")


class Migration002AddSymbolKind(Migration):
    """Record whether a documented symbol is a type, member or function."""

    @property
    def version(self) -> str:
        return "002"

    @property
    def description(self) -> str:
        return "Add symbol_kind column to documented_symbols"

    def up(self, conn: sqlite3.Connection) -> None:
        try:
            conn.execute("ALTER TABLE documented_symbols ADD COLUMN symbol_kind TEXT")
        except sqlite3.OperationalError as e:
            if "duplicate column name" not in str(e).lower():
                raise

        conn.execute("""
            UPDATE documented_symbols
            SET symbol_kind = CASE WHEN instr(symbol_name, '::') > 0 THEN 'member' ELSE 'declaration' END
            WHERE symbol_kind IS NULL
        """)


class Migration003AddAuditTimestampIndex(Migration):
    """Speed up recent-analysis statistics."""

    @property
    def version(self) -> str:
        return "003"

    @property
    def description(self) -> str:
        return "Add timestamp index to change_analysis_audit and updated_at index to file_hashes"

    def up(self, conn: sqlite3.Connection) -> None:
        conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_change_analysis_audit_timestamp
            ON change_analysis_audit(timestamp)
        """)
        conn.execute("CREATE INDEX IF NOT EXISTS idx_file_hashes_updated_at ON file_hashes(updated_at)")


class MigrationRunner:
    """Manages database migrations."""

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self.migrations: list[Migration] = [
            Migration001AddUsageLedgerIndexes(),
            Migration002AddSymbolKind(),
            Migration003AddAuditTimestampIndex(),
        ]

    def _ensure_migrations_table(self, conn: sqlite3.Connection) -> None:
        """Create migrations table if it doesn't exist."""
        conn.execute("""
            CREATE TABLE IF NOT EXISTS _docdrift_migrations (
                version TEXT PRIMARY KEY,
                description TEXT NOT NULL,
                applied_at TEXT NOT NULL
            )
        """)

    def _is_migration_applied(self, conn: sqlite3.Connection, version: str) -> bool:
        cursor = conn.execute("SELECT 1 FROM _docdrift_migrations WHERE version = ?", (version,))
        return cursor.fetchone() is not None

    def _mark_migration_applied(self, conn: sqlite3.Connection, migration: Migration) -> None:
        conn.execute(
            """
            INSERT INTO _docdrift_migrations (version, description, applied_at)
            VALUES (?, ?, ?)
            """,
            (migration.version, migration.description, datetime.now().isoformat()),
        )

    def run_migrations(self) -> list[str]:
        """Run all pending migrations, each in its own transaction."""
        applied_migrations = []

        conn = sqlite3.connect(self.db_path)
        try:
            self._ensure_migrations_table(conn)
            conn.commit()

            for migration in self.migrations:
                if self._is_migration_applied(conn, migration.version):
                    continue
                try:
                    migration.up(conn)
                    self._mark_migration_applied(conn, migration)
                    conn.commit()
                except sqlite3.Error:
                    conn.rollback()
                    raise
                applied_migrations.append(f"{migration.version}: {migration.description}")
        finally:
            conn.close()

        return applied_migrations

    def get_migration_status(self) -> dict[str, Any]:
        """Get status of all migrations."""
        status: dict[str, Any] = {"applied": [], "pending": [], "total": len(self.migrations)}

        conn = sqlite3.connect(self.db_path)
        try:
            self._ensure_migrations_table(conn)

            for migration in self.migrations:
                migration_info = {"version": migration.version, "description": migration.description}
                row = conn.execute(
                    "SELECT applied_at FROM _docdrift_migrations WHERE version = ?", (migration.version,)
                ).fetchone()
                if row is not None:
                    migration_info["applied_at"] = row[0]
                    status["applied"].append(migration_info)
                else:
                    status["pending"].append(migration_info)
        finally:
            conn.close()

        return status
