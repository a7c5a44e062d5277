"""Key-value stores backing the import provenance tracker.

The tracker never touches storage directly; it is handed a ProvenanceStore
so tests can use MemoryStore and the CLI can use SqliteStore.
"""

from __future__ import annotations

import sqlite3
from abc import ABC, abstractmethod
from pathlib import Path

MIGRATIONS_DIR = Path(__file__).parent / "migrations"


class ProvenanceStore(ABC):
    """Synchronous get/set/delete over string keys and values."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or None if the key is absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Insert or overwrite a value."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a key; deleting a missing key is a no-op."""


class MemoryStore(ProvenanceStore):
    """Dict-backed store for tests and one-shot runs."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class SqliteStore(ProvenanceStore):
    """SQLite-backed store using a single key/value table.

    The schema is created by the SQL files in ``migrations/``; call
    apply_migrations() once after construction.
    """

    def __init__(self, db_path: str = ":memory:"):
        self.db_path = db_path
        self._conn: sqlite3.Connection | None = None

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode = WAL")
        return self._conn

    def close(self):
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def apply_migrations(self, migrations_dir: Path = MIGRATIONS_DIR):
        """Apply all pending SQL migrations in order.

        Each migration runs in a transaction: if the SQL fails, the
        schema_version row is not inserted, allowing retry on next startup.
        """
        self.conn.execute(
            "CREATE TABLE IF NOT EXISTS schema_version ("
            "  version INTEGER PRIMARY KEY,"
            "  description TEXT,"
            "  applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP"
            ")"
        )
        self.conn.commit()

        row = self.conn.execute(
            "SELECT MAX(version) FROM schema_version"
        ).fetchone()
        current = row[0] or 0

        for sql_file in sorted(migrations_dir.glob("*.sql")):
            version = int(sql_file.name.split("_")[0])
            if version <= current:
                continue
            try:
                self.conn.execute("BEGIN")
                for statement in sql_file.read_text().split(";"):
                    statement = statement.strip()
                    if statement:
                        self.conn.execute(statement)
                self.conn.execute(
                    "INSERT INTO schema_version (version, description) VALUES (?, ?)",
                    (version, sql_file.stem),
                )
                self.conn.commit()
            except Exception:
                self.conn.rollback()
                raise

    def get(self, key: str) -> str | None:
        row = self.conn.execute(
            "SELECT value FROM provenance WHERE key = ?", (key,)
        ).fetchone()
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        self.conn.execute(
            "INSERT INTO provenance (key, value) VALUES (?, ?)"
            " ON CONFLICT(key) DO UPDATE SET value = excluded.value,"
            " updated_at = CURRENT_TIMESTAMP",
            (key, value),
        )
        self.conn.commit()

    def delete(self, key: str) -> None:
        self.conn.execute("DELETE FROM provenance WHERE key = ?", (key,))
        self.conn.commit()
