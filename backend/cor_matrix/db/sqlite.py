"""SQLite connection handling for the signature store."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Sequence

MEMORY_PATH = ":memory:"
SCHEMA_PATH = Path(__file__).with_name("schema.sql")

# foreign_keys must be on for workspace deletes to cascade.
CONNECTION_PRAGMAS = (
    "PRAGMA journal_mode=WAL;",
    "PRAGMA synchronous=NORMAL;",
    "PRAGMA foreign_keys=ON;",
    "PRAGMA temp_store=MEMORY;",
)


class SQLiteDatabase:
    """Lazily opened connection shared by the services of one app instance.

    Reads go through :meth:`query`/:meth:`query_one`; every write goes through
    :meth:`transaction` so multi-table inserts commit or roll back together.
    """

    def __init__(self, db_path: Path | str) -> None:
        self.db_path = db_path if db_path == MEMORY_PATH else Path(db_path).expanduser()
        self._connection: sqlite3.Connection | None = None

    @property
    def is_memory(self) -> bool:
        return self.db_path == MEMORY_PATH

    def connect(self) -> sqlite3.Connection:
        if self._connection is None:
            self._connection = self._open()
        return self._connection

    def _open(self) -> sqlite3.Connection:
        if not self.is_memory:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        # Handlers may run on worker threads; the app never writes concurrently.
        conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        conn.row_factory = sqlite3.Row
        for pragma in CONNECTION_PRAGMAS:
            conn.execute(pragma)
        return conn

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> sqlite3.Cursor:
        return self.connect().execute(sql, params or [])

    def query(self, sql: str, params: Sequence[Any] | None = None) -> list[sqlite3.Row]:
        return self.execute(sql, params).fetchall()

    def query_one(self, sql: str, params: Sequence[Any] | None = None) -> sqlite3.Row | None:
        return self.execute(sql, params).fetchone()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Cursor]:
        conn = self.connect()
        cursor = conn.cursor()
        try:
            yield cursor
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()

    def ensure_schema(self, schema_sql: str | None = None) -> None:
        """Create tables and indexes that do not exist yet."""
        script = schema_sql if schema_sql is not None else SCHEMA_PATH.read_text(encoding="utf-8")
        self.connect().executescript(script)


def chunked(items: Sequence[Any], size: int) -> Iterator[Sequence[Any]]:
    """Yield consecutive slices of ``items`` holding at most ``size`` elements."""
    for start in range(0, len(items), size):
        yield items[start : start + size]


__all__ = ["MEMORY_PATH", "SQLiteDatabase", "chunked"]
