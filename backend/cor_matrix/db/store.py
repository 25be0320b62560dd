"""Persistence operations for origin records and their line signatures."""

from __future__ import annotations

import sqlite3
from typing import Iterable, Sequence

from cor_matrix.db.sqlite import SQLiteDatabase, chunked
from cor_matrix.models.entities import LineSignature, OriginRecord

# Stays below SQLite's default bound-parameter limit on older builds.
_MAX_IN_PARAMS = 500


class SignatureStore:
    """Row-level access to ``origin_records`` and ``line_signatures``."""

    def __init__(self, db: SQLiteDatabase) -> None:
        self.db = db

    def workspace_exists(self, workspace_id: str) -> bool:
        row = self.db.query_one("SELECT 1 FROM workspaces WHERE id = ?", [workspace_id])
        return row is not None

    def insert_records(self, cursor: sqlite3.Cursor, records: Iterable[OriginRecord]) -> None:
        cursor.executemany(
            """
            INSERT INTO origin_records (id, workspace_id, path, language, timestamp, generated_by, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    record.id,
                    record.workspace_id,
                    record.path,
                    record.language,
                    record.timestamp,
                    record.generated_by,
                    record.created_at,
                )
                for record in records
            ],
        )

    def insert_signatures(self, cursor: sqlite3.Cursor, signatures: Iterable[LineSignature]) -> None:
        cursor.executemany(
            """
            INSERT INTO line_signatures (id, origin_record_id, line_order, signature, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            [
                (item.id, item.origin_record_id, item.order, item.signature, item.created_at)
                for item in signatures
            ],
        )

    def records_for_workspace(self, workspace_id: str) -> list[OriginRecord]:
        rows = self.db.query(
            """
            SELECT id, workspace_id, path, language, timestamp, generated_by, created_at
            FROM origin_records WHERE workspace_id = ? ORDER BY created_at, rowid
            """,
            [workspace_id],
        )
        return [OriginRecord.from_row(row) for row in rows]

    def signatures_for_records(self, record_ids: Sequence[str]) -> list[LineSignature]:
        signatures: list[LineSignature] = []
        for batch in chunked(list(record_ids), _MAX_IN_PARAMS):
            placeholders = ",".join("?" for _ in batch)
            rows = self.db.query(
                f"""
                SELECT id, origin_record_id, line_order, signature, created_at
                FROM line_signatures WHERE origin_record_id IN ({placeholders})
                ORDER BY rowid
                """,
                list(batch),
            )
            signatures.extend(LineSignature.from_row(row) for row in rows)
        return signatures

    def delete_workspace(self, workspace_id: str) -> int:
        """Delete a workspace; records, signatures and tokens cascade."""
        with self.db.transaction() as cursor:
            cursor.execute("DELETE FROM workspaces WHERE id = ?", [workspace_id])
            return cursor.rowcount


__all__ = ["SignatureStore"]
