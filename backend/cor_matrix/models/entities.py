"""Internal dataclasses representing persisted entities."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass


@dataclass(slots=True)
class Workspace:
    id: str
    name: str
    created_at: int
    updated_at: int | None
    is_archived: bool

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Workspace":
        return cls(
            id=row["id"],
            name=row["name"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            is_archived=bool(row["is_archived"]),
        )


@dataclass(slots=True)
class AccessToken:
    id: str
    workspace_id: str
    token: str
    description: str | None
    created_at: int
    last_used_at: int | None
    expires_at: int | None
    is_revoked: bool

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "AccessToken":
        return cls(
            id=row["id"],
            workspace_id=row["workspace_id"],
            token=row["token"],
            description=row["description"],
            created_at=row["created_at"],
            last_used_at=row["last_used_at"],
            expires_at=row["expires_at"],
            is_revoked=bool(row["is_revoked"]),
        )


@dataclass(slots=True)
class OriginRecord:
    id: str
    workspace_id: str
    path: str
    language: str
    timestamp: int
    generated_by: str
    created_at: int

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "OriginRecord":
        return cls(
            id=row["id"],
            workspace_id=row["workspace_id"],
            path=row["path"],
            language=row["language"],
            timestamp=row["timestamp"],
            generated_by=row["generated_by"],
            created_at=row["created_at"],
        )


@dataclass(slots=True)
class LineSignature:
    id: str
    origin_record_id: str
    order: int
    signature: str
    created_at: int

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "LineSignature":
        return cls(
            id=row["id"],
            origin_record_id=row["origin_record_id"],
            order=row["line_order"],
            signature=row["signature"],
            created_at=row["created_at"],
        )


@dataclass(slots=True)
class StoredSignature:
    """A line signature annotated with the path of its origin record."""

    id: str
    origin_record_id: str
    order: int
    signature: str
    created_at: int
    path: str | None
