"""Workspace administration."""

from __future__ import annotations

import logging
import sqlite3
from typing import Any

from cor_matrix.core.errors import CorError, ErrorKind, wrap_failure
from cor_matrix.core.logging import get_logger
from cor_matrix.db.sqlite import SQLiteDatabase
from cor_matrix.db.store import SignatureStore
from cor_matrix.models.entities import Workspace
from cor_matrix.utils.ids import WORKSPACE_PREFIX, new_id
from cor_matrix.utils.time import now_ms

_COLUMNS = "id, name, created_at, updated_at, is_archived"


class WorkspaceService:
    def __init__(self, db: SQLiteDatabase, logger: logging.Logger | None = None) -> None:
        self.db = db
        self.store = SignatureStore(db)
        self.logger = logger or get_logger(__name__)

    def create(self, name: str) -> Workspace:
        name = _clean_name(name)
        try:
            self._ensure_name_free(name)
            workspace = Workspace(
                id=new_id(WORKSPACE_PREFIX),
                name=name,
                created_at=now_ms(),
                updated_at=None,
                is_archived=False,
            )
            with self.db.transaction() as cursor:
                cursor.execute(
                    f"INSERT INTO workspaces ({_COLUMNS}) VALUES (?, ?, ?, ?, ?)",
                    [workspace.id, workspace.name, workspace.created_at, None, 0],
                )
        except CorError:
            raise
        except sqlite3.IntegrityError as exc:
            raise _name_taken(name) from exc
        except Exception as exc:
            self.logger.error("Failed to create workspace %s: %s", name, exc)
            raise wrap_failure(exc, "Failed to create workspace") from exc
        self.logger.info("Created workspace %s", workspace.id, extra={"ctx_workspace_id": workspace.id})
        return workspace

    def get(self, workspace_id: str) -> Workspace:
        row = self.db.query_one(f"SELECT {_COLUMNS} FROM workspaces WHERE id = ?", [workspace_id])
        if row is None:
            raise CorError(ErrorKind.WORKSPACE_NOT_FOUND, f"Workspace with id {workspace_id} not found")
        return Workspace.from_row(row)

    def list(self, include_archived: bool = False, limit: int = 50, offset: int = 0) -> list[Workspace]:
        where = "" if include_archived else "WHERE is_archived = 0"
        rows = self.db.query(
            f"SELECT {_COLUMNS} FROM workspaces {where} ORDER BY created_at DESC, rowid DESC LIMIT ? OFFSET ?",
            [limit, offset],
        )
        return [Workspace.from_row(row) for row in rows]

    def update(self, workspace_id: str, name: str | None = None, is_archived: bool | None = None) -> Workspace:
        self.get(workspace_id)
        updates: list[str] = []
        params: list[Any] = []
        if name is not None:
            name = _clean_name(name)
            self._ensure_name_free(name, exclude_id=workspace_id)
            updates.append("name = ?")
            params.append(name)
        if is_archived is not None:
            updates.append("is_archived = ?")
            params.append(int(is_archived))
        updates.append("updated_at = ?")
        params.append(now_ms())
        params.append(workspace_id)
        try:
            with self.db.transaction() as cursor:
                cursor.execute(f"UPDATE workspaces SET {', '.join(updates)} WHERE id = ?", params)
        except sqlite3.IntegrityError as exc:
            raise _name_taken(name) from exc
        except Exception as exc:
            self.logger.error("Failed to update workspace %s: %s", workspace_id, exc)
            raise wrap_failure(exc, "Failed to update workspace") from exc
        return self.get(workspace_id)

    def archive(self, workspace_id: str) -> Workspace:
        return self.update(workspace_id, is_archived=True)

    def unarchive(self, workspace_id: str) -> Workspace:
        return self.update(workspace_id, is_archived=False)

    def delete(self, workspace_id: str) -> Workspace:
        """Delete a workspace together with its tokens, records and signatures."""
        workspace = self.get(workspace_id)
        try:
            self.store.delete_workspace(workspace_id)
        except CorError:
            raise
        except Exception as exc:
            self.logger.error("Failed to delete workspace %s: %s", workspace_id, exc)
            raise wrap_failure(exc, "Failed to delete workspace") from exc
        self.logger.info("Deleted workspace %s and related data", workspace_id)
        return workspace

    def _ensure_name_free(self, name: str, exclude_id: str | None = None) -> None:
        row = self.db.query_one(
            "SELECT id FROM workspaces WHERE name = ? AND id != ?",
            [name, exclude_id or ""],
        )
        if row is not None:
            raise _name_taken(name)


def _name_taken(name: str) -> CorError:
    return CorError(ErrorKind.WORKSPACE_ALREADY_EXISTS, f"Workspace with name {name} already exists")


def _clean_name(name: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise CorError(ErrorKind.VALIDATION_ERROR, "Workspace name must not be empty")
    return cleaned


__all__ = ["WorkspaceService"]
