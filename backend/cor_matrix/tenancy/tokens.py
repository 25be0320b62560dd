"""Workspace-scoped access tokens."""

from __future__ import annotations

import logging
from typing import Any

from cor_matrix.core.errors import CorError, ErrorKind, wrap_failure
from cor_matrix.core.logging import get_logger
from cor_matrix.db.sqlite import SQLiteDatabase
from cor_matrix.models.entities import AccessToken
from cor_matrix.utils.ids import TOKEN_PREFIX, new_id, new_token_value
from cor_matrix.utils.time import is_past, now_ms

_COLUMNS = "id, workspace_id, token, description, created_at, last_used_at, expires_at, is_revoked"

_UNSET: Any = object()


class TokenService:
    def __init__(self, db: SQLiteDatabase, logger: logging.Logger | None = None) -> None:
        self.db = db
        self.logger = logger or get_logger(__name__)

    def create(
        self,
        workspace_id: str,
        description: str | None = None,
        expires_at: int | None = None,
    ) -> AccessToken:
        workspace = self.db.query_one("SELECT id FROM workspaces WHERE id = ?", [workspace_id])
        if workspace is None:
            raise CorError(ErrorKind.WORKSPACE_NOT_FOUND, f"Workspace with id {workspace_id} not found")
        token = AccessToken(
            id=new_id(TOKEN_PREFIX),
            workspace_id=workspace_id,
            token=new_token_value(),
            description=description or None,
            created_at=now_ms(),
            last_used_at=None,
            expires_at=expires_at if expires_at and expires_at > 0 else None,
            is_revoked=False,
        )
        try:
            with self.db.transaction() as cursor:
                cursor.execute(
                    f"INSERT INTO workspace_tokens ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                    [
                        token.id,
                        token.workspace_id,
                        token.token,
                        token.description,
                        token.created_at,
                        None,
                        token.expires_at,
                        0,
                    ],
                )
        except CorError:
            raise
        except Exception as exc:
            self.logger.error("Failed to create token for workspace %s: %s", workspace_id, exc)
            raise wrap_failure(exc, "Failed to create token") from exc
        self.logger.info("Created token %s for workspace %s", token.id, workspace_id)
        return token

    def list(
        self,
        workspace_id: str | None = None,
        include_revoked: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> list[AccessToken]:
        conditions: list[str] = []
        params: list[Any] = []
        if workspace_id:
            conditions.append("workspace_id = ?")
            params.append(workspace_id)
        if not include_revoked:
            conditions.append("is_revoked = 0")
        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        rows = self.db.query(
            f"SELECT {_COLUMNS} FROM workspace_tokens {where} ORDER BY created_at DESC, rowid DESC LIMIT ? OFFSET ?",
            [*params, limit, offset],
        )
        return [AccessToken.from_row(row) for row in rows]

    def get(self, token_id: str) -> AccessToken:
        row = self.db.query_one(f"SELECT {_COLUMNS} FROM workspace_tokens WHERE id = ?", [token_id])
        if row is None:
            raise CorError(ErrorKind.TOKEN_NOT_FOUND, f"Token with id {token_id} not found")
        return AccessToken.from_row(row)

    def update(self, token_id: str, description: Any = _UNSET, expires_at: Any = _UNSET) -> AccessToken:
        self.get(token_id)
        updates: list[str] = []
        params: list[Any] = []
        if description is not _UNSET:
            updates.append("description = ?")
            params.append(description)
        if expires_at is not _UNSET:
            updates.append("expires_at = ?")
            params.append(expires_at)
        if not updates:
            raise CorError(ErrorKind.VALIDATION_ERROR, "No valid fields provided for update")
        self._execute(f"UPDATE workspace_tokens SET {', '.join(updates)} WHERE id = ?", [*params, token_id])
        return self.get(token_id)

    def delete(self, token_id: str) -> AccessToken:
        token = self.get(token_id)
        self._execute("DELETE FROM workspace_tokens WHERE id = ?", [token_id])
        return token

    def revoke(self, token_id: str) -> AccessToken:
        token = self.get(token_id)
        if token.is_revoked:
            raise CorError(ErrorKind.VALIDATION_ERROR, "Token is already revoked")
        self._execute("UPDATE workspace_tokens SET is_revoked = 1 WHERE id = ?", [token_id])
        return self.get(token_id)

    def unrevoke(self, token_id: str) -> AccessToken:
        token = self.get(token_id)
        if not token.is_revoked:
            raise CorError(ErrorKind.VALIDATION_ERROR, "Token is not revoked")
        self._execute("UPDATE workspace_tokens SET is_revoked = 0 WHERE id = ?", [token_id])
        return self.get(token_id)

    def authenticate(self, value: str, workspace_id: str | None = None) -> AccessToken:
        """Resolve a bearer value to a usable token.

        Raises ``TOKEN_NOT_FOUND``, ``TOKEN_REVOKED`` or ``TOKEN_EXPIRED``; a
        token presented for another workspace is reported as not found so that
        callers learn nothing about foreign workspaces.
        """
        row = self.db.query_one(f"SELECT {_COLUMNS} FROM workspace_tokens WHERE token = ?", [value])
        if row is None:
            raise CorError(ErrorKind.TOKEN_NOT_FOUND, "Authentication failed, please check your token")
        token = AccessToken.from_row(row)
        if token.is_revoked:
            raise CorError(ErrorKind.TOKEN_REVOKED, "Token has been revoked")
        if is_past(token.expires_at):
            raise CorError(ErrorKind.TOKEN_EXPIRED, "Token has expired")
        if workspace_id is not None and token.workspace_id != workspace_id:
            self.logger.warning(
                "Token workspace mismatch: token for %s used on %s",
                token.workspace_id,
                workspace_id,
            )
            raise CorError(ErrorKind.TOKEN_NOT_FOUND, "Token does not have access to this workspace")
        used_at = now_ms()
        self._execute("UPDATE workspace_tokens SET last_used_at = ? WHERE id = ?", [used_at, token.id])
        token.last_used_at = used_at
        return token

    def _execute(self, sql: str, params: list[Any]) -> None:
        try:
            with self.db.transaction() as cursor:
                cursor.execute(sql, params)
        except CorError:
            raise
        except Exception as exc:
            self.logger.error("Token statement failed: %s", exc)
            raise wrap_failure(exc, "Token operation failed") from exc


__all__ = ["TokenService"]
