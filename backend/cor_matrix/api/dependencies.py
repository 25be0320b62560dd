"""Shared FastAPI dependencies.

Collaborators are created by :func:`cor_matrix.app.create_app` and kept on
``app.state``; dependencies only hand them out.
"""

from __future__ import annotations

from fastapi import Request

from cor_matrix.core.config import Settings
from cor_matrix.db.sqlite import SQLiteDatabase
from cor_matrix.db.store import SignatureStore
from cor_matrix.ingest.recorder import OriginRecorder
from cor_matrix.tenancy.tokens import TokenService
from cor_matrix.tenancy.workspaces import WorkspaceService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_database(request: Request) -> SQLiteDatabase:
    return request.app.state.database


def get_workspace_service(request: Request) -> WorkspaceService:
    return WorkspaceService(get_database(request))


def get_token_service(request: Request) -> TokenService:
    return TokenService(get_database(request))


def get_origin_recorder(request: Request) -> OriginRecorder:
    return OriginRecorder(SignatureStore(get_database(request)))


__all__ = [
    "get_app_settings",
    "get_database",
    "get_workspace_service",
    "get_token_service",
    "get_origin_recorder",
]
