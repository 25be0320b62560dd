"""Workspace administration routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from cor_matrix.api.auth import require_api_key
from cor_matrix.api.dependencies import get_workspace_service
from cor_matrix.models.dto import (
    DeleteResponse,
    ErrorResponse,
    WorkspaceCreateRequest,
    WorkspaceResponse,
    WorkspaceUpdateRequest,
)
from cor_matrix.tenancy.workspaces import WorkspaceService

router = APIRouter(
    dependencies=[Depends(require_api_key)],
    responses={401: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)


@router.post(
    "",
    response_model=WorkspaceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a workspace",
)
async def create_workspace(
    request: WorkspaceCreateRequest,
    service: WorkspaceService = Depends(get_workspace_service),
) -> WorkspaceResponse:
    return WorkspaceResponse.from_entity(service.create(request.name))


@router.get("", response_model=list[WorkspaceResponse], summary="List workspaces")
async def list_workspaces(
    include_archived: bool = Query(default=False, alias="includeArchived"),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    service: WorkspaceService = Depends(get_workspace_service),
) -> list[WorkspaceResponse]:
    return [
        WorkspaceResponse.from_entity(workspace)
        for workspace in service.list(include_archived=include_archived, limit=limit, offset=offset)
    ]


@router.get("/{workspace_id}", response_model=WorkspaceResponse, summary="Get a workspace")
async def get_workspace(
    workspace_id: str,
    service: WorkspaceService = Depends(get_workspace_service),
) -> WorkspaceResponse:
    return WorkspaceResponse.from_entity(service.get(workspace_id))


@router.patch("/{workspace_id}", response_model=WorkspaceResponse, summary="Rename a workspace")
async def update_workspace(
    workspace_id: str,
    request: WorkspaceUpdateRequest,
    service: WorkspaceService = Depends(get_workspace_service),
) -> WorkspaceResponse:
    return WorkspaceResponse.from_entity(service.update(workspace_id, name=request.name))


@router.post("/{workspace_id}/archive", response_model=WorkspaceResponse, summary="Archive a workspace")
async def archive_workspace(
    workspace_id: str,
    service: WorkspaceService = Depends(get_workspace_service),
) -> WorkspaceResponse:
    return WorkspaceResponse.from_entity(service.archive(workspace_id))


@router.post("/{workspace_id}/unarchive", response_model=WorkspaceResponse, summary="Unarchive a workspace")
async def unarchive_workspace(
    workspace_id: str,
    service: WorkspaceService = Depends(get_workspace_service),
) -> WorkspaceResponse:
    return WorkspaceResponse.from_entity(service.unarchive(workspace_id))


@router.delete(
    "/{workspace_id}",
    response_model=DeleteResponse,
    summary="Delete a workspace with its tokens and records",
)
async def delete_workspace(
    workspace_id: str,
    service: WorkspaceService = Depends(get_workspace_service),
) -> DeleteResponse:
    workspace = service.delete(workspace_id)
    return DeleteResponse(id=workspace.id)


__all__ = ["router"]
