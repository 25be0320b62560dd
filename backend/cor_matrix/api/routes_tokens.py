"""Access token administration routes."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query, status

from cor_matrix.api.auth import require_api_key
from cor_matrix.api.dependencies import get_token_service
from cor_matrix.models.dto import (
    DeleteResponse,
    ErrorResponse,
    TokenCreateRequest,
    TokenResponse,
    TokenUpdateRequest,
)
from cor_matrix.tenancy.tokens import TokenService

router = APIRouter(
    dependencies=[Depends(require_api_key)],
    responses={401: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)


@router.post(
    "",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue a token for a workspace",
)
async def create_token(
    request: TokenCreateRequest,
    service: TokenService = Depends(get_token_service),
) -> TokenResponse:
    token = service.create(request.workspace_id, request.description, request.expires_at)
    return TokenResponse.from_entity(token)


@router.get("", response_model=list[TokenResponse], summary="List tokens")
async def list_tokens(
    workspace_id: str | None = Query(default=None, alias="workspaceId"),
    include_revoked: bool = Query(default=False, alias="includeRevoked"),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    service: TokenService = Depends(get_token_service),
) -> list[TokenResponse]:
    tokens = service.list(workspace_id=workspace_id, include_revoked=include_revoked, limit=limit, offset=offset)
    return [TokenResponse.from_entity(token) for token in tokens]


@router.get("/{token_id}", response_model=TokenResponse, summary="Get a token")
async def get_token(token_id: str, service: TokenService = Depends(get_token_service)) -> TokenResponse:
    return TokenResponse.from_entity(service.get(token_id))


@router.patch("/{token_id}", response_model=TokenResponse, summary="Update description or expiry")
async def update_token(
    token_id: str,
    request: TokenUpdateRequest,
    service: TokenService = Depends(get_token_service),
) -> TokenResponse:
    changes: dict[str, Any] = {
        name: getattr(request, name) for name in ("description", "expires_at") if name in request.model_fields_set
    }
    return TokenResponse.from_entity(service.update(token_id, **changes))


@router.delete("/{token_id}", response_model=DeleteResponse, summary="Delete a token")
async def delete_token(token_id: str, service: TokenService = Depends(get_token_service)) -> DeleteResponse:
    token = service.delete(token_id)
    return DeleteResponse(id=token.id)


@router.post("/{token_id}/revoke", response_model=TokenResponse, summary="Revoke a token")
async def revoke_token(token_id: str, service: TokenService = Depends(get_token_service)) -> TokenResponse:
    return TokenResponse.from_entity(service.revoke(token_id))


@router.post("/{token_id}/unrevoke", response_model=TokenResponse, summary="Restore a revoked token")
async def unrevoke_token(token_id: str, service: TokenService = Depends(get_token_service)) -> TokenResponse:
    return TokenResponse.from_entity(service.unrevoke(token_id))


__all__ = ["router"]
