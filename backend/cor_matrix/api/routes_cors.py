"""Code origin recording and retrieval routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from cor_matrix.api.auth import require_workspace_token
from cor_matrix.api.dependencies import get_origin_recorder
from cor_matrix.ingest.recorder import OriginRecorder
from cor_matrix.models.dto import (
    ErrorResponse,
    RecordRequest,
    RecordResponse,
    SignaturesResponse,
    StoredSignatureResponse,
)

router = APIRouter(
    dependencies=[Depends(require_workspace_token)],
    responses={401: {"model": ErrorResponse}},
)


@router.post(
    "/{workspace_id}",
    response_model=RecordResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record code origin entries",
)
async def record_cors(
    workspace_id: str,
    request: RecordRequest,
    recorder: OriginRecorder = Depends(get_origin_recorder),
) -> RecordResponse:
    outcome = recorder.record(workspace_id, [entry.to_entry() for entry in request.entries])
    return RecordResponse(ok=outcome.ok, message=outcome.message)


@router.get(
    "/{workspace_id}",
    response_model=SignaturesResponse,
    summary="List stored signatures with their file paths",
)
async def list_cors(
    workspace_id: str,
    recorder: OriginRecorder = Depends(get_origin_recorder),
) -> SignaturesResponse:
    return SignaturesResponse(cors=[StoredSignatureResponse.from_entity(item) for item in recorder.list(workspace_id)])


__all__ = ["router"]
