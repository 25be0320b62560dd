"""Pydantic DTOs exposed via API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from cor_matrix.ingest.types import CorPair, OriginEntry
from cor_matrix.models.entities import AccessToken, StoredSignature, Workspace
from cor_matrix.utils.hashing import SIGNATURE_LENGTH

SIGNATURE_PATTERN = rf"^[0-9a-f]{{{SIGNATURE_LENGTH}}}$"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WorkspaceCreateRequest(CamelModel):
    name: str = Field(min_length=1)


class WorkspaceUpdateRequest(CamelModel):
    name: str | None = Field(default=None, min_length=1)


class WorkspaceResponse(CamelModel):
    id: str
    name: str
    created_at: int
    updated_at: int | None
    is_archived: bool

    @classmethod
    def from_entity(cls, workspace: Workspace) -> "WorkspaceResponse":
        return cls(
            id=workspace.id,
            name=workspace.name,
            created_at=workspace.created_at,
            updated_at=workspace.updated_at,
            is_archived=workspace.is_archived,
        )


class TokenCreateRequest(CamelModel):
    workspace_id: str
    description: str | None = None
    expires_at: int | None = Field(default=None, description="Expiry as epoch milliseconds")


class TokenUpdateRequest(CamelModel):
    description: str | None = None
    expires_at: int | None = None


class TokenResponse(CamelModel):
    id: str
    workspace_id: str
    token: str
    description: str | None
    created_at: int
    last_used_at: int | None
    expires_at: int | None
    is_revoked: bool

    @classmethod
    def from_entity(cls, token: AccessToken) -> "TokenResponse":
        return cls(
            id=token.id,
            workspace_id=token.workspace_id,
            token=token.token,
            description=token.description,
            created_at=token.created_at,
            last_used_at=token.last_used_at,
            expires_at=token.expires_at,
            is_revoked=token.is_revoked,
        )


class DeleteResponse(CamelModel):
    success: bool = True
    id: str


class CorItem(CamelModel):
    signature: str = Field(pattern=SIGNATURE_PATTERN)
    order: int = Field(ge=0)


class OriginEntryRequest(CamelModel):
    path: str = Field(min_length=1)
    language: str
    timestamp: int = Field(ge=0)
    generated_by: str
    cors: list[CorItem] = Field(default_factory=list)

    def to_entry(self) -> OriginEntry:
        return OriginEntry(
            path=self.path,
            language=self.language,
            timestamp=self.timestamp,
            generated_by=self.generated_by,
            cors=[CorPair(signature=item.signature, order=item.order) for item in self.cors],
        )


class RecordRequest(CamelModel):
    entries: list[OriginEntryRequest]


class RecordResponse(CamelModel):
    ok: bool
    message: str


class StoredSignatureResponse(CamelModel):
    id: str
    code_origin_record_id: str
    order: int
    signature: str
    created_at: int
    path: str | None

    @classmethod
    def from_entity(cls, item: StoredSignature) -> "StoredSignatureResponse":
        return cls(
            id=item.id,
            code_origin_record_id=item.origin_record_id,
            order=item.order,
            signature=item.signature,
            created_at=item.created_at,
            path=item.path,
        )


class SignaturesResponse(CamelModel):
    cors: list[StoredSignatureResponse]


class ErrorResponse(CamelModel):
    success: bool = False
    code: str
    error: str


__all__ = [
    "WorkspaceCreateRequest",
    "WorkspaceUpdateRequest",
    "WorkspaceResponse",
    "TokenCreateRequest",
    "TokenUpdateRequest",
    "TokenResponse",
    "DeleteResponse",
    "CorItem",
    "OriginEntryRequest",
    "RecordRequest",
    "RecordResponse",
    "StoredSignatureResponse",
    "SignaturesResponse",
    "ErrorResponse",
]
