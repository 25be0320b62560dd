"""Authentication dependencies for admin and workspace-scoped routes."""

from __future__ import annotations

import hmac

from fastapi import Depends, Header, HTTPException, Request, status

from cor_matrix.api.dependencies import get_app_settings, get_token_service
from cor_matrix.core.config import Settings
from cor_matrix.core.errors import CorError, ErrorKind
from cor_matrix.core.logging import get_logger
from cor_matrix.models.entities import AccessToken
from cor_matrix.tenancy.tokens import TokenService

logger = get_logger(__name__)

BEARER_PREFIX = "Bearer "


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"success": False, "code": "UNAUTHORIZED", "error": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


def parse_credential(authorization: str | None) -> str | None:
    """Extract the credential from an Authorization header.

    Accepts a raw value or ``Bearer <value>`` with exactly one space. Any other
    scheme or a blank value yields ``None``.
    """
    if not authorization or not authorization.strip():
        return None
    value = authorization
    if value.startswith(BEARER_PREFIX):
        value = value[len(BEARER_PREFIX) :]
    if not value or value != value.strip() or " " in value:
        return None
    return value


async def require_api_key(
    authorization: str | None = Header(default=None),
    settings: Settings = Depends(get_app_settings),
) -> None:
    """Guard for workspace and token administration."""
    if settings.api_key is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"success": False, "code": "NOT_CONFIGURED", "error": "Admin API key is not configured"},
        )
    credential = parse_credential(authorization)
    if credential is None:
        logger.warning("Admin route called without credentials")
        raise _unauthorized("Please provide a valid API Key in the Authorization header.")
    if not hmac.compare_digest(credential.encode("utf-8"), settings.api_key.get_secret_value().encode("utf-8")):
        logger.warning("Invalid API key in Authorization header")
        raise _unauthorized("Invalid API key in Authorization header")


async def require_workspace_token(
    request: Request,
    authorization: str | None = Header(default=None),
    tokens: TokenService = Depends(get_token_service),
) -> AccessToken:
    """Guard for ``/cors/{workspaceId}`` routes; the token must belong to that workspace."""
    credential = parse_credential(authorization)
    if credential is None:
        raise _unauthorized("Please provide a valid Bearer Token in the Authorization header.")
    workspace_id = request.path_params.get("workspace_id")
    try:
        return tokens.authenticate(credential, workspace_id=workspace_id)
    except CorError as exc:
        if exc.kind is ErrorKind.OPERATION_FAILED:
            logger.error("Error while checking token: %s", exc)
            raise _unauthorized("Authentication failed, please check your token") from exc
        logger.warning("Rejected bearer token: %s", exc.message)
        raise _unauthorized(exc.message) from exc


__all__ = ["parse_credential", "require_api_key", "require_workspace_token"]
