"""ID helpers."""

from __future__ import annotations

import secrets
import uuid

WORKSPACE_PREFIX = "ws"
TOKEN_PREFIX = "tk"
RECORD_PREFIX = "co"
SIGNATURE_PREFIX = "cr"


def new_id(prefix: str | None = None) -> str:
    """Generate a random UUID4 string with optional prefix."""
    base = uuid.uuid4().hex
    return f"{prefix}_{base}" if prefix else base


def new_token_value() -> str:
    """Generate an opaque bearer token value."""
    return f"cor_{secrets.token_urlsafe(32)}"
