"""Hashing utilities."""

from __future__ import annotations

import hashlib

from cor_matrix.utils.text import normalize_line

SIGNATURE_LENGTH = 64


def sha256_bytes(data: bytes) -> str:
    """Return hex digest for bytes input."""
    return hashlib.sha256(data).hexdigest()


def signature(normalized: str) -> str:
    """Return the line signature for an already normalized line."""
    return sha256_bytes(normalized.encode("utf-8"))


def code_signature(line: str) -> str:
    """Normalize then sign a raw source line.

    Both the client library and the codebase scanner go through this function,
    so signatures recorded at authoring time match the ones derived later.
    """
    return signature(normalize_line(line))
