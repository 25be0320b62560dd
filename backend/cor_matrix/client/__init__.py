"""Instrumentation client and HTTP API wrapper."""

from cor_matrix.client.api import ApiError, ConflictError, CorApiClient, NotFoundError, UnauthorizedError
from cor_matrix.client.buffer import RingBuffer
from cor_matrix.client.config import ClientSettings
from cor_matrix.client.sdk import CorMatrix

__all__ = [
    "ApiError",
    "ClientSettings",
    "ConflictError",
    "CorApiClient",
    "CorMatrix",
    "NotFoundError",
    "RingBuffer",
    "UnauthorizedError",
]
