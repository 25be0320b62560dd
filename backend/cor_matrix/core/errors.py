"""Error kinds shared by the services and the HTTP layer."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    WORKSPACE_NOT_FOUND = "WORKSPACE_NOT_FOUND"
    WORKSPACE_ALREADY_EXISTS = "WORKSPACE_ALREADY_EXISTS"
    TOKEN_NOT_FOUND = "TOKEN_NOT_FOUND"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    TOKEN_REVOKED = "TOKEN_REVOKED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    OPERATION_FAILED = "OPERATION_FAILED"


HTTP_STATUS: dict[ErrorKind, int] = {
    ErrorKind.WORKSPACE_NOT_FOUND: 404,
    ErrorKind.WORKSPACE_ALREADY_EXISTS: 409,
    ErrorKind.TOKEN_NOT_FOUND: 404,
    ErrorKind.TOKEN_EXPIRED: 401,
    ErrorKind.TOKEN_REVOKED: 401,
    ErrorKind.VALIDATION_ERROR: 400,
    ErrorKind.OPERATION_FAILED: 500,
}


class CorError(Exception):
    """Typed failure raised at service boundaries.

    ``kind`` is one of the closed set of :class:`ErrorKind` values; callers
    branch on it instead of on exception subclasses.
    """

    def __init__(self, kind: ErrorKind, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    @property
    def status_code(self) -> int:
        return HTTP_STATUS[self.kind]

    def to_dict(self) -> dict[str, object]:
        return {"success": False, "code": self.kind.value, "error": self.message}

    def __repr__(self) -> str:
        return f"CorError({self.kind.value}, {self.message!r})"


def wrap_failure(exc: BaseException, message: str) -> CorError:
    """Pass typed errors through and wrap anything else as OPERATION_FAILED."""
    if isinstance(exc, CorError):
        return exc
    return CorError(ErrorKind.OPERATION_FAILED, message, cause=exc)


__all__ = ["CorError", "ErrorKind", "HTTP_STATUS", "wrap_failure"]
