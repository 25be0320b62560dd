"""HTTP client for the COR Matrix API."""

from __future__ import annotations

from typing import Any, Iterable, Mapping

import requests

from cor_matrix.ingest.types import OriginEntry

DEFAULT_TIMEOUT = 10.0


class ApiError(Exception):
    """A failed API call. ``status_code`` is ``None`` for transport failures."""

    def __init__(self, message: str, status_code: int | None = None, detail: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.detail = detail

    @property
    def retryable(self) -> bool:
        return self.status_code is None or self.status_code >= 500


class UnauthorizedError(ApiError):
    pass


class NotFoundError(ApiError):
    pass


class ConflictError(ApiError):
    pass


class CorApiClient:
    """Thin wrapper over ``requests`` for the ``/v1`` endpoints.

    ``credential`` is sent verbatim in the Authorization header: a workspace
    token for ``/v1/cors`` or the admin API key for workspace/token routes.
    """

    def __init__(
        self,
        base_url: str,
        credential: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        headers: Mapping[str, str] | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.credential = credential
        self.timeout = timeout
        self.session = session or requests.Session()
        if headers:
            self.session.headers.update(headers)

    # Code origin ------------------------------------------------------

    def record_cors(self, workspace_id: str, entries: Iterable[OriginEntry]) -> dict[str, Any]:
        body = {"entries": [entry.to_payload() for entry in entries]}
        return self._request("POST", f"/v1/cors/{workspace_id}", json=body)

    def fetch_cors(self, workspace_id: str) -> list[dict[str, Any]]:
        payload = self._request(
            "GET",
            f"/v1/cors/{workspace_id}",
            messages={
                401: "Invalid API token.",
                404: "Please make sure the API URL is correct.",
            },
        )
        cors = payload.get("cors") if isinstance(payload, dict) else None
        if not isinstance(cors, list) or not all(isinstance(item, dict) and "signature" in item for item in cors):
            raise ApiError(f"Unexpected response from {self.base_url}/v1/cors/{workspace_id}")
        return cors

    def fetch_signatures(self, workspace_id: str) -> list[str]:
        return [item["signature"] for item in self.fetch_cors(workspace_id)]

    # Workspaces -------------------------------------------------------

    def create_workspace(self, name: str) -> dict[str, Any]:
        return self._request(
            "POST",
            "/v1/workspaces",
            json={"name": name},
            messages={409: f'Workspace "{name}" already exists.'},
        )

    def list_workspaces(self, include_archived: bool = False, limit: int = 50, offset: int = 0) -> list[dict[str, Any]]:
        params = {"includeArchived": str(include_archived).lower(), "limit": limit, "offset": offset}
        return self._request("GET", "/v1/workspaces", params=params)

    def get_workspace(self, workspace_id: str) -> dict[str, Any]:
        return self._request("GET", f"/v1/workspaces/{workspace_id}", messages=_workspace_messages(workspace_id))

    def update_workspace(self, workspace_id: str, name: str) -> dict[str, Any]:
        messages = _workspace_messages(workspace_id)
        messages[409] = f'Workspace with name "{name}" already exists.'
        return self._request("PATCH", f"/v1/workspaces/{workspace_id}", json={"name": name}, messages=messages)

    def archive_workspace(self, workspace_id: str) -> dict[str, Any]:
        return self._request(
            "POST", f"/v1/workspaces/{workspace_id}/archive", messages=_workspace_messages(workspace_id)
        )

    def unarchive_workspace(self, workspace_id: str) -> dict[str, Any]:
        return self._request(
            "POST", f"/v1/workspaces/{workspace_id}/unarchive", messages=_workspace_messages(workspace_id)
        )

    def delete_workspace(self, workspace_id: str) -> dict[str, Any]:
        return self._request("DELETE", f"/v1/workspaces/{workspace_id}", messages=_workspace_messages(workspace_id))

    # Tokens -----------------------------------------------------------

    def create_token(
        self,
        workspace_id: str,
        description: str | None = None,
        expires_at: int | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"workspaceId": workspace_id}
        if description is not None:
            body["description"] = description
        if expires_at is not None:
            body["expiresAt"] = expires_at
        return self._request("POST", "/v1/tokens", json=body, messages=_workspace_messages(workspace_id))

    def list_tokens(
        self,
        workspace_id: str | None = None,
        include_revoked: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"includeRevoked": str(include_revoked).lower(), "limit": limit, "offset": offset}
        if workspace_id:
            params["workspaceId"] = workspace_id
        return self._request("GET", "/v1/tokens", params=params)

    def get_token(self, token_id: str) -> dict[str, Any]:
        return self._request("GET", f"/v1/tokens/{token_id}", messages=_token_messages(token_id))

    def update_token(self, token_id: str, changes: Mapping[str, Any]) -> dict[str, Any]:
        return self._request("PATCH", f"/v1/tokens/{token_id}", json=dict(changes), messages=_token_messages(token_id))

    def revoke_token(self, token_id: str) -> dict[str, Any]:
        return self._request("POST", f"/v1/tokens/{token_id}/revoke", messages=_token_messages(token_id))

    def unrevoke_token(self, token_id: str) -> dict[str, Any]:
        return self._request("POST", f"/v1/tokens/{token_id}/unrevoke", messages=_token_messages(token_id))

    def delete_token(self, token_id: str) -> dict[str, Any]:
        return self._request("DELETE", f"/v1/tokens/{token_id}", messages=_token_messages(token_id))

    # Internal ---------------------------------------------------------

    def _request(
        self,
        method: str,
        path: str,
        messages: Mapping[int, str] | None = None,
        **kwargs: Any,
    ) -> Any:
        headers = {}
        if self.credential:
            headers["Authorization"] = self.credential
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise ApiError(f"Request to {url} failed: {exc}") from exc
        if resp.ok:
            try:
                return resp.json()
            except ValueError as exc:
                raise ApiError(f"Unexpected response from {url}", resp.status_code, resp.text) from exc
        raise _error_for(resp, messages or {})

    def close(self) -> None:
        self.session.close()


def _error_for(resp: requests.Response, messages: Mapping[int, str]) -> ApiError:
    try:
        detail = resp.json()
    except ValueError:
        detail = resp.text
    status = resp.status_code
    server_message = detail.get("error") if isinstance(detail, dict) else None
    message = messages.get(status) or server_message or f"Request failed ({status}): {detail}"
    if status in (401, 403):
        return UnauthorizedError(message, status, detail)
    if status == 404:
        return NotFoundError(message, status, detail)
    if status == 409:
        return ConflictError(message, status, detail)
    return ApiError(message, status, detail)


def _workspace_messages(workspace_id: str) -> dict[int, str]:
    return {404: f'Workspace with ID "{workspace_id}" not found.'}


def _token_messages(token_id: str) -> dict[int, str]:
    return {404: f'Token with ID "{token_id}" not found.'}


__all__ = [
    "ApiError",
    "ConflictError",
    "CorApiClient",
    "NotFoundError",
    "UnauthorizedError",
]
