"""API integration tests."""

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from cor_matrix.report.retention import compute_metrics
from cor_matrix.report.scanner import scan_codebase
from cor_matrix.utils.hashing import code_signature
from cor_matrix.utils.time import now_ms


def _create_workspace(client: TestClient, headers: dict[str, str], name: str = "acme") -> dict:
    resp = client.post("/v1/workspaces", json={"name": name}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


def _create_token(client: TestClient, headers: dict[str, str], workspace_id: str, **extra) -> dict:
    resp = client.post("/v1/tokens", json={"workspaceId": workspace_id, **extra}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


def _entry(path: str, lines: list[str]) -> dict:
    return {
        "path": path,
        "language": "py",
        "timestamp": now_ms(),
        "generatedBy": "assistant",
        "cors": [{"signature": code_signature(line), "order": i} for i, line in enumerate(lines)],
    }


@pytest.fixture
def workspace(client: TestClient, admin_headers: dict[str, str]) -> dict:
    return _create_workspace(client, admin_headers)


@pytest.fixture
def token(client: TestClient, admin_headers: dict[str, str], workspace: dict) -> dict:
    return _create_token(client, admin_headers, workspace["id"], description="ci")


def test_health(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["ok"] is True


def test_metrics_endpoint(client: TestClient) -> None:
    client.get("/health")
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "cor_requests_total" in resp.text


def test_admin_routes_require_api_key(client: TestClient) -> None:
    assert client.get("/v1/workspaces").status_code == 401
    resp = client.get("/v1/workspaces", headers={"Authorization": "wrong"})
    assert resp.status_code == 401
    assert resp.json()["success"] is False


def test_admin_routes_unavailable_without_configured_key(tmp_path: Path) -> None:
    from cor_matrix.app import create_app
    from cor_matrix.core.config import Settings

    app = create_app(Settings(db_path=tmp_path / "nokey.db", log_json=False))
    with TestClient(app) as client:
        resp = client.get("/v1/workspaces", headers={"Authorization": "anything"})
    assert resp.status_code == 503


def test_workspace_lifecycle(client: TestClient, admin_headers: dict[str, str]) -> None:
    created = _create_workspace(client, admin_headers, "acme")
    assert created["id"].startswith("ws_")
    assert created["isArchived"] is False
    assert created["updatedAt"] is None

    duplicate = client.post("/v1/workspaces", json={"name": "acme"}, headers=admin_headers)
    assert duplicate.status_code == 409
    assert duplicate.json()["code"] == "WORKSPACE_ALREADY_EXISTS"

    renamed = client.patch(f"/v1/workspaces/{created['id']}", json={"name": "acme-2"}, headers=admin_headers)
    assert renamed.status_code == 200
    assert renamed.json()["name"] == "acme-2"

    archived = client.post(f"/v1/workspaces/{created['id']}/archive", headers=admin_headers)
    assert archived.json()["isArchived"] is True
    assert client.get("/v1/workspaces", headers=admin_headers).json() == []
    listed = client.get("/v1/workspaces", params={"includeArchived": "true"}, headers=admin_headers).json()
    assert [w["id"] for w in listed] == [created["id"]]

    unarchived = client.post(f"/v1/workspaces/{created['id']}/unarchive", headers=admin_headers)
    assert unarchived.json()["isArchived"] is False

    deleted = client.delete(f"/v1/workspaces/{created['id']}", headers=admin_headers)
    assert deleted.json() == {"success": True, "id": created["id"]}
    missing = client.get(f"/v1/workspaces/{created['id']}", headers=admin_headers)
    assert missing.status_code == 404
    assert missing.json()["code"] == "WORKSPACE_NOT_FOUND"


def test_token_lifecycle(client: TestClient, admin_headers: dict[str, str], workspace: dict) -> None:
    token = _create_token(client, admin_headers, workspace["id"], description="ci")
    assert token["token"].startswith("cor_")
    assert token["isRevoked"] is False

    listed = client.get("/v1/tokens", params={"workspaceId": workspace["id"]}, headers=admin_headers).json()
    assert [t["id"] for t in listed] == [token["id"]]

    updated = client.patch(f"/v1/tokens/{token['id']}", json={"description": "deploy"}, headers=admin_headers)
    assert updated.json()["description"] == "deploy"

    revoked = client.post(f"/v1/tokens/{token['id']}/revoke", headers=admin_headers)
    assert revoked.json()["isRevoked"] is True
    again = client.post(f"/v1/tokens/{token['id']}/revoke", headers=admin_headers)
    assert again.status_code == 400
    assert client.post(f"/v1/tokens/{token['id']}/unrevoke", headers=admin_headers).json()["isRevoked"] is False

    assert client.delete(f"/v1/tokens/{token['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/v1/tokens/{token['id']}", headers=admin_headers).status_code == 404


def test_token_for_unknown_workspace(client: TestClient, admin_headers: dict[str, str]) -> None:
    resp = client.post("/v1/tokens", json={"workspaceId": "ws_missing"}, headers=admin_headers)
    assert resp.status_code == 404


@pytest.mark.parametrize("scheme", ["{token}", "Bearer {token}"])
def test_record_and_list_signatures(client: TestClient, workspace: dict, token: dict, scheme: str) -> None:
    headers = {"Authorization": scheme.format(token=token["token"])}
    resp = client.post(
        f"/v1/cors/{workspace['id']}",
        json={"entries": [_entry("src/app.py", ["import os", "print(os.name)"])]},
        headers=headers,
    )
    assert resp.status_code == 201
    assert resp.json() == {"ok": True, "message": "Code origin recorded successfully"}

    listed = client.get(f"/v1/cors/{workspace['id']}", headers=headers)
    assert listed.status_code == 200
    cors = listed.json()["cors"]
    assert len(cors) == 2
    assert {item["path"] for item in cors} == {"src/app.py"}
    assert cors[0]["codeOriginRecordId"].startswith("co_")
    assert sorted(item["signature"] for item in cors) == sorted(
        [code_signature("import os"), code_signature("print(os.name)")]
    )


@pytest.mark.parametrize("value", ["", "Bearer", "Bearer  {token}", "Basic {token}", "bearer {token}"])
def test_malformed_authorization_is_rejected(client: TestClient, workspace: dict, token: dict, value: str) -> None:
    resp = client.get(f"/v1/cors/{workspace['id']}", headers={"Authorization": value.format(token=token["token"])})
    assert resp.status_code == 401


def test_revoked_and_expired_tokens_are_rejected(
    client: TestClient, admin_headers: dict[str, str], workspace: dict
) -> None:
    revoked = _create_token(client, admin_headers, workspace["id"])
    client.post(f"/v1/tokens/{revoked['id']}/revoke", headers=admin_headers)
    resp = client.get(f"/v1/cors/{workspace['id']}", headers={"Authorization": revoked["token"]})
    assert resp.status_code == 401

    expired = _create_token(client, admin_headers, workspace["id"], expiresAt=now_ms() - 1000)
    resp = client.get(f"/v1/cors/{workspace['id']}", headers={"Authorization": expired["token"]})
    assert resp.status_code == 401


def test_token_cannot_reach_another_workspace(
    client: TestClient, admin_headers: dict[str, str], workspace: dict, token: dict
) -> None:
    other = _create_workspace(client, admin_headers, "other")
    headers = {"Authorization": f"Bearer {token['token']}"}
    assert client.get(f"/v1/cors/{other['id']}", headers=headers).status_code == 401
    resp = client.post(f"/v1/cors/{other['id']}", json={"entries": [_entry("a.py", ["x"])]}, headers=headers)
    assert resp.status_code == 401


def test_last_used_at_is_updated(client: TestClient, admin_headers: dict[str, str], workspace: dict, token: dict) -> None:
    client.get(f"/v1/cors/{workspace['id']}", headers={"Authorization": token["token"]})
    fetched = client.get(f"/v1/tokens/{token['id']}", headers=admin_headers).json()
    assert fetched["lastUsedAt"] is not None


def test_malformed_signature_is_rejected(client: TestClient, workspace: dict, token: dict) -> None:
    entry = _entry("a.py", ["x"])
    entry["cors"][0]["signature"] = "NOT-A-HASH"
    resp = client.post(f"/v1/cors/{workspace['id']}", json={"entries": [entry]}, headers={"Authorization": token["token"]})
    assert resp.status_code == 422


def test_empty_entries_are_accepted(client: TestClient, workspace: dict, token: dict) -> None:
    resp = client.post(f"/v1/cors/{workspace['id']}", json={"entries": []}, headers={"Authorization": token["token"]})
    assert resp.status_code == 201
    assert resp.json()["message"] == "Code origin recording completed - no entries to process"


def test_full_pipeline_retention(client: TestClient, workspace: dict, token: dict, tmp_path: Path) -> None:
    headers = {"Authorization": token["token"]}
    client.post(
        f"/v1/cors/{workspace['id']}",
        json={"entries": [_entry("src/gen.py", ["def add(a, b):", "    return a + b", "", "print(add(1, 2))"])]},
        headers=headers,
    )

    project = tmp_path / "project"
    project.mkdir()
    (project / "gen.py").write_text("def add(a, b):\n    return a - b\n# tweaked\nprint(add(1, 2))", encoding="utf-8")

    remote = [item["signature"] for item in client.get(f"/v1/cors/{workspace['id']}", headers=headers).json()["cors"]]
    scan = scan_codebase(project)
    metrics = compute_metrics(scan.signatures, remote, scan.total_files)

    assert metrics.ai_generated_lines_count == 4
    assert metrics.total_lines_count == 4
    assert metrics.ai_generated_lines_retained_count == 2
    assert metrics.ai_generated_lines_removed_count == 2
    assert metrics.ai_generated_lines_retained_percent == "50.00"
    assert metrics.percent_ai == "50.000"
    assert metrics.percent_human == "50.000"
