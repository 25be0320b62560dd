"""CLI tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import requests
from typer.testing import CliRunner

from cor_matrix.cli import main as cli
from cor_matrix.client.api import ApiError, CorApiClient, UnauthorizedError
from cor_matrix.utils.hashing import code_signature

runner = CliRunner()


class FakeApiClient:
    signatures: list[str] = []
    error: ApiError | None = None
    created: list[tuple] = []

    def __init__(self, base_url: str, credential: str | None = None, **_kwargs) -> None:
        self.base_url = base_url
        self.credential = credential

    def fetch_signatures(self, workspace_id: str) -> list[str]:
        if self.error is not None:
            raise self.error
        return list(self.signatures)

    def create_workspace(self, name: str) -> dict:
        FakeApiClient.created.append((self.credential, name))
        return {"id": "ws_1", "name": name, "isArchived": False}

    def close(self) -> None:
        pass


@pytest.fixture(autouse=True)
def fake_client(monkeypatch: pytest.MonkeyPatch):
    FakeApiClient.signatures = []
    FakeApiClient.error = None
    FakeApiClient.created = []
    monkeypatch.setattr(cli, "CorApiClient", FakeApiClient)
    return FakeApiClient


def _report_args(project: Path, *extra: str) -> list[str]:
    return ["report", "-w", "ws_1", "-p", str(project), "-u", "http://cor.test", "-t", "cor_tok", *extra]


def test_report_prints_text(tmp_path: Path, fake_client) -> None:
    (tmp_path / "a.py").write_text("kept = 1\nhuman = 2", encoding="utf-8")
    fake_client.signatures = [code_signature("kept = 1"), code_signature("gone = 3")]

    result = runner.invoke(cli.app, _report_args(tmp_path))
    assert result.exit_code == 0, result.output
    assert "COR-Matrix Report" in result.output
    assert "1 + 1 = 2 (100%)" in result.output


def test_report_json_with_unique_overlap(tmp_path: Path, fake_client) -> None:
    (tmp_path / "a.py").write_text("x\nx", encoding="utf-8")
    fake_client.signatures = [code_signature("x")]

    result = runner.invoke(cli.app, _report_args(tmp_path, "--json", "--unique"))
    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["metrics"]["ai_generated_lines_retained_count"] == 2
    assert payload["unique_overlap"]["unique_retained_count"] == 1


def test_report_reads_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("COR_MATRIX_WORKSPACE_ID", "ws_env")
    monkeypatch.setenv("COR_MATRIX_PROJECT_PATH", str(tmp_path))
    monkeypatch.setenv("COR_MATRIX_BASE_URL", "http://cor.test")
    monkeypatch.setenv("COR_MATRIX_TOKEN", "cor_env")
    result = runner.invoke(cli.app, ["report"])
    assert result.exit_code == 0, result.output


def test_report_rejects_missing_directory(tmp_path: Path) -> None:
    result = runner.invoke(cli.app, _report_args(tmp_path / "nope"))
    assert result.exit_code == 1
    assert "does not exist or is not a directory" in result.output


def test_report_surfaces_api_errors(tmp_path: Path, fake_client) -> None:
    fake_client.error = UnauthorizedError("Invalid API token.", 401)
    result = runner.invoke(cli.app, _report_args(tmp_path))
    assert result.exit_code == 1
    assert "Invalid API token." in result.output


class CannedSession(requests.Session):
    def __init__(self, body: bytes, content_type: str) -> None:
        super().__init__()
        self.body = body
        self.content_type = content_type

    def request(self, method, url, **_kwargs):
        resp = requests.Response()
        resp.status_code = 200
        resp.url = url
        resp._content = self.body
        resp.headers["Content-Type"] = self.content_type
        return resp


@pytest.mark.parametrize(
    ("body", "content_type"),
    [
        (b"<html><body>Welcome</body></html>", "text/html"),
        (b'{"cors": "nope"}', "application/json"),
        (b'{"cors": [{"order": 0}]}', "application/json"),
        (b"[]", "application/json"),
    ],
)
def test_report_explains_unexpected_responses(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, body: bytes, content_type: str
) -> None:
    def make_client(base_url: str, credential: str | None = None, **_kwargs) -> CorApiClient:
        return CorApiClient(base_url, credential=credential, session=CannedSession(body, content_type))

    monkeypatch.setattr(cli, "CorApiClient", make_client)
    result = runner.invoke(cli.app, _report_args(tmp_path))
    assert result.exit_code == 1
    assert not isinstance(result.exception, ValueError)
    assert "Error: Unexpected response from http://cor.test/v1/cors/ws_1" in result.output


def test_workspace_create_uses_api_key(fake_client) -> None:
    result = runner.invoke(cli.app, ["workspaces", "create", "acme", "-u", "http://cor.test", "-k", "admin-key"])
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["name"] == "acme"
    assert fake_client.created == [("admin-key", "acme")]


def test_token_update_requires_changes() -> None:
    result = runner.invoke(cli.app, ["tokens", "update", "tk_1", "-u", "http://cor.test", "-k", "admin-key"])
    assert result.exit_code == 1
    assert "Nothing to update" in result.output
