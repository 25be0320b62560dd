"""Test fixtures for COR Matrix."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Iterator

import pytest

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

API_KEY = "test-admin-key-" + "x" * 32


@pytest.fixture(autouse=True)
def reset_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep COR_MATRIX_* variables from the host out of the tests."""
    for key in list(os.environ):
        if key.startswith("COR_MATRIX_"):
            monkeypatch.delenv(key, raising=False)
    from cor_matrix.core.config import get_settings

    get_settings.cache_clear()


@pytest.fixture
def database(tmp_path: Path):
    from cor_matrix.db.sqlite import SQLiteDatabase

    db = SQLiteDatabase(tmp_path / "cor.db")
    db.ensure_schema()
    yield db
    db.close()


@pytest.fixture
def settings(tmp_path: Path):
    from cor_matrix.core.config import Settings

    return Settings(db_path=tmp_path / "api.db", api_key=API_KEY, log_level="WARNING", log_json=False)


@pytest.fixture
def client(settings) -> Iterator:
    from fastapi.testclient import TestClient

    from cor_matrix.app import create_app

    with TestClient(create_app(settings)) as test_client:
        yield test_client


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"Authorization": API_KEY}
