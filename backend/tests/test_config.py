"""Tests for settings loading."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from cor_matrix.core.config import Settings

KEY = "k" * 40


def test_yaml_values_are_mapped(tmp_path: Path) -> None:
    config = tmp_path / "config.yaml"
    config.write_text(
        f"storage:\n  db_path: {tmp_path / 'data.db'}\nauth:\n  api_key: {KEY}\nlogging:\n  level: debug\n  json: false\n",
        encoding="utf-8",
    )
    settings = Settings.from_yaml(config)
    assert settings.db_path == tmp_path / "data.db"
    assert settings.api_key is not None
    assert settings.api_key.get_secret_value() == KEY
    assert settings.log_level == "DEBUG"
    assert settings.log_json is False


def test_environment_overrides_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config = tmp_path / "config.yaml"
    config.write_text("logging:\n  level: info\n", encoding="utf-8")
    monkeypatch.setenv("COR_MATRIX_CONFIG", str(config))
    monkeypatch.setenv("COR_MATRIX_LOG_LEVEL", "warning")
    monkeypatch.setenv("COR_MATRIX_DB_PATH", str(tmp_path / "env.db"))
    settings = Settings.from_yaml()
    assert settings.log_level == "WARNING"
    assert settings.db_path == tmp_path / "env.db"
    assert settings.api_key is None


def test_short_api_key_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValidationError):
        Settings(db_path=tmp_path / "x.db", api_key="short")
