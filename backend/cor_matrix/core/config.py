"""Server configuration: YAML file first, then ``COR_MATRIX_*`` environment variables."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterator, Mapping

import yaml
from pydantic import BaseModel, Field, SecretStr, field_validator

ENV_PREFIX = "COR_MATRIX_"
CONFIG_ENV = f"{ENV_PREFIX}CONFIG"
DEFAULT_CONFIG_PATH = Path("~/.config/cor-matrix/config.yaml")
MIN_API_KEY_LENGTH = 32

# Dotted YAML keys accepted in the config file.
YAML_KEYS: Mapping[str, str] = {
    "storage.db_path": "db_path",
    "auth.api_key": "api_key",
    "logging.level": "log_level",
    "logging.json": "log_json",
}


class Settings(BaseModel):
    """Server settings.

    Example ``config.yaml``::

        storage:
          db_path: ~/.cor-matrix/cor.db
        auth:
          api_key: <at least 32 characters>
        logging:
          level: INFO
          json: true
    """

    db_path: Path = Field(default=Path.home() / ".cor-matrix" / "cor.db")
    api_key: SecretStr | None = None
    log_level: str = "INFO"
    log_json: bool = True

    model_config = {"validate_assignment": True, "extra": "ignore"}

    @field_validator("db_path", mode="before")
    @classmethod
    def _expand_db_path(cls, value: Any) -> Path:
        if isinstance(value, (str, Path)):
            return Path(value).expanduser()
        raise TypeError("db_path must be a path or string")

    @field_validator("api_key", mode="before")
    @classmethod
    def _check_api_key(cls, value: Any) -> Any:
        if value in (None, ""):
            return None
        raw = value.get_secret_value() if isinstance(value, SecretStr) else str(value)
        if len(raw) < MIN_API_KEY_LENGTH:
            raise ValueError(f"api_key must be at least {MIN_API_KEY_LENGTH} characters")
        return raw

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, value: Any) -> str:
        return str(value).upper()

    @classmethod
    def from_yaml(cls, path: Path | None = None) -> "Settings":
        """Build settings from the config file (if any) overlaid with env vars."""
        data: dict[str, Any] = {}
        source = resolve_config_path(path)
        if source is not None and source.exists():
            data.update(read_config_file(source))
        data.update(load_env_overrides(cls.model_fields))
        return cls(**data)


def resolve_config_path(path: Path | None = None) -> Path | None:
    """Explicit path, then ``COR_MATRIX_CONFIG``, then the default location if present."""
    if path is not None:
        return path.expanduser()
    from_env = os.environ.get(CONFIG_ENV)
    if from_env:
        return Path(from_env).expanduser()
    default = DEFAULT_CONFIG_PATH.expanduser()
    return default if default.exists() else None


def read_config_file(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}
    if not isinstance(raw, Mapping):
        raise ValueError(f"{path} must contain a YAML mapping")
    values: dict[str, Any] = {}
    for dotted, value in _walk(raw):
        field_name = YAML_KEYS.get(dotted)
        if field_name is None and dotted in Settings.model_fields:
            field_name = dotted
        if field_name is not None:
            values[field_name] = value
    return values


def _walk(raw: Mapping[str, Any], prefix: str = "") -> Iterator[tuple[str, Any]]:
    for key, value in raw.items():
        dotted = f"{prefix}{key}"
        if isinstance(value, Mapping):
            yield from _walk(value, prefix=f"{dotted}.")
        else:
            yield dotted, value


def load_env_overrides(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Pick ``COR_MATRIX_<FIELD>`` variables that name one of ``fields``."""
    overrides: dict[str, Any] = {}
    for key, value in os.environ.items():
        if key.startswith(ENV_PREFIX):
            field_name = key[len(ENV_PREFIX) :].lower()
            if field_name in fields:
                overrides[field_name] = value
    return overrides


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_yaml()


__all__ = [
    "ENV_PREFIX",
    "Settings",
    "get_settings",
    "load_env_overrides",
    "read_config_file",
    "resolve_config_path",
]
