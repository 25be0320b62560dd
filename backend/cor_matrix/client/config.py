"""Configuration for the instrumentation client."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from cor_matrix.core.config import load_env_overrides

_LEVELS = ("ERROR", "WARNING", "INFO", "DEBUG")


class ClientSettings(BaseModel):
    """Options for :class:`cor_matrix.client.CorMatrix`.

    ``base_url``, ``token`` and ``workspace_id`` fall back to the
    ``COR_MATRIX_BASE_URL``, ``COR_MATRIX_TOKEN`` and
    ``COR_MATRIX_WORKSPACE_ID`` environment variables.
    """

    app_name: str = "unknown"
    app_version: str | None = None
    base_url: str | None = None
    token: str | None = None
    workspace_id: str | None = None
    batch_size: int = Field(default=20, ge=1)
    flush_interval: float = Field(default=5.0, gt=0, description="Seconds between timed flushes")
    max_queue_size: int = Field(default=1000, ge=1)
    max_retries: int = Field(default=3, ge=0)
    retry_base_delay: float = Field(default=0.5, ge=0, description="Seconds; multiplied by the attempt number")
    request_timeout: float = Field(default=10.0, gt=0)
    log_level: str = "ERROR"
    enabled: bool = True
    auto_flush: bool = True

    model_config = {"extra": "ignore"}

    @field_validator("log_level", mode="before")
    @classmethod
    def _check_level(cls, value: Any) -> str:
        level = str(value).upper()
        if level == "WARN":
            level = "WARNING"
        if level not in _LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LEVELS)}")
        return level

    @classmethod
    def from_env(cls, **overrides: Any) -> "ClientSettings":
        """Build settings from ``COR_MATRIX_*`` variables; explicit values win."""
        data = load_env_overrides(cls.model_fields)
        data.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**data)

    @property
    def is_complete(self) -> bool:
        return bool(self.base_url and self.token and self.workspace_id)


__all__ = ["ClientSettings"]
