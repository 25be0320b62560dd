"""Logging setup shared by the API server and the CLI."""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import orjson

CONTEXT_PREFIX = "ctx_"
PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_DEFAULT_LEVEL = os.environ.get("COR_MATRIX_LOG_LEVEL", "INFO").upper()


class JsonFormatter(logging.Formatter):
    """One JSON object per line.

    ``extra={"ctx_workspace_id": ...}`` values are collected under ``context``
    with the prefix removed.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = {
            key[len(CONTEXT_PREFIX) :]: value
            for key, value in record.__dict__.items()
            if key.startswith(CONTEXT_PREFIX)
        }
        if context:
            payload["context"] = context
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = record.stack_info
        return orjson.dumps(payload, default=str).decode("utf-8")


class _StderrHandler(logging.StreamHandler):
    """Writes to the current ``sys.stderr`` rather than the one seen at setup."""

    @property
    def stream(self):  # type: ignore[override]
        return sys.stderr

    @stream.setter
    def stream(self, _value) -> None:
        pass


def configure_logging(level: str | int = _DEFAULT_LEVEL, use_json: bool = True) -> None:
    """Install a single stderr handler on the root logger."""
    logging.captureWarnings(True)
    handler = _StderrHandler()
    handler.setFormatter(JsonFormatter() if use_json else logging.Formatter(PLAIN_FORMAT))
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [handler]


def get_logger(name: str = "cor_matrix") -> logging.Logger:
    if not logging.getLogger().handlers:
        configure_logging()
    return logging.getLogger(name)


__all__ = ["JsonFormatter", "configure_logging", "get_logger"]
