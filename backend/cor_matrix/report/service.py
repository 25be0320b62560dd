"""Build a retention report for a local codebase."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

from cor_matrix.core.errors import CorError, ErrorKind
from cor_matrix.core.logging import get_logger
from cor_matrix.report.retention import (
    RetentionMetrics,
    UniqueOverlap,
    compute_metrics,
    compute_unique_overlap,
    format_report,
)
from cor_matrix.report.scanner import scan_codebase


class SignatureSource(Protocol):
    def fetch_signatures(self, workspace_id: str) -> list[str]: ...


@dataclass(slots=True)
class ReportResult:
    project_path: Path
    metrics: RetentionMetrics
    overlap: UniqueOverlap

    def render(self, generated_at: datetime | None = None, unique: bool = False) -> str:
        return format_report(
            self.metrics,
            str(self.project_path),
            generated_at=generated_at,
            overlap=self.overlap if unique else None,
        )

    def to_dict(self, unique: bool = False) -> dict[str, Any]:
        payload: dict[str, Any] = {"project_path": str(self.project_path), "metrics": self.metrics.to_dict()}
        if unique:
            payload["unique_overlap"] = self.overlap.to_dict()
        return payload


class ReportService:
    """Fetch recorded signatures, scan the project and compare the two."""

    def __init__(
        self,
        workspace_id: str,
        project_path: str | Path,
        client: SignatureSource,
        logger: logging.Logger | None = None,
    ) -> None:
        self.workspace_id = workspace_id
        self.project_path = Path(project_path)
        self.client = client
        self.logger = logger or get_logger(__name__)

    def validated_project_path(self) -> Path:
        path = self.project_path.expanduser().resolve()
        if not path.is_dir():
            raise CorError(ErrorKind.VALIDATION_ERROR, f'Path "{path}" does not exist or is not a directory.')
        return path

    def run(self) -> ReportResult:
        """Generate the report.

        The project path is checked before any network or hashing work.
        Client errors from the signature fetch propagate unchanged.
        """
        path = self.validated_project_path()
        self.logger.info("Fetching code origin signatures for workspace %s", self.workspace_id)
        remote = self.client.fetch_signatures(self.workspace_id)
        self.logger.info("Analyzing local files in %s", path)
        scan = scan_codebase(path)
        metrics = compute_metrics(scan.signatures, remote, scan.total_files)
        overlap = compute_unique_overlap(scan.signatures, remote)
        return ReportResult(project_path=path, metrics=metrics, overlap=overlap)


__all__ = ["ReportResult", "ReportService", "SignatureSource"]
