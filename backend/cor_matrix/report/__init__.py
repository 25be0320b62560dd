"""Retention reporting for scanned codebases."""

from cor_matrix.report.retention import (
    RetentionMetrics,
    UniqueOverlap,
    compute_metrics,
    compute_unique_overlap,
    format_report,
)
from cor_matrix.report.scanner import ScanResult, scan_codebase
from cor_matrix.report.service import ReportResult, ReportService

__all__ = [
    "ReportResult",
    "ReportService",
    "RetentionMetrics",
    "ScanResult",
    "UniqueOverlap",
    "compute_metrics",
    "compute_unique_overlap",
    "format_report",
    "scan_codebase",
]
