"""Prometheus metrics instrumentation."""

from __future__ import annotations

from fastapi import Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

REQUEST_COUNT = Counter(
    "cor_requests_total",
    "Total HTTP requests",
    labelnames=("endpoint", "method", "status"),
    registry=REGISTRY,
)

REQUEST_LATENCY = Histogram(
    "cor_request_latency_seconds",
    "Latency of HTTP requests",
    labelnames=("endpoint", "method"),
    registry=REGISTRY,
)

RECORDS_STORED = Counter(
    "cor_records_total",
    "Origin records persisted",
    registry=REGISTRY,
)

SIGNATURES_STORED = Counter(
    "cor_signatures_total",
    "Line signatures persisted",
    registry=REGISTRY,
)

RECORDS_SKIPPED = Counter(
    "cor_record_batches_skipped_total",
    "Record batches skipped because the workspace does not exist",
    registry=REGISTRY,
)


def metrics_response() -> Response:
    """Return Prometheus metrics as an HTTP response."""
    payload = generate_latest(REGISTRY)
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "REGISTRY",
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "RECORDS_STORED",
    "SIGNATURES_STORED",
    "RECORDS_SKIPPED",
    "metrics_response",
]
