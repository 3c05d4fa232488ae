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

INGESTED_FILES = Counter(
    "doctalk_ingested_files_total",
    "Files handled by the ingest pipeline",
    labelnames=("status",),
    registry=REGISTRY,
)

CHUNKS_CREATED = Counter(
    "doctalk_chunks_created_total",
    "Chunks persisted to the vector store",
    registry=REGISTRY,
)

INGEST_DURATION = Histogram(
    "doctalk_ingest_duration_seconds",
    "Ingest pipeline duration per folder",
    registry=REGISTRY,
)

RETRIEVAL_LATENCY = Histogram(
    "doctalk_retrieval_latency_seconds",
    "Latency of query plus re-rank",
    registry=REGISTRY,
)

CHAT_REQUESTS = Counter(
    "doctalk_chat_requests_total",
    "Chat turns by outcome",
    labelnames=("status",),
    registry=REGISTRY,
)


def metrics_response() -> Response:
    """Return Prometheus metrics as an HTTP response."""
    payload = generate_latest(REGISTRY)
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "REGISTRY",
    "INGESTED_FILES",
    "CHUNKS_CREATED",
    "INGEST_DURATION",
    "RETRIEVAL_LATENCY",
    "CHAT_REQUESTS",
    "metrics_response",
]
