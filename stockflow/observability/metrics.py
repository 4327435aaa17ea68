"""
Prometheus metrics for the stockflow ingestion pipeline

Counters and histograms for staging and promotion, registered on a
module-level registry so tests and the CLI can scrape them.
"""
import os
from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
    start_http_server,
)

REGISTRY = CollectorRegistry()


# =======================
# STAGING METRICS
# =======================

rows_staged_total = Counter(
    name="stockflow_rows_staged_total",
    documentation="Total number of staging rows written",
    labelnames=["source", "status"],  # status: valid, invalid
    registry=REGISTRY,
)

import_jobs_total = Counter(
    name="stockflow_import_jobs_total",
    documentation="Import jobs by terminal status",
    labelnames=["source", "status", "reason"],
    registry=REGISTRY,
)

validation_failures_total = Counter(
    name="stockflow_validation_failures_total",
    documentation="Row validation failures by rule",
    labelnames=["rule_type", "field_name"],
    registry=REGISTRY,
)

ingestion_duration_seconds = Histogram(
    name="stockflow_ingestion_duration_seconds",
    documentation="Time spent staging an upload",
    labelnames=["source"],
    buckets=[0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0],
    registry=REGISTRY,
)

# =======================
# PROMOTION METRICS
# =======================

products_promoted_total = Counter(
    name="stockflow_products_promoted_total",
    documentation="Products upserted by promotion",
    labelnames=["outcome"],  # outcome: created, updated
    registry=REGISTRY,
)

inventory_snapshots_total = Counter(
    name="stockflow_inventory_snapshots_total",
    documentation="Inventory snapshots appended by promotion",
    registry=REGISTRY,
)

promotion_duration_seconds = Histogram(
    name="stockflow_promotion_duration_seconds",
    documentation="Time spent promoting a staged job",
    buckets=[0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0],
    registry=REGISTRY,
)


def generate_metrics() -> bytes:
    """Render all metrics in Prometheus text format"""
    return generate_latest(REGISTRY)


def get_content_type() -> str:
    """Content type for the Prometheus exposition format"""
    return CONTENT_TYPE_LATEST


def start_metrics_server(port: Optional[int] = None) -> None:
    """
    Start an HTTP server exposing the metrics registry

    Args:
        port: Port to listen on (defaults to METRICS_PORT or 9108)
    """
    port = port or int(os.getenv("METRICS_PORT", "9108"))
    start_http_server(port, registry=REGISTRY)


def increment_counter(counter: Counter, value: float = 1.0, **labels) -> None:
    if value <= 0:
        return
    if labels:
        counter.labels(**labels).inc(value)
    else:
        counter.inc(value)


def observe_histogram(histogram: Histogram, value: float, **labels) -> None:
    if labels:
        histogram.labels(**labels).observe(value)
    else:
        histogram.observe(value)


def record_ingestion(
    source: str,
    status: str,
    reason: str,
    valid_rows: int,
    invalid_rows: int,
    duration_seconds: float,
) -> None:
    """
    Record the outcome of one staged upload.

    Args:
        source: Origin tag of the upload
        status: Terminal job status (COMPLETED or FAILED)
        reason: Failure reason tag, or "ok"
        valid_rows: Rows staged VALID
        invalid_rows: Rows staged INVALID
        duration_seconds: Wall time of the ingestion
    """
    increment_counter(rows_staged_total, valid_rows, source=source, status="valid")
    increment_counter(rows_staged_total, invalid_rows, source=source, status="invalid")
    increment_counter(import_jobs_total, 1, source=source, status=status, reason=reason)
    observe_histogram(ingestion_duration_seconds, duration_seconds, source=source)


def record_validation_failure(rule_type: str, field_name: str) -> None:
    increment_counter(validation_failures_total, 1, rule_type=rule_type, field_name=field_name)


def record_promotion(created: int, updated: int, snapshots: int, duration_seconds: float) -> None:
    """Record the counts returned by one promotion run."""
    increment_counter(products_promoted_total, created, outcome="created")
    increment_counter(products_promoted_total, updated, outcome="updated")
    increment_counter(inventory_snapshots_total, snapshots)
    observe_histogram(promotion_duration_seconds, duration_seconds)
