"""
Monitoring and observability.

- metrics.py: Prometheus counters and histograms for the labeling pipeline
"""

from reply_labeler.monitoring.metrics import (
    events_processed_total,
    event_failures_total,
    post_cache_requests_total,
    oracle_latency_seconds,
    oracle_failures_total,
    labels_emitted_total,
    labels_deduplicated_total,
    audit_entries_total,
    audit_failures_total,
    dlq_entries_total,
    retries_total,
)

__all__ = [
    "events_processed_total",
    "event_failures_total",
    "post_cache_requests_total",
    "oracle_latency_seconds",
    "oracle_failures_total",
    "labels_emitted_total",
    "labels_deduplicated_total",
    "audit_entries_total",
    "audit_failures_total",
    "dlq_entries_total",
    "retries_total",
]
