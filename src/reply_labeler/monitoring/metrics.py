"""Custom Prometheus metrics for the Reply Labeler.

These metrics are exposed on METRICS_PORT via prometheus_client's HTTP server.
Alert rules should be configured for:
- event_failures_total (oracle or labeler outages show up here first)
- audit_failures_total (Redis unavailable)
- dlq_entries_total (dropped events awaiting review)
"""

from prometheus_client import Counter, Histogram

# === Pipeline Metrics ===

events_processed_total = Counter(
    "events_processed_total",
    "Post events handled by the pipeline, by outcome",
    ["status"],
)
"""
Labels:
- status: labeled, unlabeled, no_ancestor, not_watched, empty_text, ignored
"""

event_failures_total = Counter(
    "event_failures_total",
    "Post events dropped because of an error",
    ["error_type"],
)
"""
Labels:
- error_type: exception class name (OracleTimeoutError, PostNotFound, ...)

Alert thresholds:
- WARN: failure rate > 5% of processed events
"""

# === Post Cache Metrics ===

post_cache_requests_total = Counter(
    "post_cache_requests_total",
    "Parent post lookups by cache result",
    ["result"],
)
"""
Labels:
- result: hit, miss, expired
"""

# === Oracle Metrics ===

oracle_latency_seconds = Histogram(
    "oracle_latency_seconds",
    "Classification oracle latency in seconds",
    ["model", "success"],
    buckets=[0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 20.0, 30.0],
)
"""
Buckets top out at the 30s classification deadline.
"""

oracle_failures_total = Counter(
    "oracle_failures_total",
    "Classification oracle failures by error type",
    ["error_type"],
)

# === Dispatch Metrics ===

labels_emitted_total = Counter(
    "labels_emitted_total",
    "Labels emitted to the labeler service",
    ["label"],
)

labels_deduplicated_total = Counter(
    "labels_deduplicated_total",
    "Emissions skipped because the ledger already held the (uri, label) pair",
    ["label"],
)

audit_entries_total = Counter(
    "audit_entries_total",
    "Audit entries written to the persistent store",
    ["label"],
)

audit_failures_total = Counter(
    "audit_failures_total",
    "Audit entries that could not be written",
)

dlq_entries_total = Counter(
    "dlq_entries_total",
    "Failed events pushed to the dead letter queue by reason",
    ["reason"],
)

# === Retry Metrics ===

retries_total = Counter(
    "retries_total",
    "Operations that needed more than one attempt, by boundary and outcome",
    ["boundary", "success"],
)
"""
Labels:
- boundary: oracle, labeler
- success: true (a later attempt succeeded), false (attempts exhausted)
"""
