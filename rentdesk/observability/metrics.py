"""Prometheus metrics for Rentdesk.

Tracks identity edit batches, propagation writes and undo outcomes.
"""

from prometheus_client import Counter, Histogram

# Request metrics
REQUEST_COUNT = Counter(
    "rentdesk_request_count_total",
    "Total number of requests processed",
    labelnames=["endpoint", "status"],
)

# Batch submission metrics
EDIT_BATCHES = Counter(
    "rentdesk_edit_batches_total",
    "Agent edit batches submitted, by outcome",
    labelnames=["outcome"],
)

EDIT_REJECTIONS = Counter(
    "rentdesk_edit_rejections_total",
    "Per-agent edit errors returned to callers",
    labelnames=["kind"],
)

# Propagation metrics
PROPAGATED_RECORDS = Counter(
    "rentdesk_propagated_records_total",
    "Records rewritten while propagating identity changes",
    labelnames=["collection", "direction"],
)

PROPAGATION_FAILURES = Counter(
    "rentdesk_propagation_failures_total",
    "Identity propagations that stopped partway",
    labelnames=["step", "direction"],
)

# Undo metrics
UNDO_COUNT = Counter(
    "rentdesk_undo_count_total",
    "Undo requests, by outcome",
    labelnames=["outcome"],
)

UNDO_LATENCY = Histogram(
    "rentdesk_undo_latency_seconds",
    "Time taken to revert a batch",
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# Background job metrics
WORKFLOW_EXECUTIONS = Counter(
    "rentdesk_workflow_executions_total",
    "Total workflow executions",
    labelnames=["workflow_name", "status"],
)
