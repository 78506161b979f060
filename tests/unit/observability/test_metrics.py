"""Tests for Prometheus metrics."""

from prometheus_client import REGISTRY

from rentdesk.observability.metrics import (
    EDIT_BATCHES,
    PROPAGATED_RECORDS,
    UNDO_COUNT,
    UNDO_LATENCY,
)


def sample(name: str, labels: dict[str, str] | None = None) -> float:
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


class TestEditMetrics:
    """Tests for batch and propagation counters."""

    def test_batch_outcome_counter(self) -> None:
        before = sample("rentdesk_edit_batches_total", {"outcome": "applied"})

        EDIT_BATCHES.labels(outcome="applied").inc()

        assert sample("rentdesk_edit_batches_total", {"outcome": "applied"}) == before + 1

    def test_propagated_records_by_collection(self) -> None:
        labels = {"collection": "tenants", "direction": "forward"}
        before = sample("rentdesk_propagated_records_total", labels)

        PROPAGATED_RECORDS.labels(**labels).inc(3)

        assert sample("rentdesk_propagated_records_total", labels) == before + 3


class TestUndoMetrics:
    """Tests for undo counters and latency."""

    def test_undo_counter(self) -> None:
        before = sample("rentdesk_undo_count_total", {"outcome": "undone"})

        UNDO_COUNT.labels(outcome="undone").inc()

        assert sample("rentdesk_undo_count_total", {"outcome": "undone"}) == before + 1

    def test_undo_latency_histogram(self) -> None:
        before = sample("rentdesk_undo_latency_seconds_count")

        UNDO_LATENCY.observe(0.2)

        assert sample("rentdesk_undo_latency_seconds_count") == before + 1
