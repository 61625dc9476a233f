"""Prometheus metrics for the reconciler.

Every probe the waiter issues and every wait outcome is counted, labelled
by the wait name from ``compute_reconciler.polling.states.WAIT_SPECS`` so a
dashboard can tell a slow subnet delete apart from a stuck placement group.

Usage::

    from compute_reconciler.observability.metrics import WAITS_TOTAL

    WAITS_TOTAL.labels(wait="subnet_create", outcome="converged").inc()
"""

from __future__ import annotations

from prometheus_client import (
    REGISTRY,
    Counter,
    Histogram,
    generate_latest,
    CONTENT_TYPE_LATEST,
)

# ---------------------------------------------------------------------------
# Waiter metrics
# ---------------------------------------------------------------------------

PROBES_TOTAL = Counter(
    "compute_reconciler_probes_total",
    "Status probes issued by the waiter, by wait name and observed state.",
    labelnames=["wait", "state"],
    registry=REGISTRY,
)

WAITS_TOTAL = Counter(
    "compute_reconciler_waits_total",
    "Completed waits by wait name and outcome.",
    labelnames=["wait", "outcome"],
    registry=REGISTRY,
)

WAIT_DURATION_SECONDS = Histogram(
    "compute_reconciler_wait_duration_seconds",
    "Time spent converging a resource, in seconds.",
    labelnames=["wait"],
    buckets=(1.0, 5.0, 15.0, 30.0, 60.0, 180.0, 300.0, 600.0, 1200.0, 2400.0),
    registry=REGISTRY,
)

# ---------------------------------------------------------------------------
# Provider API metrics
# ---------------------------------------------------------------------------

API_REQUESTS_TOTAL = Counter(
    "compute_reconciler_api_requests_total",
    "Compute API calls by operation and outcome (ok, error, timeout).",
    labelnames=["operation", "status"],
    registry=REGISTRY,
)


def metrics_text() -> tuple[bytes, str]:
    """Generate Prometheus exposition text and content-type header."""
    return generate_latest(REGISTRY), CONTENT_TYPE_LATEST
