"""Observability infrastructure for the reconciler.

Provides structured logging and Prometheus metrics for the waiter, the
compute API client and the resource controllers.

Quick start::

    from compute_reconciler.observability import configure_logging
    from compute_reconciler.observability.metrics import metrics_text

    configure_logging()
"""

from .logging import (
    configure_logging,
    get_logger,
    operation_context,
    operation_id_ctx,
)
from .metrics import metrics_text

__all__ = [
    "configure_logging",
    "get_logger",
    "metrics_text",
    "operation_context",
    "operation_id_ctx",
]
