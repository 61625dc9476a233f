"""Structured logging configuration for the reconciler.

Configures structlog for JSON-formatted logging. Library modules keep using
``logging.getLogger(__name__)``; their records are rendered through the same
processor chain, so fields bound with ``operation_context()`` show up on
every line emitted while a controller call is in flight.

Usage::

    from compute_reconciler.observability.logging import (
        configure_logging,
        operation_context,
    )

    configure_logging()  # Call once at startup
    with operation_context(resource="subnet", action="delete", resource_id=sid):
        ...
"""

from __future__ import annotations

import logging
import os
import sys
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import IO, Iterator

import structlog

# Correlation ID for the controller call currently in flight.
operation_id_ctx: ContextVar[str | None] = ContextVar("operation_id", default=None)

_configured = False


def _add_operation_id(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict,
) -> dict:
    """Inject the current operation_id from context into every log entry."""
    oid = operation_id_ctx.get()
    if oid is not None:
        event_dict["operation_id"] = oid
    return event_dict


def configure_logging(
    *,
    level: str | None = None,
    json_output: bool | None = None,
    stream: IO[str] | None = None,
) -> None:
    """Configure structlog and stdlib logging.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR).
            Defaults to LOG_LEVEL env var or INFO.
        json_output: If True, emit JSON lines. If False, emit
            human-readable console output. Defaults to LOG_FORMAT
            env var == "json".
        stream: Where log lines are written. Defaults to stdout.
    """
    global _configured
    if _configured:
        return
    _configured = True

    level = level or os.environ.get("LOG_LEVEL", "INFO")
    if json_output is None:
        json_output = os.environ.get("LOG_FORMAT", "json") == "json"

    shared_processors: list = [
        structlog.contextvars.merge_contextvars,
        _add_operation_id,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.ExtraAdder(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Quiet noisy libraries.
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to the given name."""
    return structlog.get_logger(name)


@contextmanager
def operation_context(**fields: str) -> Iterator[str]:
    """Bind correlation fields for one controller call.

    Yields the generated operation_id. Nested calls (subnet create chaining
    into update) keep the outer operation_id.
    """
    outer = operation_id_ctx.get()
    operation_id = outer or uuid.uuid4().hex
    token = operation_id_ctx.set(operation_id)
    try:
        with structlog.contextvars.bound_contextvars(**fields):
            yield operation_id
    finally:
        operation_id_ctx.reset(token)
