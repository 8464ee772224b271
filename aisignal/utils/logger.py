"""Structured logging configuration using structlog."""

import logging
import sys
import uuid
from contextlib import AbstractContextManager
from typing import Any, Optional

import structlog

from aisignal.utils.config import get_settings


def configure_logging() -> None:
    """Configure structured logging for the application."""
    settings = get_settings()

    # Configure standard library logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level),
    )

    # Shared processors for all outputs
    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.ExtraAdder(),
    ]

    if settings.env == "development":
        renderers: list[Any] = [structlog.dev.ConsoleRenderer(colors=True)]
    else:
        # JSON output for production and test runs
        renderers = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=shared_processors + renderers,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a logger instance.

    Args:
        name: Logger name. If None, uses the calling module name.

    Returns:
        Configured structlog logger.
    """
    return structlog.get_logger(name)


def get_signal_logger() -> structlog.stdlib.BoundLogger:
    """Get a dedicated logger for emitted signals.

    Returns:
        Logger used for the per-request signal audit trail.
    """
    return structlog.get_logger("signals")


def new_request_id() -> str:
    """Short random id used to correlate the log lines of one request."""
    return uuid.uuid4().hex[:12]


def request_context(
    request_id: Optional[str] = None, **fields: Any
) -> AbstractContextManager:
    """Bind request fields to every log line emitted inside the block.

    Relies on merge_contextvars being the first processor, so anything logged
    while the request is handled (validation, model call, guard rails, the
    signal audit line) carries the same request_id.

    Args:
        request_id: Caller-supplied id (a fresh one is generated if None)
        **fields: Extra fields such as method and path

    Returns:
        Context manager that unbinds the fields on exit
    """
    return structlog.contextvars.bound_contextvars(
        request_id=request_id or new_request_id(), **fields
    )


# Initialize logging on import
configure_logging()
