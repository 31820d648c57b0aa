"""
Logging context management for ormgarden.

Lets the garden tag every log line emitted while a schema or table is being
generated, without threading those values through each call.
"""

from __future__ import annotations

import contextvars
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

_log_context: contextvars.ContextVar[dict[str, Any] | None] = contextvars.ContextVar(
    "ormgarden_log_context",
    default=None,
)


def get_log_context() -> dict[str, Any]:
    """Get the current log context."""
    ctx = _log_context.get()
    return ctx.copy() if ctx else {}


def clear_log_context() -> None:
    """Clear the current log context."""
    _log_context.set(None)


@contextmanager
def with_log_context(**kwargs: Any) -> Iterator[None]:
    """
    Add fields to the log context within a scope.

    Example:
        with with_log_context(schema="sales", table="orders"):
            logger.info("written")  # carries schema and table
    """
    previous = _log_context.get()
    new_context = previous.copy() if previous else {}
    new_context.update(kwargs)
    _log_context.set(new_context)

    try:
        yield
    finally:
        _log_context.set(previous)


class ContextFilter(logging.Filter):
    """
    Logging filter that injects context fields into log records.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """Add context fields to the log record."""
        for key, value in get_log_context().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True
