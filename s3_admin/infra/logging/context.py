"""Context management for structured logging.

Provides automatic context injection into log records using contextvars, so
the request ID assigned by the HTTP middleware shows up in every log line
emitted while that request is handled, including logs from the storage layer.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Any

# Each async task gets its own copy automatically
_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})


def set_log_context(**kwargs: Any) -> None:
    """Set logging context for the current async task.

    Args:
        **kwargs: Key-value pairs to add to logging context
            (e.g. request_id, bucket).

    Example:
        set_log_context(request_id="abc-123")
        logger.info("Deleting bucket")  # record carries request_id
    """
    current = _log_context.get().copy()
    current.update(kwargs)
    _log_context.set(current)


def get_log_context() -> dict[str, Any]:
    """Get a copy of the current logging context."""
    return _log_context.get().copy()


def clear_log_context() -> None:
    """Clear all logging context for the current async task."""
    _log_context.set({})


class ContextInjectingFilter(logging.Filter):
    """Logging filter that injects the contextvars context into LogRecords.

    Attached to the queue handler by ``configure_logging`` so every logger
    benefits without code changes. Existing record attributes (including
    values passed via ``extra=``) are never overwritten.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """Inject context into log record.

        Args:
            record: The log record to enhance with context.

        Returns:
            True (always allow the record to be logged).
        """
        for key, value in _log_context.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True
