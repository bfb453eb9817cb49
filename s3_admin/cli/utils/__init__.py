"""CLI utility functions."""

from .async_runner import coro
from .formatters import error, format_bytes, info, section, success, warning

__all__ = [
    "coro",
    "error",
    "format_bytes",
    "info",
    "section",
    "success",
    "warning",
]
