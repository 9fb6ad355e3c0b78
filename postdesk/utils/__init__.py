"""Utility exports."""

from .file_helper import ensure_parent, read_text, write_text
from .logging import (
    JsonFormatter,
    LogNoiseFilter,
    configure_logging,
    get_logger,
    scoped_log_filter,
)

__all__ = [
    "ensure_parent",
    "read_text",
    "write_text",
    "configure_logging",
    "get_logger",
    "JsonFormatter",
    "LogNoiseFilter",
    "scoped_log_filter",
]
