"""Logging helpers."""

from __future__ import annotations

import json
import logging
import sys
from contextlib import contextmanager
from typing import Any, Iterable, Iterator

_RESERVED_ATTRS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "message",
    "asctime",
    "taskName",
}

_PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class JsonFormatter(logging.Formatter):
    """Render log records as compact JSON."""

    default_time_format = "%Y-%m-%dT%H:%M:%S"
    default_msec_format = "%s.%03dZ"

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.default_time_format),
            "level": record.levelname,
            "logger": record.name,
            "message": message,
        }

        extras = {
            key: value for key, value in record.__dict__.items() if key not in _RESERVED_ATTRS
        }
        if extras:
            data.update(extras)

        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)

        return json.dumps(data, ensure_ascii=False, default=str)


class LogNoiseFilter(logging.Filter):
    """Drops records whose message contains any of the given fragments."""

    def __init__(self, fragments: Iterable[str]) -> None:
        super().__init__()
        self.fragments = tuple(fragments)
        self.suppressed = 0

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        if any(fragment in message for fragment in self.fragments):
            self.suppressed += 1
            return False
        return True


@contextmanager
def scoped_log_filter(
    log_filter: logging.Filter, logger_names: Iterable[str]
) -> Iterator[logging.Filter]:
    """Attach ``log_filter`` to the named loggers and detach it on exit."""
    loggers = [logging.getLogger(name) for name in logger_names]
    for logger in loggers:
        logger.addFilter(log_filter)
    try:
        yield log_filter
    finally:
        for logger in loggers:
            logger.removeFilter(log_filter)


def configure_logging(
    *,
    level: int = logging.INFO,
    structured: bool | None = None,
) -> None:
    """Configure root logging with optional JSON output."""

    root = logging.getLogger()
    root.setLevel(level)

    if root.handlers:
        if structured is None:
            return
        formatter: logging.Formatter
        if structured:
            formatter = JsonFormatter()
        else:
            formatter = logging.Formatter(_PLAIN_FORMAT)
        for handler in root.handlers:
            handler.setFormatter(formatter)
        return

    handler = logging.StreamHandler(sys.stderr)
    if structured:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(_PLAIN_FORMAT))
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


__all__ = [
    "configure_logging",
    "get_logger",
    "JsonFormatter",
    "LogNoiseFilter",
    "scoped_log_filter",
]
