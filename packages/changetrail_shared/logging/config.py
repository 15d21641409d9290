"""Stdout logging configuration for changetrail processes.

Design goals:
- Always emit logs to stdout for container log collection.
- Carry audit context (record, action, entry) as structured fields.
- Keep API simple while allowing later extension without breaking callers.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any, Mapping, TextIO

from . import fields
from .context import bind_context, get_context

# Attributes every LogRecord already owns; bound context must not shadow them.
_RECORD_ATTRIBUTES = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime"}


class ContextFilter(logging.Filter):
    """Inject bound audit context into each log record.

    The full mapping is attached as ``record.context``; keys that do not
    collide with built-in record attributes are also set individually so
    handlers like pytest's ``caplog`` can read ``record.error_code``.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        context = get_context()
        record.context = context
        for key, value in context.items():
            if key not in _RECORD_ATTRIBUTES:
                setattr(record, key, value)
        return True


class JsonFormatter(logging.Formatter):
    """Emit one JSON object per line with stable core fields first."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            fields.TIMESTAMP: datetime.fromtimestamp(record.created, UTC).isoformat(),
            fields.LEVEL: record.levelname,
            fields.LOGGER: record.name,
            fields.MESSAGE: record.getMessage(),
            fields.THREAD: record.threadName,
        }

        context = getattr(record, "context", None)
        if isinstance(context, dict):
            for key, value in context.items():
                payload.setdefault(key, value)

        if record.exc_info and record.exc_info[0] is not None:
            payload[fields.EXCEPTION_TYPE] = record.exc_info[0].__name__
            payload[fields.EXCEPTION] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str, separators=(",", ":"))


class PlainFormatter(logging.Formatter):
    """Human-readable formatter that appends context as ``key=value`` pairs."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)-8s [%(threadName)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = getattr(record, "context", None)
        if not isinstance(context, dict) or not context:
            return message
        pairs = (f"{key}={_quote(value)}" for key, value in sorted(context.items()))
        if "\n" in message:
            head, _, tail = message.partition("\n")
            return f"{head} {' '.join(pairs)}\n{tail}"
        return f"{message} {' '.join(pairs)}"


def configure_logging(
    *,
    level: str = "INFO",
    json_output: bool = True,
    service: str | None = None,
    environment: str | None = None,
    stream: TextIO | None = None,
    logger_levels: Mapping[str, str] | None = None,
) -> logging.Handler:
    """Install a single stdout handler on the root logger and return it.

    Existing root handlers are replaced so repeated calls never duplicate
    emissions. ``logger_levels`` pins individual loggers, for example
    ``{"sqlalchemy.engine": "WARNING"}``.
    """
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level.upper())

    handler = logging.StreamHandler(stream=stream if stream is not None else sys.stdout)
    handler.setLevel(level.upper())
    handler.addFilter(ContextFilter())
    handler.setFormatter(JsonFormatter() if json_output else PlainFormatter())
    root.addHandler(handler)

    for name, logger_level in (logger_levels or {}).items():
        logging.getLogger(name).setLevel(logger_level.upper())

    bind_context(**{fields.SERVICE: service, fields.ENVIRONMENT: environment})
    return handler


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger using Python's standard logging hierarchy."""
    return logging.getLogger(name)


def _quote(value: str) -> str:
    if not value or any(char.isspace() for char in value):
        return json.dumps(value, ensure_ascii=False)
    return value
