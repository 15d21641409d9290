"""Context propagation helpers for structured logging.

The context lives in a ``contextvars`` variable, so each thread running its
own mutation (and therefore its own audit pipeline) sees only the fields it
bound itself.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from enum import Enum
from typing import Iterator, Mapping

_LOG_CONTEXT: ContextVar[Mapping[str, str]] = ContextVar(
    "changetrail_log_context", default={}
)


def get_context() -> dict[str, str]:
    """Return a shallow copy of current logging context."""
    return dict(_LOG_CONTEXT.get())


def bind_context(**values: object) -> None:
    """Bind values into the current context until cleared.

    Values are stringified (enums by value) and ``None`` values are ignored.
    """
    if values:
        _LOG_CONTEXT.set(_merged(_LOG_CONTEXT.get(), values))


def clear_context(*keys: str) -> None:
    """Clear selected keys or the entire logging context."""
    if not keys:
        _LOG_CONTEXT.set({})
        return
    _LOG_CONTEXT.set(
        {key: value for key, value in _LOG_CONTEXT.get().items() if key not in keys}
    )


@contextmanager
def log_context(
    values: Mapping[str, object] | None = None, /, **extra: object
) -> Iterator[None]:
    """Bind ``values`` and ``extra`` for the duration of a block.

    Nested blocks layer on top of outer ones; leaving a block restores the
    outer context exactly, even when the block raises.
    """
    combined = {**(values or {}), **extra}
    token = _LOG_CONTEXT.set(_merged(_LOG_CONTEXT.get(), combined))
    try:
        yield
    finally:
        _LOG_CONTEXT.reset(token)


def _merged(current: Mapping[str, str], values: Mapping[str, object]) -> dict[str, str]:
    merged = dict(current)
    for key, value in values.items():
        if value is None:
            continue
        merged[str(key)] = _render(value)
    return merged


def _render(value: object) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)
