"""Exception normalization utilities for shared error contracts."""

from __future__ import annotations

from typing import Iterator

from . import codes
from .factories import error_detail, internal_error
from .types import ErrorCategory, ErrorDetail

# (exception types, category, code, retryable, message used when str(exc) is empty)
_RULES: tuple[tuple[tuple[type[BaseException], ...], ErrorCategory, str, bool, str], ...] = (
    (
        (TimeoutError,),
        ErrorCategory.DEPENDENCY,
        codes.DEPENDENCY_TIMEOUT,
        True,
        "dependency timeout",
    ),
    (
        (ConnectionError,),
        ErrorCategory.DEPENDENCY,
        codes.DEPENDENCY_UNAVAILABLE,
        True,
        "dependency unavailable",
    ),
    (
        (TypeError, ValueError),
        ErrorCategory.VALIDATION,
        codes.INVALID_ARGUMENT,
        False,
        "invalid value",
    ),
)


def exception_to_error(exc: BaseException) -> ErrorDetail:
    """Normalize a Python exception into a shared ``ErrorDetail``.

    The exception and then its explicit ``__cause__`` chain are matched
    against the rules in order, so a wrapper raised ``from`` a connection
    failure still classifies as a dependency problem. Unmatched exceptions
    become internal errors.
    """
    for candidate in _cause_chain(exc):
        for matches, category, code, retryable, fallback in _RULES:
            if isinstance(candidate, matches):
                return error_detail(
                    category,
                    str(candidate) or fallback,
                    code=code,
                    retryable=retryable,
                    metadata={
                        "exception_type": type(exc).__name__,
                        "cause_type": None if candidate is exc else type(candidate).__name__,
                    },
                )

    return internal_error(
        str(exc) or "unexpected exception",
        code=codes.UNEXPECTED_EXCEPTION,
        metadata={"exception_type": type(exc).__name__},
    )


def _cause_chain(exc: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__
