"""SQLAlchemy exception normalization helpers."""

from __future__ import annotations

from sqlalchemy import exc as sa_exc

from packages.changetrail_shared.errors import (
    ErrorDetail,
    codes,
    dependency_error,
    exception_to_error,
)


def normalize_sql_error(exc: Exception) -> ErrorDetail:
    """Map low-level DB exceptions into shared structured error semantics."""
    metadata = {"exception_type": type(exc).__name__}
    orig = getattr(exc, "orig", None)
    if orig is not None:
        metadata["driver_exception_type"] = type(orig).__name__

    if isinstance(exc, sa_exc.IntegrityError):
        return dependency_error(
            "audit store rejected row",
            code=codes.CONSTRAINT_VIOLATION,
            retryable=False,
            metadata=metadata,
        )

    if isinstance(exc, (sa_exc.OperationalError, sa_exc.TimeoutError)):
        return dependency_error(
            "audit store unavailable",
            code=codes.DEPENDENCY_UNAVAILABLE,
            retryable=True,
            metadata=metadata,
        )

    if isinstance(exc, sa_exc.SQLAlchemyError):
        return dependency_error(
            "audit store request failed",
            code=codes.DEPENDENCY_FAILURE,
            retryable=False,
            metadata=metadata,
        )

    return exception_to_error(exc)
