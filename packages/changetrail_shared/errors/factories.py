"""Factory helpers for creating consistent shared errors."""

from __future__ import annotations

from typing import Mapping

from . import codes
from .types import ErrorCategory, ErrorDetail


def error_detail(
    category: ErrorCategory,
    message: str,
    *,
    code: str,
    retryable: bool = False,
    metadata: Mapping[str, object] | None = None,
) -> ErrorDetail:
    """Build an ``ErrorDetail`` with metadata flattened to strings.

    ``None`` metadata values are dropped so optional facts (a driver
    exception type, a handler name) can be passed unconditionally.
    """
    return ErrorDetail(
        code=code,
        message=message,
        category=category,
        retryable=retryable,
        metadata={
            str(key): str(value)
            for key, value in (metadata or {}).items()
            if value is not None
        },
    )


def validation_error(
    message: str,
    *,
    code: str = codes.VALIDATION_ERROR,
    metadata: Mapping[str, object] | None = None,
) -> ErrorDetail:
    """Input the audit path was handed cannot be processed as given."""
    return error_detail(ErrorCategory.VALIDATION, message, code=code, metadata=metadata)


def dependency_error(
    message: str,
    *,
    code: str = codes.DEPENDENCY_FAILURE,
    retryable: bool = True,
    metadata: Mapping[str, object] | None = None,
) -> ErrorDetail:
    """An external system (usually the audit database) failed."""
    return error_detail(
        ErrorCategory.DEPENDENCY,
        message,
        code=code,
        retryable=retryable,
        metadata=metadata,
    )


def internal_error(
    message: str,
    *,
    code: str = codes.INTERNAL_ERROR,
    metadata: Mapping[str, object] | None = None,
) -> ErrorDetail:
    """Unexpected failure inside changetrail code or a subscriber."""
    return error_detail(ErrorCategory.INTERNAL, message, code=code, metadata=metadata)
