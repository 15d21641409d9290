"""Failure types raised and caught inside the audit path.

None of these escape to the code performing the audited mutation. Each one
carries an ``ErrorDetail`` so log lines share one structured shape.
"""

from __future__ import annotations

from packages.changetrail_shared.errors import (
    ErrorDetail,
    exception_to_error,
    internal_error,
    validation_error,
)
from resources.substrates.sql import normalize_sql_error

AUDIT_SERIALIZATION_FAILED = "AUDIT_SERIALIZATION_FAILED"
AUDIT_HANDLER_FAILED = "AUDIT_HANDLER_FAILED"


class AuditTrailError(Exception):
    """Base class for audit-path failures."""

    def __init__(self, detail: ErrorDetail) -> None:
        super().__init__(detail.message)
        self.detail = detail


class SerializationError(AuditTrailError):
    """The change map could not be rendered to its transport string."""

    @classmethod
    def from_exception(cls, exc: Exception) -> "SerializationError":
        detail = validation_error(
            f"change map is not serializable: {exc}",
            code=AUDIT_SERIALIZATION_FAILED,
            metadata=exception_to_error(exc).metadata,
        )
        return cls(detail)


class AuditPersistenceError(AuditTrailError):
    """The isolated transaction failed to commit an audit entry."""

    @classmethod
    def from_exception(cls, exc: Exception) -> "AuditPersistenceError":
        error = cls(normalize_sql_error(exc))
        error.__cause__ = exc
        return error


class HandlerFailure(AuditTrailError):
    """A dispatcher subscriber raised while handling a change event."""

    def __init__(self, detail: ErrorDetail, *, handler_name: str) -> None:
        super().__init__(detail)
        self.handler_name = handler_name

    @classmethod
    def from_exception(cls, exc: Exception, *, handler_name: str) -> "HandlerFailure":
        detail = internal_error(
            f"handler {handler_name} failed: {exc}",
            code=AUDIT_HANDLER_FAILED,
            metadata={"exception_type": type(exc).__name__, "handler": handler_name},
        )
        failure = cls(detail, handler_name=handler_name)
        failure.__cause__ = exc
        return failure
