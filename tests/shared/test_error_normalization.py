"""Tests for shared error normalization and SQL error mapping."""

from __future__ import annotations

from sqlalchemy import exc as sa_exc

from packages.changetrail_shared.errors import ErrorCategory, codes, exception_to_error
from resources.substrates.sql import normalize_sql_error


class _DriverError(Exception):
    pass


def test_generic_exceptions_map_to_categories() -> None:
    assert exception_to_error(ValueError("bad")).category is ErrorCategory.VALIDATION
    assert exception_to_error(TimeoutError()).code == codes.DEPENDENCY_TIMEOUT
    assert exception_to_error(ConnectionError()).retryable is True

    fallback = exception_to_error(RuntimeError("boom"))
    assert fallback.code == codes.UNEXPECTED_EXCEPTION
    assert fallback.metadata == {"exception_type": "RuntimeError"}


def test_sql_errors_map_to_dependency_failures() -> None:
    operational = normalize_sql_error(
        sa_exc.OperationalError("INSERT", {}, _DriverError("database is locked"))
    )
    integrity = normalize_sql_error(
        sa_exc.IntegrityError("INSERT", {}, _DriverError("CHECK constraint failed"))
    )
    generic = normalize_sql_error(sa_exc.InvalidRequestError("bad state"))

    assert operational.code == codes.DEPENDENCY_UNAVAILABLE
    assert operational.retryable is True
    assert operational.metadata["driver_exception_type"] == "_DriverError"
    assert integrity.code == codes.CONSTRAINT_VIOLATION
    assert integrity.retryable is False
    assert generic.code == codes.DEPENDENCY_FAILURE
    assert generic.category is ErrorCategory.DEPENDENCY


def test_non_sql_errors_fall_back_to_generic_mapping() -> None:
    assert normalize_sql_error(RuntimeError("x")).code == codes.UNEXPECTED_EXCEPTION


def test_wrapped_exceptions_classify_by_their_cause() -> None:
    try:
        try:
            raise ConnectionError("socket closed")
        except ConnectionError as inner:
            raise RuntimeError("audit write aborted") from inner
    except RuntimeError as outer:
        detail = exception_to_error(outer)

    assert detail.code == codes.DEPENDENCY_UNAVAILABLE
    assert detail.message == "socket closed"
    assert detail.metadata == {"exception_type": "RuntimeError", "cause_type": "ConnectionError"}


def test_error_detail_projects_log_fields() -> None:
    detail = exception_to_error(TimeoutError())

    assert detail.message == "dependency timeout"
    assert detail.log_fields() == {
        "error_code": codes.DEPENDENCY_TIMEOUT,
        "error_category": "dependency",
        "error_retryable": "true",
    }
