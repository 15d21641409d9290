"""Registry of record types that opt in to auditing.

A type is auditable when it is enrolled explicitly (``enroll`` or the
``auditable`` decorator) or when it exposes the ``__audit_fields__``
capability. Subclasses of an enrolled type are auditable too.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Iterable, TypeVar

from sqlalchemy import inspect
from sqlalchemy.orm import Mapper

AUDIT_FIELDS_ATTRIBUTE = "__audit_fields__"

T = TypeVar("T", bound=type)


class AuditRegistry:
    """Enrolled record types and the fields audited for each."""

    def __init__(self, *, honor_capability: bool = True) -> None:
        self._honor_capability = honor_capability
        self._lock = threading.Lock()
        self._enrolled: dict[type, tuple[str, ...] | None] = {}

    def enroll(self, record_type: type, fields: Iterable[str] | None = None) -> type:
        """Enroll ``record_type``; ``fields=None`` audits every mapped column.

        Declared field names of a mapped class must name its columns; an
        unknown name raises ``ValueError`` here rather than at flush time.
        """
        if not isinstance(record_type, type):
            raise TypeError(f"expected a class, got {record_type!r}")
        declared = None if fields is None else tuple(fields)
        if declared is not None and not declared:
            raise ValueError(f"{record_type.__name__} enrolled with an empty field list")
        if declared is not None:
            _check_declared_fields(record_type, declared)
        with self._lock:
            self._enrolled[record_type] = declared
        return record_type

    def enrolled_types(self) -> tuple[type, ...]:
        """Return enrolled types in enrollment order."""
        with self._lock:
            return tuple(self._enrolled)

    def is_enrolled(self, record: Any) -> bool:
        """Return ``True`` when ``record``'s type or one of its bases is enrolled."""
        return self.is_enrolled_type(type(record))

    def is_enrolled_type(self, record_type: type) -> bool:
        return self._resolve(record_type) is not None

    def fields_for(self, record: Any) -> tuple[str, ...]:
        """Return the audited field names for ``record`` in a stable order."""
        owner = self._resolve(type(record))
        if owner is None:
            raise LookupError(f"{type(record).__name__} is not enrolled for auditing")
        with self._lock:
            declared = self._enrolled[owner]
        if declared is not None:
            return declared
        return mapped_fields(inspect(type(record)))

    def _resolve(self, record_type: type) -> type | None:
        with self._lock:
            for candidate in record_type.__mro__:
                if candidate in self._enrolled:
                    return candidate

        if not self._honor_capability:
            return None
        declared = getattr(record_type, AUDIT_FIELDS_ATTRIBUTE, None)
        if not declared:
            return None
        if isinstance(declared, str):
            declared = (declared,)
        self.enroll(record_type, declared)
        return record_type


def auditable(
    registry: AuditRegistry, *, fields: Iterable[str] | None = None
) -> Callable[[T], T]:
    """Class decorator enrolling a mapped class in ``registry``."""

    def decorate(record_type: T) -> T:
        registry.enroll(record_type, fields)
        return record_type

    return decorate


def _check_declared_fields(record_type: type, declared: tuple[str, ...]) -> None:
    mapper = inspect(record_type, raiseerr=False)
    if not isinstance(mapper, Mapper):
        return
    # ``columns`` is filled when the class is mapped; reading it does not configure mappers.
    known = set(mapper.columns.keys())
    unknown = [name for name in declared if name not in known]
    if unknown:
        raise ValueError(
            f"{record_type.__name__} declares unknown audit fields: {', '.join(unknown)}"
        )


def mapped_fields(mapper: Mapper[Any]) -> tuple[str, ...]:
    """Return column attribute keys of ``mapper`` excluding primary key columns."""
    primary_keys = {mapper.get_property_by_column(column).key for column in mapper.primary_key}
    return tuple(
        prop.key for prop in mapper.column_attrs if prop.key not in primary_keys
    )
