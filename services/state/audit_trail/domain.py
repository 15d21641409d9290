"""Domain values for the change-capture pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping


class ChangeAction(str, Enum):
    """Mutation kinds that produce audit entries."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"


@dataclass(frozen=True)
class ChangeEvent:
    """One record's create/update diff, alive only for one dispatch.

    ``changes`` maps field name to ``"<old> -> <new>"``. It is copied into a
    read-only mapping and may never be empty.
    """

    record: Any
    record_id: Any
    action: ChangeAction
    changes: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.changes:
            raise ValueError("change event requires at least one changed field")
        object.__setattr__(self, "changes", MappingProxyType(dict(self.changes)))

    @property
    def record_name(self) -> str:
        """Return the audited record's type name."""
        return type(self.record).__name__


@dataclass(frozen=True)
class AuditEntry:
    """Durable description of one processed change event."""

    record_name: str
    record_id: str
    action: ChangeAction
    changed_by: str
    timestamp: datetime
    changes_payload: str
    id: int | None = None
