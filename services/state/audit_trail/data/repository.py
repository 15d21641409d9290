"""Append-only SQL repository for audit entries."""

from __future__ import annotations

from sqlalchemy import insert
from sqlalchemy.orm import Session

from services.state.audit_trail.domain import AuditEntry
from services.state.audit_trail.interfaces import AuditStore

from .schema import audit_entries


class SqlAuditStore(AuditStore):
    """Insert-only repository over the ``audit_entries`` table."""

    def append(self, session: Session, entry: AuditEntry) -> int:
        """Insert one entry in ``session``'s transaction and return its id."""
        result = session.execute(
            insert(audit_entries).values(
                record_name=entry.record_name,
                record_id=entry.record_id,
                action=entry.action.value,
                changed_by=entry.changed_by,
                timestamp=entry.timestamp,
                changes_payload=entry.changes_payload,
            )
        )
        primary_key = result.inserted_primary_key
        if primary_key is None or primary_key[0] is None:
            raise RuntimeError("audit store did not assign an entry id")
        return int(primary_key[0])
