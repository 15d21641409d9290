"""Boundary contracts for the audit store."""

from __future__ import annotations

from typing import Protocol

from sqlalchemy.orm import Session

from services.state.audit_trail.domain import AuditEntry


class AuditStore(Protocol):
    """Append-only write path; no update, delete or query operations."""

    def append(self, session: Session, entry: AuditEntry) -> int:
        """Persist ``entry`` within ``session`` and return the assigned id."""
