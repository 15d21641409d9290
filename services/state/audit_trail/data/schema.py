"""SQLAlchemy table definitions owned by the audit trail."""

from __future__ import annotations

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Engine,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
)

metadata = MetaData()

audit_entries = Table(
    "audit_entries",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("record_name", String(255), nullable=False),
    Column("record_id", String(255), nullable=False),
    Column("action", String(16), nullable=False),
    Column("changed_by", String(255), nullable=False),
    Column("timestamp", DateTime(timezone=True), nullable=False),
    Column("changes_payload", Text, nullable=False),
    CheckConstraint(
        "action IN ('CREATE', 'UPDATE')", name="ck_audit_entries_action"
    ),
    Index("ix_audit_entries_record", "record_name", "record_id"),
    Index("ix_audit_entries_timestamp", "timestamp"),
)


def bootstrap_audit_schema(engine: Engine) -> None:
    """Create audit tables that do not exist yet."""
    metadata.create_all(engine, checkfirst=True)
