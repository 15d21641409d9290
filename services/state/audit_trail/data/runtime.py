"""Audit store runtime wiring."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

from packages.changetrail_shared.config import ChangeTrailSettings
from resources.substrates.sql import create_session_factory, create_store_engine, ping


@dataclass(frozen=True)
class AuditSqlRuntime:
    """Engine and session factory dedicated to audit writes."""

    engine: Engine
    session_factory: sessionmaker[Session]

    @classmethod
    def from_settings(cls, settings: ChangeTrailSettings) -> "AuditSqlRuntime":
        """Build the audit DB runtime from typed application settings."""
        engine = create_store_engine(settings.audit_store)
        return cls(engine=engine, session_factory=create_session_factory(engine))

    def is_healthy(self) -> bool:
        """Return ``True`` when the backing database is reachable."""
        return ping(self.engine)
