"""Shared fixtures for audit trail tests.

Domain records and audit entries live in two separate SQLite files so the
recorder's transaction is genuinely independent of the caller's.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest
from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

from packages.changetrail_shared.config import ChangeTrailSettings, StoreSettings, load_settings
from packages.changetrail_shared.logging.config import ContextFilter
from resources.substrates.sql import create_session_factory, create_store_engine
from services.state.audit_trail.data import bootstrap_audit_schema
from services.state.audit_trail.enrollment import AuditRegistry
from services.state.audit_trail.service import AuditTrail, build_audit_trail
from services.state.audit_trail.tests.records import Base, Product


@pytest.fixture
def settings(tmp_path: Path) -> ChangeTrailSettings:
    return load_settings(
        cli_params={"audit_store": {"url": f"sqlite:///{tmp_path / 'audit.db'}"}},
        config_path=tmp_path / "absent.yaml",
    )


@pytest.fixture
def audit_engine(settings: ChangeTrailSettings) -> Iterator[Engine]:
    engine = create_store_engine(settings.audit_store)
    bootstrap_audit_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def audit_sessions(audit_engine: Engine) -> sessionmaker[Session]:
    return create_session_factory(audit_engine)


@pytest.fixture
def domain_engine(tmp_path: Path) -> Iterator[Engine]:
    engine = create_store_engine(StoreSettings(url=f"sqlite:///{tmp_path / 'domain.db'}"))
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def domain_sessions(domain_engine: Engine) -> sessionmaker[Session]:
    return create_session_factory(domain_engine)


@pytest.fixture
def default_domain_sessions(domain_engine: Engine) -> sessionmaker[Session]:
    """SQLAlchemy's stock session configuration: attributes expire on commit."""
    return sessionmaker(bind=domain_engine)


@pytest.fixture
def registry() -> AuditRegistry:
    registry = AuditRegistry()
    registry.enroll(Product)
    return registry


@pytest.fixture
def trail(
    settings: ChangeTrailSettings,
    audit_sessions: sessionmaker[Session],
    registry: AuditRegistry,
) -> Iterator[AuditTrail]:
    trail = build_audit_trail(settings, session_factory=audit_sessions, registry=registry)
    trail.install(Base)
    yield trail
    trail.uninstall()


@pytest.fixture
def context_caplog(caplog: pytest.LogCaptureFixture) -> Iterator[pytest.LogCaptureFixture]:
    """``caplog`` whose records carry bound logging context as attributes."""
    context_filter = ContextFilter()
    caplog.handler.addFilter(context_filter)
    yield caplog
    caplog.handler.removeFilter(context_filter)
