"""Wiring for the change-capture pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable

from sqlalchemy.orm import Mapper, Session, sessionmaker

from packages.changetrail_shared.config import ChangeTrailSettings
from services.state.audit_trail.capture import ChangeCaptureHook
from services.state.audit_trail.data import AuditSqlRuntime, SqlAuditStore
from services.state.audit_trail.dispatcher import ChangeEventDispatcher
from services.state.audit_trail.enrollment import AuditRegistry
from services.state.audit_trail.identity import ActorProvider, StaticActorProvider
from services.state.audit_trail.interfaces import AuditStore
from services.state.audit_trail.recorder import AuditRecorder
from services.state.audit_trail.serialization import ChangesSerializer, JsonChangesSerializer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuditTrail:
    """Assembled pipeline: registry -> hook -> dispatcher -> recorder."""

    settings: ChangeTrailSettings
    registry: AuditRegistry
    dispatcher: ChangeEventDispatcher
    recorder: AuditRecorder
    hook: ChangeCaptureHook

    def install(self, target: Any = Mapper) -> bool:
        """Attach the capture hook unless auditing is disabled by settings."""
        if not self.settings.audit_trail.enabled:
            logger.info("Audit trail disabled; capture hook not installed")
            return False
        self.hook.install(target)
        return True

    def uninstall(self) -> None:
        """Detach the capture hook from every target."""
        self.hook.uninstall()


def build_audit_trail(
    settings: ChangeTrailSettings,
    *,
    session_factory: sessionmaker[Session] | None = None,
    registry: AuditRegistry | None = None,
    store: AuditStore | None = None,
    serializer: ChangesSerializer | None = None,
    actor_provider: ActorProvider | None = None,
    clock: Callable[[], datetime] | None = None,
) -> AuditTrail:
    """Build the pipeline and subscribe the recorder exactly once.

    ``session_factory`` must produce sessions for the audit store; when
    omitted one is built from ``settings.audit_store``.
    """
    if session_factory is None:
        session_factory = AuditSqlRuntime.from_settings(settings).session_factory

    recorder_kwargs: dict[str, Any] = {}
    if clock is not None:
        recorder_kwargs["clock"] = clock
    recorder = AuditRecorder(
        session_factory=session_factory,
        store=store or SqlAuditStore(),
        serializer=serializer
        or JsonChangesSerializer(sort_keys=settings.audit_trail.sort_keys),
        actor_provider=actor_provider
        or StaticActorProvider(settings.audit_trail.changed_by),
        **recorder_kwargs,
    )

    dispatcher = ChangeEventDispatcher()
    dispatcher.subscribe(recorder.on_change_event)

    resolved_registry = registry or AuditRegistry()
    return AuditTrail(
        settings=settings,
        registry=resolved_registry,
        dispatcher=dispatcher,
        recorder=recorder,
        hook=ChangeCaptureHook(registry=resolved_registry, dispatcher=dispatcher),
    )
