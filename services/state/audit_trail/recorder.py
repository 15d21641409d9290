"""Audit recorder: the dispatcher subscriber that persists change events.

Every failure here is terminal and local. A dropped entry is a gap in the
trail, logged with the record and action it belonged to; it is never raised
into the mutating caller and never retried.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Callable

from sqlalchemy.orm import Session, sessionmaker

from packages.changetrail_shared.logging import fields, log_context
from services.state.audit_trail.domain import AuditEntry, ChangeEvent
from services.state.audit_trail.errors import AuditPersistenceError, SerializationError
from services.state.audit_trail.identity import ActorProvider, StaticActorProvider
from services.state.audit_trail.interfaces import AuditStore
from services.state.audit_trail.serialization import ChangesSerializer, JsonChangesSerializer
from services.state.audit_trail.transactions import TransactionContext, isolated_transaction

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


class AuditRecorder:
    """Persist one audit entry per change event in an isolated transaction.

    Usage:
        recorder = AuditRecorder(session_factory=runtime.session_factory, store=SqlAuditStore())
        dispatcher.subscribe(recorder.on_change_event)
    """

    def __init__(
        self,
        *,
        session_factory: sessionmaker[Session],
        store: AuditStore,
        serializer: ChangesSerializer | None = None,
        actor_provider: ActorProvider | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._session_factory = session_factory
        self._store = store
        self._serializer = serializer or JsonChangesSerializer()
        self._actor_provider = actor_provider or StaticActorProvider()
        self._clock = clock

    def on_change_event(
        self,
        event: ChangeEvent,
        context: TransactionContext | None = None,
    ) -> int | None:
        """Record ``event`` and return the new entry id, or ``None`` when dropped.

        ``context`` names the caller's active session; it is handed to
        ``isolated_transaction`` and comes back unchanged on every path.
        """
        scope = context if context is not None else TransactionContext()
        with log_context(
            {
                fields.RECORD_NAME: event.record_name,
                fields.RECORD_ID: event.record_id,
                fields.ACTION: event.action.value,
            }
        ):
            try:
                payload = self._serializer.serialize(event.changes)
            except SerializationError as exc:
                self._log_dropped("Audit changes serialization failed", exc)
                return None
            except Exception as exc:
                error = SerializationError.from_exception(exc)
                error.__cause__ = exc
                self._log_dropped("Audit changes serialization failed", error)
                return None

            entry = self._build_entry(event, payload)

            try:
                with isolated_transaction(self._session_factory, scope) as session:
                    entry_id = self._store.append(session, entry)
            except Exception as exc:
                self._log_dropped(
                    "Audit entry persistence failed",
                    AuditPersistenceError.from_exception(exc),
                )
                return None

            with log_context(
                {
                    fields.EVENT: fields.AUDIT_RECORDED_EVENT,
                    fields.ENTRY_ID: entry_id,
                    fields.CHANGED_BY: entry.changed_by,
                    fields.CHANGED_FIELDS: len(event.changes),
                }
            ):
                logger.debug("Audit entry recorded")
            return entry_id

    def _build_entry(self, event: ChangeEvent, payload: str) -> AuditEntry:
        return AuditEntry(
            record_name=event.record_name,
            record_id=str(event.record_id),
            action=event.action,
            changed_by=self._actor_provider.current_actor(),
            timestamp=self._clock(),
            changes_payload=payload,
        )

    def _log_dropped(self, message: str, error: SerializationError | AuditPersistenceError) -> None:
        with log_context({**error.detail.log_fields(), fields.EVENT: fields.AUDIT_DROPPED_EVENT}):
            logger.error(message, exc_info=error)
