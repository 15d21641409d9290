"""Audit trail: field-level change capture for SQLAlchemy-mapped records."""

from services.state.audit_trail.capture import ChangeCaptureHook
from services.state.audit_trail.dispatcher import ChangeEventDispatcher
from services.state.audit_trail.domain import AuditEntry, ChangeAction, ChangeEvent
from services.state.audit_trail.enrollment import AuditRegistry, auditable
from services.state.audit_trail.errors import (
    AuditPersistenceError,
    AuditTrailError,
    HandlerFailure,
    SerializationError,
)
from services.state.audit_trail.extractor import extract_change_event
from services.state.audit_trail.identity import (
    ActorProvider,
    CallableActorProvider,
    StaticActorProvider,
)
from services.state.audit_trail.recorder import AuditRecorder
from services.state.audit_trail.service import AuditTrail, build_audit_trail
from services.state.audit_trail.transactions import TransactionContext, isolated_transaction

__all__ = [
    "ActorProvider",
    "AuditEntry",
    "AuditPersistenceError",
    "AuditRecorder",
    "AuditRegistry",
    "AuditTrail",
    "AuditTrailError",
    "CallableActorProvider",
    "ChangeAction",
    "ChangeCaptureHook",
    "ChangeEvent",
    "ChangeEventDispatcher",
    "HandlerFailure",
    "SerializationError",
    "StaticActorProvider",
    "TransactionContext",
    "auditable",
    "build_audit_trail",
    "extract_change_event",
    "isolated_transaction",
]
