"""Data-layer exports for the audit trail."""

from services.state.audit_trail.data.repository import SqlAuditStore
from services.state.audit_trail.data.runtime import AuditSqlRuntime
from services.state.audit_trail.data.schema import audit_entries, bootstrap_audit_schema

__all__ = ["AuditSqlRuntime", "SqlAuditStore", "audit_entries", "bootstrap_audit_schema"]
