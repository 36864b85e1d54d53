"""Audit trail: immutable entries, append-only stores and history queries."""

from mception.audit.models import AuditAction, AuditLogEntry
from mception.audit.query import AuditQuery, filter_audit_entries
from mception.audit.store import AuditStore

__all__ = [
    "AuditAction",
    "AuditLogEntry",
    "AuditQuery",
    "AuditStore",
    "filter_audit_entries",
]
