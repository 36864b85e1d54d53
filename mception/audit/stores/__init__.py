"""Audit log stores."""

from mception.audit.store import AuditStore
from mception.audit.stores.file import FileAuditStore
from mception.audit.stores.inmemory import InMemoryAuditStore

__all__ = [
    "AuditStore",
    "FileAuditStore",
    "InMemoryAuditStore",
]
