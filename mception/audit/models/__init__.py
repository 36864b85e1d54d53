"""Audit domain models."""

from mception.audit.models.entry import (
    TARGET_KINDS,
    AgentAllowedMcpTarget,
    AgentTarget,
    AuditAction,
    AuditLogEntry,
    AuditTarget,
    LeafMcpTarget,
    ServerTarget,
)

__all__ = [
    "AgentAllowedMcpTarget",
    "AgentTarget",
    "AuditAction",
    "AuditLogEntry",
    "AuditTarget",
    "LeafMcpTarget",
    "ServerTarget",
    "TARGET_KINDS",
]
