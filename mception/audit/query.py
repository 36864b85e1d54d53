"""Filtering and ordering of a loaded audit history."""

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field

from mception.audit.models import AuditLogEntry


class AuditQuery(BaseModel):
    """Criteria for selecting audit entries.

    Every supplied filter must match (logical AND). Matching is a
    case-insensitive substring test:
    - action: against ``AuditAction.filter_key`` (create, addallowedmcp, ...)
    - target: against the target kind (leafmcp, agent, agentallowedmcp, server)
    - actor: against the entry's actor; entries without an actor never match
    """

    model_config = ConfigDict(frozen=True)

    action: str | None = Field(default=None, description="Action substring")
    target: str | None = Field(default=None, description="Target kind substring")
    actor: str | None = Field(default=None, description="Actor substring")
    limit: int | None = Field(default=None, ge=0, description="Maximum entries returned")

    def matches(self, entry: AuditLogEntry) -> bool:
        """Check whether an entry satisfies every supplied filter."""
        if self.action and self.action.lower() not in entry.action.filter_key:
            return False
        if self.target and self.target.lower() not in entry.target.kind:
            return False
        if self.actor:
            if entry.actor is None:
                return False
            if self.actor.lower() not in entry.actor.lower():
                return False
        return True


def filter_audit_entries(
    entries: Iterable[AuditLogEntry],
    query: AuditQuery | None = None,
) -> list[AuditLogEntry]:
    """Filter, order newest first, then truncate.

    The sort is stable, so entries sharing a timestamp keep their original
    relative order.

    Args:
        entries: Loaded audit history
        query: Selection criteria; None selects everything

    Returns:
        Matching entries, most recent first, at most ``query.limit`` of them
    """
    query = query or AuditQuery()

    results = [entry for entry in entries if query.matches(entry)]
    results.sort(key=lambda x: x.timestamp, reverse=True)

    if query.limit is not None:
        results = results[: query.limit]
    return results
