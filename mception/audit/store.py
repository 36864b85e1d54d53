"""AuditStore abstract interface."""

from abc import ABC, abstractmethod

from mception.audit.models import AuditLogEntry


class AuditStore(ABC):
    """Abstract interface for the append-only audit log.

    Entries are appended and never modified or removed. The relative order
    of entries appended concurrently is not meaningful; each entry's
    timestamp is.
    """

    @abstractmethod
    async def append_entry(self, entry: AuditLogEntry) -> None:
        """Durably append one entry."""
        pass

    @abstractmethod
    async def load_entries(self) -> list[AuditLogEntry]:
        """Load the full history in storage order.

        A missing log is an empty history. Any unreadable entry aborts the
        whole load.
        """
        pass
