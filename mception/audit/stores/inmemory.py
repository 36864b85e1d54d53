"""In-memory implementation of AuditStore."""

from mception.audit.models import AuditLogEntry
from mception.audit.store import AuditStore


class InMemoryAuditStore(AuditStore):
    """In-memory implementation of AuditStore for testing and development.

    Not suitable for production use: the history is lost on exit.
    """

    def __init__(self) -> None:
        self._entries: list[AuditLogEntry] = []

    async def append_entry(self, entry: AuditLogEntry) -> None:
        self._entries.append(entry)

    async def load_entries(self) -> list[AuditLogEntry]:
        return list(self._entries)
