"""JSON Lines file implementation of AuditStore."""

from pathlib import Path

import aiofiles
import aiofiles.os
from pydantic import ValidationError as PydanticValidationError

from mception.audit.models import AuditLogEntry
from mception.audit.store import AuditStore
from mception.errors import SerializationError, StorageIOError
from mception.observability.logging import get_logger

logger = get_logger(__name__)


class FileAuditStore(AuditStore):
    """Audit log stored as one JSON document per line.

    Loading is fail-fast: a single unparsable line aborts the whole load
    rather than returning a partial history.
    """

    def __init__(self, audit_log_path: str | Path) -> None:
        self._path = Path(audit_log_path)

    @property
    def path(self) -> Path:
        return self._path

    async def initialize(self) -> None:
        """Create an empty log (and its directory) if none exists."""
        try:
            if await aiofiles.os.path.exists(self._path):
                return
            await aiofiles.os.makedirs(self._path.parent, exist_ok=True)
            async with aiofiles.open(self._path, "a", encoding="utf-8"):
                pass
        except OSError as e:
            raise StorageIOError(f"Cannot initialize audit log {self._path}: {e}") from e
        logger.info("audit_log_initialized", path=str(self._path))

    async def append_entry(self, entry: AuditLogEntry) -> None:
        line = entry.model_dump_json() + "\n"
        try:
            await aiofiles.os.makedirs(self._path.parent, exist_ok=True)
            async with aiofiles.open(self._path, "a", encoding="utf-8") as f:
                await f.write(line)
                await f.flush()
        except OSError as e:
            raise StorageIOError(f"Cannot append to audit log {self._path}: {e}") from e

    async def load_entries(self) -> list[AuditLogEntry]:
        if not await aiofiles.os.path.exists(self._path):
            await self.initialize()
            return []

        try:
            async with aiofiles.open(self._path, encoding="utf-8") as f:
                content = await f.read()
        except OSError as e:
            raise StorageIOError(f"Cannot read audit log {self._path}: {e}") from e
        except UnicodeDecodeError as e:
            raise SerializationError(f"Audit log {self._path} is not valid UTF-8: {e}") from e

        entries: list[AuditLogEntry] = []
        for line_number, line in enumerate(content.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                entries.append(AuditLogEntry.model_validate_json(line))
            except PydanticValidationError as e:
                raise SerializationError(
                    f"Invalid audit entry at {self._path}:{line_number}: {e}"
                ) from e

        return entries
