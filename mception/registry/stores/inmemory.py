"""In-memory implementation of ConfigStore."""

from mception.errors import NotFoundError
from mception.registry.models import ServerConfig, utc_now
from mception.registry.store import ConfigStore
from mception.registry.stores.file import BACKUP_TIMESTAMP_FORMAT


class InMemoryConfigStore(ConfigStore):
    """In-memory implementation of ConfigStore for testing and development.

    Keeps the serialized document rather than the live object so a loaded
    configuration never aliases the one that was saved.
    """

    def __init__(self) -> None:
        self._document: str | None = None
        self._backups: dict[str, str] = {}

    @property
    def backups(self) -> dict[str, str]:
        """Backup documents keyed by location."""
        return dict(self._backups)

    async def load_config(self) -> ServerConfig:
        if self._document is None:
            return ServerConfig()
        return ServerConfig.model_validate_json(self._document)

    async def save_config(self, config: ServerConfig) -> None:
        self._document = config.model_dump_json(indent=2)

    async def config_exists(self) -> bool:
        return self._document is not None

    async def backup_config(self) -> str:
        if self._document is None:
            raise NotFoundError("Configuration not found for backup")
        location = f"memory://config.backup.{utc_now().strftime(BACKUP_TIMESTAMP_FORMAT)}"
        self._backups[location] = self._document
        return location
