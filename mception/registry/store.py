"""ConfigStore abstract interface."""

from abc import ABC, abstractmethod

from mception.registry.models import ServerConfig


class ConfigStore(ABC):
    """Abstract interface for persisting the whole server configuration.

    The configuration is always stored as a single document; saves replace
    it wholesale.
    """

    @abstractmethod
    async def load_config(self) -> ServerConfig:
        """Load the persisted configuration.

        Returns a fresh, empty configuration when nothing is persisted.
        """
        pass

    @abstractmethod
    async def save_config(self, config: ServerConfig) -> None:
        """Overwrite the persisted configuration."""
        pass

    @abstractmethod
    async def config_exists(self) -> bool:
        """Check whether a configuration document is persisted."""
        pass

    @abstractmethod
    async def backup_config(self) -> str:
        """Copy the persisted document aside, returning the backup location.

        Raises:
            NotFoundError: If no configuration is persisted
        """
        pass
