"""JSON file implementation of ConfigStore."""

import asyncio
import shutil
from pathlib import Path
from uuid import uuid4

import aiofiles
import aiofiles.os
from pydantic import ValidationError as PydanticValidationError

from mception.errors import NotFoundError, SerializationError, StorageIOError
from mception.observability.logging import get_logger
from mception.registry.models import ServerConfig, utc_now
from mception.registry.store import ConfigStore

logger = get_logger(__name__)

BACKUP_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


class FileConfigStore(ConfigStore):
    """Server configuration stored as a pretty-printed JSON document.

    Saves go to a unique temporary sibling that then replaces the target,
    so concurrent saves never leave a torn document; the last one wins.
    """

    def __init__(self, config_path: str | Path) -> None:
        self._path = Path(config_path)

    @property
    def path(self) -> Path:
        return self._path

    def backup_path(self) -> Path:
        """Location for a backup taken now: ``<config-path>.backup.<YYYYMMDD_HHMMSS>``."""
        timestamp = utc_now().strftime(BACKUP_TIMESTAMP_FORMAT)
        return self._path.with_name(f"{self._path.name}.backup.{timestamp}")

    async def load_config(self) -> ServerConfig:
        if not await aiofiles.os.path.exists(self._path):
            logger.info("config_not_found_using_default", path=str(self._path))
            return ServerConfig()

        try:
            async with aiofiles.open(self._path, encoding="utf-8") as f:
                content = await f.read()
        except OSError as e:
            raise StorageIOError(f"Cannot read configuration {self._path}: {e}") from e
        except UnicodeDecodeError as e:
            raise SerializationError(f"Configuration {self._path} is not valid UTF-8: {e}") from e

        try:
            return ServerConfig.model_validate_json(content)
        except PydanticValidationError as e:
            raise SerializationError(f"Invalid configuration {self._path}: {e}") from e

    async def save_config(self, config: ServerConfig) -> None:
        content = config.model_dump_json(indent=2)
        tmp_path = self._path.with_name(f".{self._path.name}.{uuid4().hex}.tmp")
        try:
            await aiofiles.os.makedirs(self._path.parent, exist_ok=True)
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(content)
            await aiofiles.os.replace(tmp_path, self._path)
        except OSError as e:
            if await aiofiles.os.path.exists(tmp_path):
                await aiofiles.os.remove(tmp_path)
            raise StorageIOError(f"Cannot write configuration {self._path}: {e}") from e

        logger.debug("config_saved", path=str(self._path))

    async def config_exists(self) -> bool:
        return await aiofiles.os.path.exists(self._path)

    async def backup_config(self) -> str:
        if not await self.config_exists():
            raise NotFoundError("Configuration file not found for backup")

        backup_path = self.backup_path()
        try:
            await asyncio.to_thread(shutil.copyfile, self._path, backup_path)
        except OSError as e:
            raise StorageIOError(f"Cannot back up configuration {self._path}: {e}") from e

        logger.info("config_backup_created", path=str(backup_path))
        return str(backup_path)
