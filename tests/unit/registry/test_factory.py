"""Tests for building a ConfigService from settings."""

from pathlib import Path

import pytest

from mception.audit.stores import FileAuditStore, InMemoryAuditStore
from mception.config.models.storage import StorageConfig
from mception.config.settings import Settings
from mception.registry.factory import build_config_service, open_config_service
from mception.registry.models import ServerConfig
from mception.registry.stores import FileConfigStore, InMemoryConfigStore


def _settings(**storage: str) -> Settings:
    return Settings(storage=StorageConfig(**storage))


class TestBuildConfigService:
    """Tests for store selection."""

    def test_file_backends(self, tmp_path: Path) -> None:
        """Should use file stores at the configured paths."""
        service = build_config_service(
            _settings(
                config_path=str(tmp_path / "c.json"),
                audit_log_path=str(tmp_path / "a.log"),
            )
        )

        assert isinstance(service.config_store, FileConfigStore)
        assert service.config_store.path == tmp_path / "c.json"
        assert isinstance(service.audit_store, FileAuditStore)

    def test_inmemory_backends(self) -> None:
        """Should use in-memory stores when configured."""
        service = build_config_service(
            _settings(config_backend="inmemory", audit_backend="inmemory")
        )

        assert isinstance(service.config_store, InMemoryConfigStore)
        assert isinstance(service.audit_store, InMemoryAuditStore)

    @pytest.mark.asyncio
    async def test_open_loads_persisted_configuration(self, tmp_path: Path) -> None:
        """Should load the persisted document before returning."""
        config_path = tmp_path / "c.json"
        config_path.write_text(ServerConfig().model_dump_json())

        service = await open_config_service(
            _settings(config_path=str(config_path), audit_log_path=str(tmp_path / "a.log"))
        )

        expected = ServerConfig.model_validate_json(config_path.read_text())
        assert await service.get_configuration() == expected
