"""Shared test fixtures for the MCeption test suite."""

from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest

from mception.audit.stores import InMemoryAuditStore
from mception.observability.logging import setup_logging
from mception.registry.models import LeafMcpConfig
from mception.registry.service import ConfigService
from mception.registry.stores import InMemoryConfigStore


@pytest.fixture(scope="session", autouse=True)
def configure_logging() -> None:
    """Send log output to stderr so command output stays parseable."""
    setup_logging(level="WARNING", format="console", redact_pii=True)


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    """Clear the settings cache before and after each test.

    This ensures test isolation for configuration tests.
    """
    from mception.config import get_settings
    from mception.config.settings import set_toml_config

    get_settings.cache_clear()
    set_toml_config({})
    yield
    get_settings.cache_clear()
    set_toml_config({})


@pytest.fixture
def test_config_dir(tmp_path: Path) -> Path:
    """Create a temporary config directory for testing."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def config_store() -> InMemoryConfigStore:
    return InMemoryConfigStore()


@pytest.fixture
def audit_store() -> InMemoryAuditStore:
    return InMemoryAuditStore()


@pytest.fixture
def service(config_store: InMemoryConfigStore, audit_store: InMemoryAuditStore) -> ConfigService:
    """Empty configuration service backed by in-memory stores."""
    return ConfigService(config_store=config_store, audit_store=audit_store)


@pytest.fixture
def make_leaf() -> Callable[..., LeafMcpConfig]:
    """Factory for stdio leaf MCP configurations."""

    def _make_leaf(mcp_id: str = "fs", **overrides: Any) -> LeafMcpConfig:
        data: dict[str, Any] = {
            "id": mcp_id,
            "name": f"{mcp_id} server",
            "transport": {"type": "stdio", "command": "mcp-server", "args": ["--root", "/srv"]},
        }
        data.update(overrides)
        return LeafMcpConfig.model_validate(data)

    return _make_leaf
