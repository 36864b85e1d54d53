"""Construction of the configuration service from settings.

Stores are selected once, at construction time, from the storage section of
the application settings.
"""

from mception.audit.store import AuditStore
from mception.audit.stores import FileAuditStore, InMemoryAuditStore
from mception.config.settings import Settings
from mception.errors import InvalidConfigurationError
from mception.observability.logging import get_logger
from mception.registry.service import ConfigService
from mception.registry.store import ConfigStore
from mception.registry.stores import FileConfigStore, InMemoryConfigStore

logger = get_logger(__name__)


def create_config_store(settings: Settings) -> ConfigStore:
    """Create the configured server configuration store."""
    backend = settings.storage.config_backend
    if backend == "file":
        return FileConfigStore(settings.storage.config_path)
    if backend == "inmemory":
        return InMemoryConfigStore()
    raise InvalidConfigurationError(f"Unknown config backend: {backend}")


def create_audit_store(settings: Settings) -> AuditStore:
    """Create the configured audit log store."""
    backend = settings.storage.audit_backend
    if backend == "file":
        return FileAuditStore(settings.storage.audit_log_path)
    if backend == "inmemory":
        return InMemoryAuditStore()
    raise InvalidConfigurationError(f"Unknown audit backend: {backend}")


def build_config_service(settings: Settings) -> ConfigService:
    """Create a ConfigService wired to the configured stores.

    The returned service starts empty; call ``load_configuration()`` before
    serving requests.
    """
    service = ConfigService(
        config_store=create_config_store(settings),
        audit_store=create_audit_store(settings),
    )
    logger.info(
        "config_service_built",
        config_backend=settings.storage.config_backend,
        audit_backend=settings.storage.audit_backend,
    )
    return service


async def open_config_service(settings: Settings) -> ConfigService:
    """Create a ConfigService and load the persisted configuration into it."""
    service = build_config_service(settings)
    await service.load_configuration()
    return service
