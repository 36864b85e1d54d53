"""Registry: leaf MCPs, agents and the service that manages them."""

from mception.registry.models import AgentConfig, AgentRemoteConfig, LeafMcpConfig, ServerConfig
from mception.registry.service import ConfigService
from mception.registry.store import ConfigStore

__all__ = [
    "AgentConfig",
    "AgentRemoteConfig",
    "ConfigService",
    "ConfigStore",
    "LeafMcpConfig",
    "ServerConfig",
]
