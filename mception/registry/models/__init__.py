"""Registry domain models.

Contains all Pydantic models for the server configuration:
- LeafMcpConfig and its transports
- AgentConfig
- ServerConfig aggregate root
- AgentRemoteConfig per-agent projection
"""

from mception.registry.models.agent import AgentConfig
from mception.registry.models.leaf import (
    HttpsTransport,
    LeafMcpConfig,
    McpTransport,
    StdioTransport,
)
from mception.registry.models.projection import AgentRemoteConfig, RemoteConfigMetadata
from mception.registry.models.server import (
    SCHEMA_VERSION,
    ServerConfig,
    ServerMetadata,
    utc_now,
)

__all__ = [
    "AgentConfig",
    "AgentRemoteConfig",
    "HttpsTransport",
    "LeafMcpConfig",
    "McpTransport",
    "RemoteConfigMetadata",
    "SCHEMA_VERSION",
    "ServerConfig",
    "ServerMetadata",
    "StdioTransport",
    "utc_now",
]
