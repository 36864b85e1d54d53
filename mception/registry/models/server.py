"""ServerConfig aggregate root."""

from datetime import UTC, datetime

from pydantic import AwareDatetime, BaseModel, Field

from mception.registry.models.agent import AgentConfig
from mception.registry.models.leaf import LeafMcpConfig

SCHEMA_VERSION = "0.1.0"


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(UTC)


class ServerMetadata(BaseModel):
    """Metadata about the server configuration."""

    version: str = Field(default=SCHEMA_VERSION, description="Schema version")
    created_at: AwareDatetime = Field(default_factory=utc_now, description="Creation time")
    last_modified: AwareDatetime = Field(
        default_factory=utc_now, description="Last mutation time"
    )


def _fresh_metadata() -> ServerMetadata:
    now = utc_now()
    return ServerMetadata(created_at=now, last_modified=now)


class ServerConfig(BaseModel):
    """Complete server configuration containing all MCPs and agents."""

    leaf_mcps: dict[str, LeafMcpConfig] = Field(
        default_factory=dict, description="Leaf MCPs keyed by id"
    )
    agents: dict[str, AgentConfig] = Field(
        default_factory=dict, description="Agents keyed by id"
    )
    metadata: ServerMetadata = Field(default_factory=_fresh_metadata)

    def update_last_modified(self) -> None:
        """Stamp a mutation; never moves ``last_modified`` backwards."""
        self.metadata.last_modified = max(utc_now(), self.metadata.last_modified)

    def has_target(self, target_id: str) -> bool:
        """Check whether an id names an existing leaf MCP or agent."""
        return target_id in self.leaf_mcps or target_id in self.agents

    def resolve_target(self, target_id: str) -> LeafMcpConfig | AgentConfig | None:
        """Resolve an allow-list id, leaf MCPs first, then agents."""
        leaf = self.leaf_mcps.get(target_id)
        if leaf is not None:
            return leaf
        return self.agents.get(target_id)

    def revoke_everywhere(self, target_id: str) -> list[str]:
        """Remove an id from every agent's allow-list.

        Returns:
            Ids of the agents whose allow-list changed
        """
        affected = []
        for agent in self.agents.values():
            if target_id in agent.allowed_mcp_ids:
                agent.allowed_mcp_ids = [
                    mcp_id for mcp_id in agent.allowed_mcp_ids if mcp_id != target_id
                ]
                affected.append(agent.agent_id)
        return affected
