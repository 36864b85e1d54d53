"""Per-agent remote configuration view."""

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field

from mception.registry.models.agent import AgentConfig
from mception.registry.models.leaf import LeafMcpConfig


class RemoteConfigMetadata(BaseModel):
    """Stamp identifying which configuration a projection was taken from."""

    model_config = ConfigDict(frozen=True)

    last_updated: AwareDatetime = Field(..., description="Configuration last_modified")
    version: str = Field(..., description="Schema version")


class AgentRemoteConfig(BaseModel):
    """The part of the configuration an agent is allowed to see.

    Any request relayed on the agent's behalf must target one of ``mcps``.
    """

    model_config = ConfigDict(frozen=True)

    agent_id: str = Field(..., description="Agent the view was built for")
    mcps: dict[str, LeafMcpConfig | AgentConfig] = Field(
        default_factory=dict, description="Visible leaf MCPs and agents by id"
    )
    metadata: RemoteConfigMetadata

    def allows(self, mcp_id: str) -> bool:
        """Check whether the agent may reach the given leaf MCP or agent."""
        return mcp_id in self.mcps
