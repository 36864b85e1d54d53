"""Agent model."""

from pydantic import (
    AwareDatetime,
    BaseModel,
    ConfigDict,
    Field,
    JsonValue,
    StrictBool,
    StrictStr,
)


class AgentConfig(BaseModel):
    """Configuration for an MCeption agent.

    ``allowed_mcp_ids`` is ordered and duplicate-free. Each id named a leaf
    MCP or another agent when it was granted.
    """

    model_config = ConfigDict(extra="ignore")

    agent_id: StrictStr = Field(..., description="Unique identifier")
    name: str | None = Field(default=None, description="Display name")
    description: str | None = Field(default=None, description="Human description")
    allowed_mcp_ids: list[StrictStr] = Field(
        default_factory=list,
        description="Leaf MCP or agent ids this agent may use",
    )
    is_connected: StrictBool = Field(
        default=False, description="Whether the agent is currently connected"
    )
    last_seen: AwareDatetime | None = Field(
        default=None, description="Last time the agent was seen"
    )
    config: JsonValue = Field(
        default_factory=dict, description="Agent-specific configuration"
    )
