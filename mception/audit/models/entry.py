"""AuditLogEntry model for the audit domain."""

from datetime import UTC, datetime
from enum import Enum
from typing import Annotated, Any, ClassVar, Literal
from uuid import uuid4

from pydantic import (
    AwareDatetime,
    BaseModel,
    ConfigDict,
    Field,
    JsonValue,
    field_validator,
)


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(UTC)


class AuditAction(str, Enum):
    """Types of actions recorded in the audit log."""

    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    ADD_ALLOWED_MCP = "add_allowed_mcp"
    REMOVE_ALLOWED_MCP = "remove_allowed_mcp"

    @property
    def filter_key(self) -> str:
        """Stable lowercase identifier matched by audit filters."""
        return self.value.replace("_", "")

    @property
    def display_name(self) -> str:
        return "".join(part.capitalize() for part in self.value.split("_"))


class LeafMcpTarget(BaseModel):
    """A leaf MCP."""

    model_config = ConfigDict(frozen=True)

    kind: ClassVar[str] = "leafmcp"
    display_kind: ClassVar[str] = "LeafMcp"

    type: Literal["leaf_mcp"] = "leaf_mcp"
    id: str

    @property
    def target_id(self) -> str:
        return self.id


class AgentTarget(BaseModel):
    """An agent."""

    model_config = ConfigDict(frozen=True)

    kind: ClassVar[str] = "agent"
    display_kind: ClassVar[str] = "Agent"

    type: Literal["agent"] = "agent"
    id: str

    @property
    def target_id(self) -> str:
        return self.id


class AgentAllowedMcpTarget(BaseModel):
    """One entry of an agent's allow-list."""

    model_config = ConfigDict(frozen=True)

    kind: ClassVar[str] = "agentallowedmcp"
    display_kind: ClassVar[str] = "AgentMcp"

    type: Literal["agent_allowed_mcp"] = "agent_allowed_mcp"
    agent_id: str
    mcp_id: str

    @property
    def target_id(self) -> str:
        return self.agent_id


class ServerTarget(BaseModel):
    """The server configuration as a whole."""

    model_config = ConfigDict(frozen=True)

    kind: ClassVar[str] = "server"
    display_kind: ClassVar[str] = "Server"

    type: Literal["server"] = "server"

    @property
    def target_id(self) -> str:
        return ""


AuditTarget = Annotated[
    LeafMcpTarget | AgentTarget | AgentAllowedMcpTarget | ServerTarget,
    Field(discriminator="type"),
]

TARGET_KINDS: tuple[str, ...] = (
    LeafMcpTarget.kind,
    AgentTarget.kind,
    AgentAllowedMcpTarget.kind,
    ServerTarget.kind,
)


class AuditLogEntry(BaseModel):
    """Immutable record of one action taken against the configuration."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()), description="Unique identifier")
    timestamp: AwareDatetime = Field(default_factory=utc_now, description="Event time")
    action: AuditAction = Field(..., description="What was done")
    actor: str | None = Field(
        default=None, description="Agent id, 'admin' or 'system'"
    )
    target: AuditTarget = Field(..., description="What it was done to")
    reason: str | None = Field(default=None, description="Free-text justification")
    details: JsonValue = Field(default=None, description="Action payload")

    @field_validator("action", mode="before")
    @classmethod
    def _unwrap_tagged_action(cls, value: Any) -> Any:
        # Older logs store the action as {"type": "create"}
        if isinstance(value, dict) and "type" in value:
            return value["type"]
        return value
