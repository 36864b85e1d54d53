"""Leaf MCP models."""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, JsonValue, StrictBool, StrictStr


class StdioTransport(BaseModel):
    """Leaf MCP launched as a child process speaking over stdin/stdout."""

    type: Literal["stdio"] = "stdio"
    command: StrictStr = Field(..., description="Executable to launch")
    args: list[StrictStr] = Field(default_factory=list, description="Command arguments")
    env: dict[str, StrictStr] | None = Field(
        default=None, description="Extra environment variables"
    )


class HttpsTransport(BaseModel):
    """Leaf MCP reachable over HTTP(S)."""

    type: Literal["https"] = "https"
    url: StrictStr = Field(..., description="Endpoint URL")
    headers: dict[str, StrictStr] | None = Field(
        default=None, description="Headers sent with every request"
    )


McpTransport = Annotated[StdioTransport | HttpsTransport, Field(discriminator="type")]


class LeafMcpConfig(BaseModel):
    """Configuration for a leaf MCP (Model Context Protocol) server.

    Leaf MCPs are the tool endpoints agents may be granted access to.
    """

    model_config = ConfigDict(extra="ignore")

    id: StrictStr = Field(..., description="Unique identifier")
    name: str | None = Field(default=None, description="Display name")
    description: str | None = Field(default=None, description="Human description")
    transport: McpTransport = Field(..., description="How to reach the MCP")
    is_local: StrictBool = Field(
        default=False,
        description="Hosted on the agent's system rather than the server's",
    )
    reachable_by_agent: StrictBool = Field(
        default=False, description="Agents may reach the MCP directly"
    )
    config: JsonValue = Field(
        default_factory=dict, description="MCP-specific configuration"
    )
