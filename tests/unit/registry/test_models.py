"""Tests for registry domain models."""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from mception.registry.models import (
    SCHEMA_VERSION,
    AgentConfig,
    HttpsTransport,
    LeafMcpConfig,
    ServerConfig,
    StdioTransport,
    utc_now,
)


class TestLeafMcpConfig:
    """Tests for LeafMcpConfig model."""

    def test_stdio_transport(self) -> None:
        """Should select the stdio transport from its tag."""
        leaf = LeafMcpConfig.model_validate(
            {"id": "fs", "transport": {"type": "stdio", "command": "npx", "args": ["fs"]}}
        )
        assert isinstance(leaf.transport, StdioTransport)
        assert leaf.transport.args == ["fs"]
        assert leaf.is_local is False
        assert leaf.reachable_by_agent is False
        assert leaf.config == {}

    def test_https_transport(self) -> None:
        """Should select the https transport from its tag."""
        leaf = LeafMcpConfig.model_validate(
            {
                "id": "web",
                "transport": {
                    "type": "https",
                    "url": "https://mcp.example.com",
                    "headers": {"Authorization": "Bearer x"},
                },
            }
        )
        assert isinstance(leaf.transport, HttpsTransport)
        assert leaf.transport.headers == {"Authorization": "Bearer x"}

    def test_unknown_transport_rejected(self) -> None:
        """Should reject an unknown transport tag."""
        with pytest.raises(ValidationError):
            LeafMcpConfig.model_validate({"id": "x", "transport": {"type": "sse", "url": "u"}})

    def test_booleans_are_strict(self) -> None:
        """Should not coerce strings into booleans."""
        with pytest.raises(ValidationError):
            LeafMcpConfig.model_validate(
                {"id": "fs", "transport": {"type": "stdio", "command": "x"}, "is_local": "yes"}
            )

    def test_json_round_trip(self) -> None:
        """Should survive a JSON round trip unchanged."""
        leaf = LeafMcpConfig.model_validate(
            {
                "id": "fs",
                "name": "Files",
                "transport": {"type": "stdio", "command": "x", "env": {"HOME": "/tmp"}},
                "config": {"nested": [1, "two", None]},
            }
        )
        assert LeafMcpConfig.model_validate_json(leaf.model_dump_json()) == leaf


class TestAgentConfig:
    """Tests for AgentConfig model."""

    def test_defaults(self) -> None:
        """Should default to a disconnected agent with an empty allow-list."""
        agent = AgentConfig(agent_id="a1")
        assert agent.allowed_mcp_ids == []
        assert agent.is_connected is False
        assert agent.last_seen is None

    def test_agent_id_is_strict(self) -> None:
        """Should reject a non-string id."""
        with pytest.raises(ValidationError):
            AgentConfig.model_validate({"agent_id": 42})


class TestServerConfig:
    """Tests for ServerConfig aggregate."""

    def test_fresh_config(self) -> None:
        """Should start empty with matching timestamps."""
        config = ServerConfig()
        assert config.leaf_mcps == {}
        assert config.agents == {}
        assert config.metadata.version == SCHEMA_VERSION
        assert config.metadata.created_at == config.metadata.last_modified

    def test_last_modified_never_moves_backwards(self) -> None:
        """Should keep a future last_modified when stamping."""
        config = ServerConfig()
        future = utc_now() + timedelta(hours=1)
        config.metadata.last_modified = future

        config.update_last_modified()

        assert config.metadata.last_modified == future

    def test_resolve_target_prefers_leaf(self) -> None:
        """Should resolve a shared id to the leaf MCP."""
        leaf = LeafMcpConfig.model_validate(
            {"id": "x", "transport": {"type": "stdio", "command": "c"}}
        )
        config = ServerConfig(leaf_mcps={"x": leaf}, agents={"x": AgentConfig(agent_id="x")})

        assert config.resolve_target("x") == leaf
        assert config.resolve_target("missing") is None
        assert config.has_target("x")

    def test_revoke_everywhere(self) -> None:
        """Should strip an id from each allow-list and report affected agents."""
        config = ServerConfig(
            agents={
                "a1": AgentConfig(agent_id="a1", allowed_mcp_ids=["fs", "web"]),
                "a2": AgentConfig(agent_id="a2", allowed_mcp_ids=["web"]),
            }
        )

        affected = config.revoke_everywhere("fs")

        assert affected == ["a1"]
        assert config.agents["a1"].allowed_mcp_ids == ["web"]
        assert config.agents["a2"].allowed_mcp_ids == ["web"]
