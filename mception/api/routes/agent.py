"""Endpoints used by connected MCePtion agents."""

from typing import Any

from fastapi import APIRouter

from mception.api.dependencies import ConfigServiceDep
from mception.api.exceptions import ForwardingNotImplementedError, TargetNotAllowedError
from mception.observability.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/agent")


@router.get("/{agent_id}/config")
async def read_remote_config(agent_id: str, service: ConfigServiceDep) -> dict[str, Any]:
    """Return the part of the configuration this agent may use."""
    remote = await service.get_agent_remote_config(agent_id)
    return remote.model_dump(mode="json")


@router.api_route("/{agent_id}/forwarding/{mcp_id}", methods=["GET", "POST"])
async def forward_request(agent_id: str, mcp_id: str, service: ConfigServiceDep) -> None:
    """Forward an agent's request to an allowed MCP.

    Raises:
        TargetNotAllowedError: If ``mcp_id`` is outside the agent's allow-list
        ForwardingNotImplementedError: Always, for allowed targets
    """
    remote = await service.get_agent_remote_config(agent_id)
    if not remote.allows(mcp_id):
        logger.warning("forwarding_target_not_allowed", agent_id=agent_id, mcp_id=mcp_id)
        raise TargetNotAllowedError(f"MCP '{mcp_id}' is not allowed for agent '{agent_id}'")
    raise ForwardingNotImplementedError("Agent request forwarding is not implemented")
