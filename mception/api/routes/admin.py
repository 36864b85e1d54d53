"""Administrative endpoints for leaf MCPs, agents, configuration and audit."""

from typing import Any

from fastapi import APIRouter, Query
from fastapi.responses import PlainTextResponse

from mception.api.dependencies import ActorDep, ConfigServiceDep
from mception.api.exceptions import require_confirmation
from mception.api.models.requests import (
    AddAgentAllowedMcpRequest,
    BackupResponse,
    CreateAgentRequest,
    CreateLeafMcpRequest,
    DeleteAgentRequest,
    DeleteLeafMcpRequest,
    RemoveAgentAllowedMcpRequest,
    SuccessResponse,
    UpdateAgentRequest,
    UpdateLeafMcpRequest,
)
from mception.audit import AuditQuery
from mception.observability.logging import get_logger
from mception.rendering import (
    OutputFormat,
    render_agents,
    render_audit_entries,
    render_config,
    render_leaf_mcps,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/admin")

FormatQuery = Query(default=OutputFormat.JSON, description="json or table")


def _wants_table(fmt: OutputFormat) -> bool:
    return fmt != OutputFormat.JSON


# Leaf MCPs
@router.get("/leaf", response_model=None)
async def list_leaf_mcps(
    service: ConfigServiceDep,
    actor: ActorDep,
    format: OutputFormat = FormatQuery,
) -> Any:
    """List all leaf MCPs."""
    mcps = await service.list_leaf_mcps(actor=actor)
    if _wants_table(format):
        return PlainTextResponse(render_leaf_mcps(mcps, OutputFormat.TABLE))
    return {mcp_id: leaf.model_dump(mode="json") for mcp_id, leaf in mcps}


@router.post("/leaf", response_model=SuccessResponse)
async def create_leaf_mcp(
    request: CreateLeafMcpRequest,
    service: ConfigServiceDep,
    actor: ActorDep,
) -> SuccessResponse:
    """Register a new leaf MCP."""
    require_confirmation(request.should_create, "should_create")
    logger.info("create_leaf_mcp_request", mcp_id=request.id)

    await service.create_leaf_mcp(request.id, request.config, actor=actor, reason=request.reason)
    return SuccessResponse(message=f"Leaf MCP '{request.id}' created")


@router.get("/leaf/{mcp_id}/config")
async def read_leaf_mcp_config(
    mcp_id: str,
    service: ConfigServiceDep,
    actor: ActorDep,
) -> dict[str, Any]:
    """Read a leaf MCP configuration."""
    leaf = await service.get_leaf_mcp(mcp_id, actor=actor)
    return leaf.model_dump(mode="json")


@router.put("/leaf/{mcp_id}/config", response_model=SuccessResponse)
async def update_leaf_mcp_config(
    mcp_id: str,
    request: UpdateLeafMcpRequest,
    service: ConfigServiceDep,
    actor: ActorDep,
) -> SuccessResponse:
    """Shallow-merge a partial update into a leaf MCP configuration."""
    require_confirmation(request.should_update, "should_update")
    logger.info("update_leaf_mcp_request", mcp_id=mcp_id, fields=sorted(request.config))

    await service.update_leaf_mcp(mcp_id, request.config, actor=actor, reason=request.reason)
    return SuccessResponse(message=f"Leaf MCP '{mcp_id}' updated")


@router.delete("/leaf/{mcp_id}", response_model=SuccessResponse)
async def delete_leaf_mcp(
    mcp_id: str,
    request: DeleteLeafMcpRequest,
    service: ConfigServiceDep,
    actor: ActorDep,
) -> SuccessResponse:
    """Delete a leaf MCP and revoke it from every agent."""
    require_confirmation(request.should_delete_mcp, "should_delete_mcp")
    logger.info("delete_leaf_mcp_request", mcp_id=mcp_id)

    await service.delete_leaf_mcp(mcp_id, actor=actor, reason=request.reason)
    return SuccessResponse(message=f"Leaf MCP '{mcp_id}' deleted")


@router.get("/leaf/{mcp_id}/tools")
async def read_leaf_mcp_tools(
    mcp_id: str,
    service: ConfigServiceDep,
    actor: ActorDep,
) -> dict[str, list[Any]]:
    """List the tools a leaf MCP exposes.

    Tool discovery is not wired to the transports yet, so the list is
    always empty for an existing leaf MCP.
    """
    await service.get_leaf_mcp(mcp_id, actor=actor)
    return {"tools": []}


# Agents
@router.get("/agent", response_model=None)
async def list_agents(
    service: ConfigServiceDep,
    actor: ActorDep,
    format: OutputFormat = FormatQuery,
) -> Any:
    """List all agents."""
    agents = await service.list_agents(actor=actor)
    if _wants_table(format):
        return PlainTextResponse(render_agents(agents, OutputFormat.TABLE))
    return {agent_id: agent.model_dump(mode="json") for agent_id, agent in agents}


@router.post("/agent", response_model=SuccessResponse)
async def create_agent(
    request: CreateAgentRequest,
    service: ConfigServiceDep,
    actor: ActorDep,
) -> SuccessResponse:
    """Register a new agent."""
    require_confirmation(request.should_create, "should_create")
    logger.info("create_agent_request", agent_id=request.agent_id)

    await service.create_agent(
        request.agent_id, request.allowed_mcp_ids, actor=actor, reason=request.reason
    )
    return SuccessResponse(message=f"Agent '{request.agent_id}' created")


@router.get("/agent/{agent_id}/config")
async def read_agent_config(
    agent_id: str,
    service: ConfigServiceDep,
    actor: ActorDep,
) -> dict[str, Any]:
    """Read an agent configuration."""
    agent = await service.get_agent(agent_id, actor=actor)
    return agent.model_dump(mode="json")


@router.put("/agent/{agent_id}/config", response_model=SuccessResponse)
async def update_agent_config(
    agent_id: str,
    request: UpdateAgentRequest,
    service: ConfigServiceDep,
    actor: ActorDep,
) -> SuccessResponse:
    """Shallow-merge a partial update into an agent configuration."""
    require_confirmation(request.should_update, "should_update")
    logger.info("update_agent_request", agent_id=agent_id, fields=sorted(request.config))

    await service.update_agent(agent_id, request.config, actor=actor, reason=request.reason)
    return SuccessResponse(message=f"Agent '{agent_id}' updated")


@router.delete("/agent/{agent_id}", response_model=SuccessResponse)
async def delete_agent(
    agent_id: str,
    request: DeleteAgentRequest,
    service: ConfigServiceDep,
    actor: ActorDep,
) -> SuccessResponse:
    """Delete an agent and revoke it from every other agent."""
    require_confirmation(request.should_delete_mcp, "should_delete_mcp")
    logger.info("delete_agent_request", agent_id=agent_id)

    await service.delete_agent(agent_id, actor=actor, reason=request.reason)
    return SuccessResponse(message=f"Agent '{agent_id}' deleted")


@router.get("/agent/{agent_id}/tools")
async def read_agent_tools(
    agent_id: str,
    service: ConfigServiceDep,
    actor: ActorDep,
) -> dict[str, list[Any]]:
    """List the tools an agent exposes; always empty for an existing agent."""
    await service.get_agent(agent_id, actor=actor)
    return {"tools": []}


@router.post("/agent/{agent_id}/allowed_mcps", response_model=SuccessResponse)
async def add_agent_allowed_mcp(
    agent_id: str,
    request: AddAgentAllowedMcpRequest,
    service: ConfigServiceDep,
    actor: ActorDep,
) -> SuccessResponse:
    """Grant an agent access to a leaf MCP or another agent."""
    require_confirmation(request.should_add_mcp_id, "should_add_mcp_id")
    logger.info("add_allowed_mcp_request", agent_id=agent_id, mcp_id=request.mcp_id)

    await service.add_allowed_mcp(agent_id, request.mcp_id, actor=actor, reason=request.reason)
    return SuccessResponse(message=f"MCP '{request.mcp_id}' allowed for agent '{agent_id}'")


@router.delete("/agent/{agent_id}/allowed_mcps", response_model=SuccessResponse)
async def remove_agent_allowed_mcp(
    agent_id: str,
    request: RemoveAgentAllowedMcpRequest,
    service: ConfigServiceDep,
    actor: ActorDep,
) -> SuccessResponse:
    """Revoke an agent's access to a leaf MCP or another agent."""
    require_confirmation(request.should_remove_mcp_id, "should_remove_mcp_id")
    logger.info("remove_allowed_mcp_request", agent_id=agent_id, mcp_id=request.mcp_id)

    await service.remove_allowed_mcp(agent_id, request.mcp_id, actor=actor, reason=request.reason)
    return SuccessResponse(message=f"MCP '{request.mcp_id}' removed from agent '{agent_id}'")


# Server configuration and audit
@router.get("/config", response_model=None)
async def read_configuration(
    service: ConfigServiceDep,
    format: OutputFormat = FormatQuery,
) -> Any:
    """Return a snapshot of the whole server configuration."""
    config = await service.get_configuration()
    if _wants_table(format):
        return PlainTextResponse(render_config(config, OutputFormat.TABLE))
    return config.model_dump(mode="json")


@router.post("/config/backup", response_model=BackupResponse)
async def backup_configuration(service: ConfigServiceDep) -> BackupResponse:
    """Copy the persisted configuration to a timestamped backup."""
    backup_path = await service.backup_configuration()
    return BackupResponse(message="Configuration backed up", backup_path=backup_path)


@router.get("/audit", response_model=None)
async def read_audit_logs(
    service: ConfigServiceDep,
    action: str | None = Query(default=None, description="Action filter, e.g. create"),
    target: str | None = Query(default=None, description="Target kind filter, e.g. leafmcp"),
    actor: str | None = Query(default=None, description="Actor substring"),
    limit: int | None = Query(default=None, ge=0),
    format: OutputFormat = FormatQuery,
) -> Any:
    """Return audit entries, most recent first."""
    query = AuditQuery(action=action, target=target, actor=actor, limit=limit)
    entries = await service.query_audit_logs(query)
    if _wants_table(format):
        return PlainTextResponse(render_audit_entries(entries, OutputFormat.TABLE))
    return [entry.model_dump(mode="json") for entry in entries]
