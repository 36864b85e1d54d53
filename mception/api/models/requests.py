"""Request and response bodies for the admin API.

Every mutating request carries a confirmation flag; a false or absent flag
rejects the request before the configuration service is called.
"""

from typing import Any

from pydantic import BaseModel, Field

from mception.registry.models import LeafMcpConfig


class CreateLeafMcpRequest(BaseModel):
    id: str
    config: LeafMcpConfig
    reason: str | None = None
    should_create: bool = False


class UpdateLeafMcpRequest(BaseModel):
    config: dict[str, Any] = Field(..., description="Partial update, shallow-merged")
    reason: str | None = None
    should_update: bool = False


class DeleteLeafMcpRequest(BaseModel):
    reason: str | None = None
    should_delete_mcp: bool = False


class CreateAgentRequest(BaseModel):
    agent_id: str
    allowed_mcp_ids: list[str] = Field(default_factory=list)
    reason: str | None = None
    should_create: bool = False


class UpdateAgentRequest(BaseModel):
    config: dict[str, Any] = Field(..., description="Partial update, shallow-merged")
    reason: str | None = None
    should_update: bool = False


class DeleteAgentRequest(BaseModel):
    reason: str | None = None
    should_delete_mcp: bool = False


class AddAgentAllowedMcpRequest(BaseModel):
    mcp_id: str
    reason: str | None = None
    should_add_mcp_id: bool = False


class RemoveAgentAllowedMcpRequest(BaseModel):
    mcp_id: str
    reason: str | None = None
    should_remove_mcp_id: bool = False


class SuccessResponse(BaseModel):
    """Acknowledgement of a successful mutation."""

    success: bool = True
    message: str


class BackupResponse(SuccessResponse):
    backup_path: str
