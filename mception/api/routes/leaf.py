"""Endpoints reserved for leaf MCP traffic."""

from fastapi import APIRouter

from mception.api.exceptions import ForwardingNotImplementedError

router = APIRouter(prefix="/leaf")


@router.api_route("/{mcp_id}/forwarding", methods=["GET", "POST"])
async def forward_to_leaf(mcp_id: str) -> None:
    """Forward a request to a leaf MCP."""
    raise ForwardingNotImplementedError(f"Forwarding to leaf MCP '{mcp_id}' is not implemented")
