"""Text rendering of configuration, listings and audit history.

Shared by the CLI and the HTTP ``format=table`` option. Renderings are
presentation only; the JSON format is the canonical representation.
"""

import json
from collections.abc import Sequence
from enum import Enum
from typing import Any

from rich.console import Console, RenderableType
from rich.table import Table

from mception.audit.models import AuditLogEntry
from mception.registry.models import AgentConfig, LeafMcpConfig, ServerConfig

RENDER_WIDTH = 120


class OutputFormat(str, Enum):
    """Output formats for display commands and endpoints."""

    JSON = "json"
    PRETTY = "pretty"
    TABLE = "table"


def _to_text(*renderables: RenderableType) -> str:
    console = Console(
        width=RENDER_WIDTH, no_color=True, highlight=False, markup=False, force_terminal=False
    )
    with console.capture() as capture:
        for renderable in renderables:
            console.print(renderable)
    return capture.get()


def _dump(value: Any) -> str:
    return json.dumps(value, indent=2, default=str)


def _describe_transport(leaf: LeafMcpConfig) -> str:
    transport = leaf.transport
    if transport.type == "stdio":
        return " ".join([transport.command, *transport.args])
    return transport.url


def render_config(config: ServerConfig, fmt: OutputFormat = OutputFormat.PRETTY) -> str:
    """Render the whole server configuration."""
    if fmt == OutputFormat.JSON:
        return config.model_dump_json(indent=2)

    if fmt == OutputFormat.TABLE:
        table = Table(title="MCePtion Server Configuration Summary")
        table.add_column("Component")
        table.add_column("Count", justify="right")
        table.add_column("Details")
        table.add_row("Leaf MCPs", str(len(config.leaf_mcps)), ", ".join(config.leaf_mcps))
        table.add_row("Agents", str(len(config.agents)), ", ".join(config.agents))
        table.add_row("Version", "", config.metadata.version)
        table.add_row("Last Modified", "", config.metadata.last_modified.isoformat())
        return _to_text(table)

    lines = [
        "MCePtion Server Configuration",
        "=============================",
        f"Version: {config.metadata.version}",
        f"Created: {config.metadata.created_at.isoformat()}",
        f"Last Modified: {config.metadata.last_modified.isoformat()}",
        "",
        f"Leaf MCPs ({len(config.leaf_mcps)}):",
    ]
    for mcp_id, leaf in config.leaf_mcps.items():
        lines.append(f"  - {mcp_id}: {leaf.name or '(no name)'}")
        lines.append(f"    Transport: {leaf.transport.type} {_describe_transport(leaf)}")
        lines.append(f"    Local: {leaf.is_local}, Reachable: {leaf.reachable_by_agent}")
    lines.append("")
    lines.append(f"MCePtion Agents ({len(config.agents)}):")
    for agent_id, agent in config.agents.items():
        lines.append(f"  - {agent_id}: {agent.name or '(no name)'}")
        lines.append(f"    Connected: {agent.is_connected}")
        lines.append(f"    Allowed MCPs: {', '.join(agent.allowed_mcp_ids) or '(none)'}")
        if agent.last_seen is not None:
            lines.append(f"    Last Seen: {agent.last_seen.isoformat()}")
    return "\n".join(lines) + "\n"


def render_leaf_mcps(
    mcps: Sequence[tuple[str, LeafMcpConfig]],
    fmt: OutputFormat = OutputFormat.TABLE,
) -> str:
    """Render a leaf MCP listing."""
    if fmt == OutputFormat.JSON:
        return _dump({mcp_id: leaf.model_dump(mode="json") for mcp_id, leaf in mcps})

    table = Table(title=f"Leaf MCPs ({len(mcps)})")
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Transport")
    table.add_column("Target")
    table.add_column("Local")
    table.add_column("Reachable")
    for mcp_id, leaf in mcps:
        table.add_row(
            mcp_id,
            leaf.name or "",
            leaf.transport.type,
            _describe_transport(leaf),
            str(leaf.is_local),
            str(leaf.reachable_by_agent),
        )
    return _to_text(table)


def render_agents(
    agents: Sequence[tuple[str, AgentConfig]],
    fmt: OutputFormat = OutputFormat.TABLE,
) -> str:
    """Render an agent listing."""
    if fmt == OutputFormat.JSON:
        return _dump({agent_id: agent.model_dump(mode="json") for agent_id, agent in agents})

    table = Table(title=f"Agents ({len(agents)})")
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Connected")
    table.add_column("Allowed MCPs")
    table.add_column("Last Seen")
    for agent_id, agent in agents:
        table.add_row(
            agent_id,
            agent.name or "",
            str(agent.is_connected),
            ", ".join(agent.allowed_mcp_ids),
            agent.last_seen.isoformat() if agent.last_seen else "",
        )
    return _to_text(table)


def render_audit_entries(
    entries: Sequence[AuditLogEntry],
    fmt: OutputFormat = OutputFormat.PRETTY,
) -> str:
    """Render audit entries in the order given."""
    if fmt == OutputFormat.JSON:
        return _dump([entry.model_dump(mode="json") for entry in entries])

    if fmt == OutputFormat.TABLE:
        table = Table()
        table.add_column("Timestamp")
        table.add_column("Action")
        table.add_column("Target Type")
        table.add_column("Target ID")
        table.add_column("Actor")
        table.add_column("Reason")
        for entry in entries:
            table.add_row(
                entry.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
                entry.action.display_name,
                entry.target.display_kind,
                entry.target.target_id,
                entry.actor or "",
                entry.reason or "",
            )
        return _to_text(table)

    lines = [f"Audit Log Entries ({len(entries)}):", "======================"]
    for entry in entries:
        lines.append(f"ID: {entry.id}")
        lines.append(f"Timestamp: {entry.timestamp.isoformat()}")
        lines.append(f"Action: {entry.action.display_name}")
        lines.append(f"Target: {entry.target.display_kind} {entry.target.target_id}".rstrip())
        if entry.actor is not None:
            lines.append(f"Actor: {entry.actor}")
        if entry.reason is not None:
            lines.append(f"Reason: {entry.reason}")
        if entry.details is not None:
            lines.append(f"Details: {_dump(entry.details)}")
        lines.append("---")
    return "\n".join(lines) + "\n"
