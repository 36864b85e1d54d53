"""MCeption server: MCP hotplugging for distributed agents.

Owns the shared server configuration (leaf MCPs and agents), records every
change in an append-only audit log, and derives the per-agent view of the
MCPs each agent may reach.
"""

__version__ = "0.1.0"
