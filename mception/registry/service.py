"""Configuration service.

Owns the live ServerConfig and is the only code path that changes it. Every
mutating operation runs in three steps:

1. under the write lock: validate, mutate, stamp ``last_modified``
2. append one audit entry
3. persist the full configuration snapshot

Steps 2 and 3 run after the lock is released. When step 2 fails the error
reaches the caller and step 3 is skipped, so the live configuration can be
ahead of both the audit log and the persisted document. Callers must not
read an error from a mutating call as "nothing changed".

Reads (get/list) also record an audit entry, but a failure to write it is
logged and otherwise ignored.
"""

import copy
from collections.abc import Iterable, Mapping
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import PydanticSerializationError, to_jsonable_python

from mception.audit.models import (
    AgentAllowedMcpTarget,
    AgentTarget,
    AuditAction,
    AuditLogEntry,
    AuditTarget,
    LeafMcpTarget,
    ServerTarget,
)
from mception.audit.query import AuditQuery, filter_audit_entries
from mception.audit.store import AuditStore
from mception.errors import AlreadyExistsError, InvalidFormatError, NotFoundError
from mception.observability.logging import get_logger
from mception.observability.metrics import record_audit_failure, record_mutation
from mception.registry.models import (
    AgentConfig,
    AgentRemoteConfig,
    LeafMcpConfig,
    RemoteConfigMetadata,
    ServerConfig,
)
from mception.registry.store import ConfigStore
from mception.utils.rwlock import AsyncRWLock

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _require_id(value: str, label: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise InvalidFormatError(f"{label} cannot be empty")


def _patch_document(updates: Mapping[str, Any]) -> dict[str, Any]:
    """Convert a patch to plain JSON data before anything is changed.

    Raises:
        InvalidFormatError: If the patch is not an object or holds values
            that have no JSON form
    """
    if not isinstance(updates, Mapping):
        raise InvalidFormatError("Update must be a JSON object")
    try:
        return to_jsonable_python(dict(updates))
    except PydanticSerializationError as e:
        raise InvalidFormatError(f"Update is not valid JSON: {e}") from e


def _apply_patch(model_cls: type[ModelT], current: ModelT, patch: dict[str, Any]) -> ModelT:
    """Shallow-merge a patch onto a resource and rebuild it.

    Top-level keys in ``patch`` replace the resource's keys wholesale.
    The current resource is never touched; on failure nothing is returned.

    Raises:
        InvalidFormatError: If the merged document is not a valid resource
    """
    merged = current.model_dump(mode="json")
    merged.update(copy.deepcopy(patch))
    try:
        return model_cls.model_validate(merged)
    except PydanticValidationError as e:
        raise InvalidFormatError(str(e)) from e


class ConfigService:
    """The service for managing MCeption server configuration.

    Construct once at process start and share the instance with every
    request handler.
    """

    def __init__(
        self,
        config_store: ConfigStore,
        audit_store: AuditStore,
        config: ServerConfig | None = None,
    ) -> None:
        self._config_store = config_store
        self._audit_store = audit_store
        self._config = config if config is not None else ServerConfig()
        self._lock = AsyncRWLock(name="server_config")

    @property
    def config_store(self) -> ConfigStore:
        return self._config_store

    @property
    def audit_store(self) -> AuditStore:
        return self._audit_store

    # Configuration lifecycle
    async def load_configuration(self) -> None:
        """Replace the live configuration with the persisted one."""
        config = await self._config_store.load_config()
        async with self._lock.write_lock():
            self._config = config
        logger.info(
            "config_loaded",
            leaf_mcps=len(config.leaf_mcps),
            agents=len(config.agents),
        )

    async def save_configuration(self) -> None:
        """Persist a snapshot of the current configuration."""
        async with self._lock.read_lock():
            snapshot = self._config.model_copy(deep=True)
        await self._config_store.save_config(snapshot)

    async def get_configuration(self) -> ServerConfig:
        """Get a deep copy of the current server configuration."""
        async with self._lock.read_lock():
            return self._config.model_copy(deep=True)

    async def backup_configuration(self) -> str:
        """Back up the persisted configuration, returning its location."""
        return await self._config_store.backup_config()

    # Audit helpers
    async def _audit_log(
        self,
        action: AuditAction,
        target: AuditTarget,
        actor: str | None,
        reason: str | None,
        details: Any,
    ) -> None:
        entry = AuditLogEntry(
            action=action,
            target=target,
            actor=actor,
            reason=reason,
            details=to_jsonable_python(details),
        )
        await self._audit_store.append_entry(entry)

    async def _record_read(
        self,
        target: AuditTarget,
        actor: str | None,
        details: Any = None,
    ) -> None:
        try:
            await self._audit_log(AuditAction.READ, target, actor, None, details)
        except Exception as e:
            record_audit_failure(AuditAction.READ.value, "read")
            logger.warning(
                "audit_read_log_failed",
                target=target.kind,
                target_id=target.target_id,
                error=str(e),
            )

    async def _commit(
        self,
        operation: str,
        action: AuditAction,
        target: AuditTarget,
        actor: str | None,
        reason: str | None,
        details: Any,
    ) -> None:
        """Audit then persist a mutation already applied in memory."""
        try:
            await self._audit_log(action, target, actor, reason, details)
        except Exception as e:
            record_audit_failure(action.value, "write")
            record_mutation(operation, "error")
            logger.error(
                "audit_write_failed_after_mutation",
                operation=operation,
                target=target.kind,
                target_id=target.target_id,
                error=str(e),
            )
            raise

        try:
            await self.save_configuration()
        except Exception as e:
            record_mutation(operation, "error")
            logger.error(
                "config_persist_failed_after_mutation",
                operation=operation,
                target=target.kind,
                target_id=target.target_id,
                error=str(e),
            )
            raise

        record_mutation(operation, "success")

    # Leaf MCP operations
    async def create_leaf_mcp(
        self,
        mcp_id: str,
        config: LeafMcpConfig | Mapping[str, Any],
        *,
        actor: str | None = None,
        reason: str | None = None,
    ) -> LeafMcpConfig:
        """Register a new leaf MCP.

        Raises:
            InvalidFormatError: If the id is blank or the config is malformed
            AlreadyExistsError: If a leaf MCP with this id exists
        """
        _require_id(mcp_id, "MCP ID")
        if isinstance(config, LeafMcpConfig):
            leaf = config.model_copy(deep=True)
        else:
            try:
                leaf = LeafMcpConfig.model_validate(config)
            except PydanticValidationError as e:
                raise InvalidFormatError(str(e)) from e

        async with self._lock.write_lock():
            if mcp_id in self._config.leaf_mcps:
                raise AlreadyExistsError(f"Leaf MCP with ID '{mcp_id}' already exists")
            self._config.leaf_mcps[mcp_id] = leaf
            self._config.update_last_modified()
            created = leaf.model_copy(deep=True)

        logger.info("leaf_mcp_created", mcp_id=mcp_id, actor=actor)
        await self._commit(
            "create_leaf_mcp",
            AuditAction.CREATE,
            LeafMcpTarget(id=mcp_id),
            actor,
            reason,
            created.model_dump(mode="json"),
        )
        return created

    async def get_leaf_mcp(self, mcp_id: str, *, actor: str | None = None) -> LeafMcpConfig:
        """Read a leaf MCP configuration.

        Raises:
            NotFoundError: If no leaf MCP has this id
        """
        async with self._lock.read_lock():
            leaf = self._config.leaf_mcps.get(mcp_id)
            if leaf is None:
                raise NotFoundError(f"Leaf MCP with ID '{mcp_id}' not found")
            result = leaf.model_copy(deep=True)

        await self._record_read(LeafMcpTarget(id=mcp_id), actor)
        return result

    async def list_leaf_mcps(
        self, *, actor: str | None = None
    ) -> list[tuple[str, LeafMcpConfig]]:
        """List all leaf MCP configurations."""
        async with self._lock.read_lock():
            mcps = [
                (mcp_id, leaf.model_copy(deep=True))
                for mcp_id, leaf in self._config.leaf_mcps.items()
            ]

        await self._record_read(
            ServerTarget(), actor, {"resource": "leaf_mcps", "count": len(mcps)}
        )
        return mcps

    async def update_leaf_mcp(
        self,
        mcp_id: str,
        updates: Mapping[str, Any],
        *,
        actor: str | None = None,
        reason: str | None = None,
    ) -> LeafMcpConfig:
        """Apply a partial update to a leaf MCP.

        Raises:
            NotFoundError: If no leaf MCP has this id
            InvalidFormatError: If the patch is not an object, changes the id,
                or produces an invalid leaf MCP
        """
        patch = _patch_document(updates)
        async with self._lock.write_lock():
            current = self._config.leaf_mcps.get(mcp_id)
            if current is None:
                raise NotFoundError(f"Leaf MCP with ID '{mcp_id}' not found")

            updated = _apply_patch(LeafMcpConfig, current, patch)
            if updated.id != current.id:
                raise InvalidFormatError(f"Leaf MCP '{mcp_id}' cannot change its id")

            self._config.leaf_mcps[mcp_id] = updated
            self._config.update_last_modified()
            result = updated.model_copy(deep=True)

        logger.info("leaf_mcp_updated", mcp_id=mcp_id, fields=sorted(patch), actor=actor)
        await self._commit(
            "update_leaf_mcp",
            AuditAction.UPDATE,
            LeafMcpTarget(id=mcp_id),
            actor,
            reason,
            patch,
        )
        return result

    async def delete_leaf_mcp(
        self,
        mcp_id: str,
        *,
        actor: str | None = None,
        reason: str | None = None,
    ) -> LeafMcpConfig:
        """Delete a leaf MCP and revoke it from every agent.

        Raises:
            NotFoundError: If no leaf MCP has this id
        """
        async with self._lock.write_lock():
            removed = self._config.leaf_mcps.pop(mcp_id, None)
            if removed is None:
                raise NotFoundError(f"Leaf MCP with ID '{mcp_id}' not found")
            revoked_from = self._config.revoke_everywhere(mcp_id)
            self._config.update_last_modified()

        logger.info(
            "leaf_mcp_deleted", mcp_id=mcp_id, revoked_from=revoked_from, actor=actor
        )
        await self._commit(
            "delete_leaf_mcp",
            AuditAction.DELETE,
            LeafMcpTarget(id=mcp_id),
            actor,
            reason,
            removed.model_dump(mode="json"),
        )
        return removed

    # Agent operations
    def _check_targets_exist(self, mcp_ids: Iterable[str]) -> None:
        for mcp_id in mcp_ids:
            if not self._config.has_target(mcp_id):
                raise InvalidFormatError(f"MCP with ID '{mcp_id}' does not exist")

    async def create_agent(
        self,
        agent_id: str,
        allowed_mcp_ids: Iterable[str] = (),
        *,
        actor: str | None = None,
        reason: str | None = None,
    ) -> AgentConfig:
        """Register a new agent with an initial allow-list.

        Raises:
            InvalidFormatError: If the id is blank or an allowed id does not
                name an existing leaf MCP or agent
            AlreadyExistsError: If an agent with this id exists
        """
        _require_id(agent_id, "Agent ID")
        allowed = list(dict.fromkeys(allowed_mcp_ids))

        async with self._lock.write_lock():
            if agent_id in self._config.agents:
                raise AlreadyExistsError(f"Agent with ID '{agent_id}' already exists")
            self._check_targets_exist(allowed)

            agent = AgentConfig(agent_id=agent_id, allowed_mcp_ids=allowed)
            self._config.agents[agent_id] = agent
            self._config.update_last_modified()
            created = agent.model_copy(deep=True)

        logger.info("agent_created", agent_id=agent_id, allowed_mcp_ids=allowed, actor=actor)
        await self._commit(
            "create_agent",
            AuditAction.CREATE,
            AgentTarget(id=agent_id),
            actor,
            reason,
            created.model_dump(mode="json"),
        )
        return created

    async def get_agent(self, agent_id: str, *, actor: str | None = None) -> AgentConfig:
        """Read an agent configuration.

        Raises:
            NotFoundError: If no agent has this id
        """
        async with self._lock.read_lock():
            agent = self._config.agents.get(agent_id)
            if agent is None:
                raise NotFoundError(f"Agent with ID '{agent_id}' not found")
            result = agent.model_copy(deep=True)

        await self._record_read(AgentTarget(id=agent_id), actor)
        return result

    async def list_agents(self, *, actor: str | None = None) -> list[tuple[str, AgentConfig]]:
        """List all agent configurations."""
        async with self._lock.read_lock():
            agents = [
                (agent_id, agent.model_copy(deep=True))
                for agent_id, agent in self._config.agents.items()
            ]

        await self._record_read(
            ServerTarget(), actor, {"resource": "agents", "count": len(agents)}
        )
        return agents

    async def update_agent(
        self,
        agent_id: str,
        updates: Mapping[str, Any],
        *,
        actor: str | None = None,
        reason: str | None = None,
    ) -> AgentConfig:
        """Apply a partial update to an agent.

        Ids newly introduced into ``allowed_mcp_ids`` must name existing
        leaf MCPs or agents, exactly as with ``add_allowed_mcp``.

        Raises:
            NotFoundError: If no agent has this id
            InvalidFormatError: If the patch is not an object, changes the id,
                produces an invalid agent, or grants an unknown id
        """
        patch = _patch_document(updates)
        async with self._lock.write_lock():
            current = self._config.agents.get(agent_id)
            if current is None:
                raise NotFoundError(f"Agent with ID '{agent_id}' not found")

            updated = _apply_patch(AgentConfig, current, patch)
            if updated.agent_id != current.agent_id:
                raise InvalidFormatError(f"Agent '{agent_id}' cannot change its id")
            updated.allowed_mcp_ids = list(dict.fromkeys(updated.allowed_mcp_ids))
            self._check_targets_exist(
                mcp_id
                for mcp_id in updated.allowed_mcp_ids
                if mcp_id not in current.allowed_mcp_ids
            )

            self._config.agents[agent_id] = updated
            self._config.update_last_modified()
            result = updated.model_copy(deep=True)

        logger.info("agent_updated", agent_id=agent_id, fields=sorted(patch), actor=actor)
        await self._commit(
            "update_agent",
            AuditAction.UPDATE,
            AgentTarget(id=agent_id),
            actor,
            reason,
            patch,
        )
        return result

    async def delete_agent(
        self,
        agent_id: str,
        *,
        actor: str | None = None,
        reason: str | None = None,
    ) -> AgentConfig:
        """Delete an agent and revoke it from every other agent.

        Raises:
            NotFoundError: If no agent has this id
        """
        async with self._lock.write_lock():
            removed = self._config.agents.pop(agent_id, None)
            if removed is None:
                raise NotFoundError(f"Agent with ID '{agent_id}' not found")
            revoked_from = self._config.revoke_everywhere(agent_id)
            self._config.update_last_modified()

        logger.info(
            "agent_deleted", agent_id=agent_id, revoked_from=revoked_from, actor=actor
        )
        await self._commit(
            "delete_agent",
            AuditAction.DELETE,
            AgentTarget(id=agent_id),
            actor,
            reason,
            removed.model_dump(mode="json"),
        )
        return removed

    async def add_allowed_mcp(
        self,
        agent_id: str,
        mcp_id: str,
        *,
        actor: str | None = None,
        reason: str | None = None,
    ) -> AgentConfig:
        """Grant an agent access to a leaf MCP or another agent.

        Raises:
            NotFoundError: If no agent has this id
            InvalidFormatError: If ``mcp_id`` names neither a leaf MCP nor an agent
            AlreadyExistsError: If ``mcp_id`` is already allowed
        """
        async with self._lock.write_lock():
            agent = self._config.agents.get(agent_id)
            if agent is None:
                raise NotFoundError(f"Agent with ID '{agent_id}' not found")
            self._check_targets_exist([mcp_id])
            if mcp_id in agent.allowed_mcp_ids:
                raise AlreadyExistsError(
                    f"MCP '{mcp_id}' is already allowed for agent '{agent_id}'"
                )

            agent.allowed_mcp_ids.append(mcp_id)
            self._config.update_last_modified()
            result = agent.model_copy(deep=True)

        logger.info("allowed_mcp_added", agent_id=agent_id, mcp_id=mcp_id, actor=actor)
        await self._commit(
            "add_allowed_mcp",
            AuditAction.ADD_ALLOWED_MCP,
            AgentAllowedMcpTarget(agent_id=agent_id, mcp_id=mcp_id),
            actor,
            reason,
            {"mcp_id": mcp_id},
        )
        return result

    async def remove_allowed_mcp(
        self,
        agent_id: str,
        mcp_id: str,
        *,
        actor: str | None = None,
        reason: str | None = None,
    ) -> AgentConfig:
        """Revoke an agent's access to a leaf MCP or another agent.

        Raises:
            NotFoundError: If no agent has this id or ``mcp_id`` is not allowed
        """
        async with self._lock.write_lock():
            agent = self._config.agents.get(agent_id)
            if agent is None:
                raise NotFoundError(f"Agent with ID '{agent_id}' not found")
            if mcp_id not in agent.allowed_mcp_ids:
                raise NotFoundError(f"MCP '{mcp_id}' is not allowed for agent '{agent_id}'")

            agent.allowed_mcp_ids = [i for i in agent.allowed_mcp_ids if i != mcp_id]
            self._config.update_last_modified()
            result = agent.model_copy(deep=True)

        logger.info("allowed_mcp_removed", agent_id=agent_id, mcp_id=mcp_id, actor=actor)
        await self._commit(
            "remove_allowed_mcp",
            AuditAction.REMOVE_ALLOWED_MCP,
            AgentAllowedMcpTarget(agent_id=agent_id, mcp_id=mcp_id),
            actor,
            reason,
            {"mcp_id": mcp_id},
        )
        return result

    # Audit history
    async def get_audit_logs(self) -> list[AuditLogEntry]:
        """Load the full audit history in storage order."""
        return await self._audit_store.load_entries()

    async def query_audit_logs(self, query: AuditQuery | None = None) -> list[AuditLogEntry]:
        """Load the audit history, filtered and ordered newest first."""
        return filter_audit_entries(await self._audit_store.load_entries(), query)

    # Agent view
    async def get_agent_remote_config(self, agent_id: str) -> AgentRemoteConfig:
        """Build the view of the configuration an agent may use.

        Allowed ids resolve against leaf MCPs first, then agents. Ids that
        resolve to neither are left out.

        Raises:
            NotFoundError: If no agent has this id
        """
        async with self._lock.read_lock():
            agent = self._config.agents.get(agent_id)
            if agent is None:
                raise NotFoundError(f"Agent with ID '{agent_id}' not found")

            mcps: dict[str, LeafMcpConfig | AgentConfig] = {}
            for mcp_id in agent.allowed_mcp_ids:
                target = self._config.resolve_target(mcp_id)
                if target is not None:
                    mcps[mcp_id] = target.model_copy(deep=True)

            metadata = RemoteConfigMetadata(
                last_updated=self._config.metadata.last_modified,
                version=self._config.metadata.version,
            )

        return AgentRemoteConfig(agent_id=agent_id, mcps=mcps, metadata=metadata)
