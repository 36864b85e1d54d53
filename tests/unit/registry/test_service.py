"""Tests for ConfigService."""

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime

import pytest

from mception.audit.models import AuditAction, AuditLogEntry, ServerTarget
from mception.audit.query import AuditQuery
from mception.audit.stores import InMemoryAuditStore
from mception.errors import (
    AlreadyExistsError,
    InvalidFormatError,
    NotFoundError,
    StorageIOError,
)
from mception.registry.models import AgentConfig, LeafMcpConfig, ServerConfig
from mception.registry.service import ConfigService
from mception.registry.stores import InMemoryConfigStore

LeafFactory = Callable[..., LeafMcpConfig]


class FailingAuditStore(InMemoryAuditStore):
    """Audit store whose appends fail once ``failing`` is set."""

    def __init__(self) -> None:
        super().__init__()
        self.failing = False

    async def append_entry(self, entry: AuditLogEntry) -> None:
        if self.failing:
            raise StorageIOError("audit log unavailable")
        await super().append_entry(entry)


class FailingConfigStore(InMemoryConfigStore):
    """Config store whose saves fail once ``failing`` is set."""

    def __init__(self) -> None:
        super().__init__()
        self.failing = False

    async def save_config(self, config: ServerConfig) -> None:
        if self.failing:
            raise StorageIOError("disk full")
        await super().save_config(config)


async def _seed(service: ConfigService, make_leaf: LeafFactory) -> None:
    """Two leaves (fs, web) and an agent a1 allowed to reach both."""
    await service.create_leaf_mcp("fs", make_leaf("fs"), actor="admin")
    await service.create_leaf_mcp("web", make_leaf("web"), actor="admin")
    await service.create_agent("a1", ["fs", "web"], actor="admin")


class TestLeafMcpOperations:
    """Tests for leaf MCP create/read/update/delete."""

    @pytest.mark.asyncio
    async def test_create_then_get(self, service: ConfigService, make_leaf: LeafFactory) -> None:
        """Should return the stored leaf after creation."""
        created = await service.create_leaf_mcp("fs", make_leaf("fs"), actor="admin")
        fetched = await service.get_leaf_mcp("fs", actor="admin")

        assert created == fetched
        assert fetched.transport.type == "stdio"

    @pytest.mark.asyncio
    async def test_create_accepts_mapping(self, service: ConfigService) -> None:
        """Should validate a plain mapping into a leaf configuration."""
        leaf = await service.create_leaf_mcp(
            "web",
            {"id": "web", "transport": {"type": "https", "url": "https://mcp.example.com"}},
        )
        assert leaf.transport.type == "https"

    @pytest.mark.asyncio
    async def test_create_duplicate_raises(
        self, service: ConfigService, audit_store: InMemoryAuditStore, make_leaf: LeafFactory
    ) -> None:
        """Should reject a duplicate id without writing an audit entry."""
        await service.create_leaf_mcp("fs", make_leaf("fs"))

        with pytest.raises(AlreadyExistsError):
            await service.create_leaf_mcp("fs", make_leaf("fs", name="other"))

        assert len(await audit_store.load_entries()) == 1
        assert (await service.get_leaf_mcp("fs")).name == "fs server"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("mcp_id", ["", "   "])
    async def test_create_blank_id_raises(
        self, service: ConfigService, make_leaf: LeafFactory, mcp_id: str
    ) -> None:
        """Should reject blank ids."""
        with pytest.raises(InvalidFormatError):
            await service.create_leaf_mcp(mcp_id, make_leaf("fs"))

    @pytest.mark.asyncio
    async def test_create_malformed_mapping_raises(self, service: ConfigService) -> None:
        """Should reject a mapping without a transport."""
        with pytest.raises(InvalidFormatError):
            await service.create_leaf_mcp("fs", {"id": "fs"})

    @pytest.mark.asyncio
    async def test_get_missing_raises(self, service: ConfigService) -> None:
        """Should raise NotFoundError for an unknown id."""
        with pytest.raises(NotFoundError):
            await service.get_leaf_mcp("missing")

    @pytest.mark.asyncio
    async def test_update_shallow_merges(
        self, service: ConfigService, make_leaf: LeafFactory
    ) -> None:
        """Should replace top-level keys and keep the rest."""
        await service.create_leaf_mcp("fs", make_leaf("fs", config={"a": 1, "b": 2}))

        updated = await service.update_leaf_mcp(
            "fs", {"name": "Files", "config": {"c": 3}}, actor="admin", reason="rename"
        )

        assert updated.name == "Files"
        assert updated.config == {"c": 3}
        assert updated.transport.command == "mcp-server"

    @pytest.mark.asyncio
    async def test_update_invalid_leaves_resource_unchanged(
        self, service: ConfigService, audit_store: InMemoryAuditStore, make_leaf: LeafFactory
    ) -> None:
        """Should reject a wrongly typed field and keep the stored leaf."""
        original = await service.create_leaf_mcp("fs", make_leaf("fs"))

        with pytest.raises(InvalidFormatError):
            await service.update_leaf_mcp("fs", {"is_local": "yes"})

        assert await service.get_leaf_mcp("fs") == original
        entries = await audit_store.load_entries()
        assert [e.action for e in entries if e.action != AuditAction.READ] == [AuditAction.CREATE]

    @pytest.mark.asyncio
    async def test_update_rejects_id_change(
        self, service: ConfigService, make_leaf: LeafFactory
    ) -> None:
        """Should not let a patch change the leaf's id."""
        await service.create_leaf_mcp("fs", make_leaf("fs"))
        with pytest.raises(InvalidFormatError):
            await service.update_leaf_mcp("fs", {"id": "other"})

    @pytest.mark.asyncio
    async def test_update_rejects_non_object_patch(
        self, service: ConfigService, make_leaf: LeafFactory
    ) -> None:
        """Should reject a patch that is not a JSON object."""
        await service.create_leaf_mcp("fs", make_leaf("fs"))
        with pytest.raises(InvalidFormatError):
            await service.update_leaf_mcp("fs", ["name", "x"])  # type: ignore[arg-type]

    @pytest.mark.asyncio
    async def test_update_rejects_non_json_value_before_mutating(
        self, service: ConfigService, audit_store: InMemoryAuditStore, make_leaf: LeafFactory
    ) -> None:
        """Should reject a value with no JSON form and leave the leaf untouched."""
        original = await service.create_leaf_mcp("fs", make_leaf("fs"))

        with pytest.raises(InvalidFormatError):
            await service.update_leaf_mcp("fs", {"name": "Files", "unknown": object()})

        assert await service.get_leaf_mcp("fs") == original
        entries = await audit_store.load_entries()
        assert AuditAction.UPDATE not in [e.action for e in entries]

    @pytest.mark.asyncio
    async def test_update_missing_raises(self, service: ConfigService) -> None:
        """Should raise NotFoundError when updating an unknown leaf."""
        with pytest.raises(NotFoundError):
            await service.update_leaf_mcp("missing", {"name": "x"})

    @pytest.mark.asyncio
    async def test_delete_revokes_from_agents(
        self, service: ConfigService, make_leaf: LeafFactory
    ) -> None:
        """Should remove the deleted leaf from every allow-list."""
        await _seed(service, make_leaf)
        await service.create_agent("a2", ["fs"])

        removed = await service.delete_leaf_mcp("fs", actor="admin")

        assert removed.id == "fs"
        config = await service.get_configuration()
        assert "fs" not in config.leaf_mcps
        assert config.agents["a1"].allowed_mcp_ids == ["web"]
        assert config.agents["a2"].allowed_mcp_ids == []

    @pytest.mark.asyncio
    async def test_delete_missing_raises(self, service: ConfigService) -> None:
        """Should raise NotFoundError when deleting an unknown leaf."""
        with pytest.raises(NotFoundError):
            await service.delete_leaf_mcp("missing")

    @pytest.mark.asyncio
    async def test_list_returns_all(self, service: ConfigService, make_leaf: LeafFactory) -> None:
        """Should list every leaf with its id."""
        await _seed(service, make_leaf)

        mcps = await service.list_leaf_mcps(actor="admin")

        assert sorted(mcp_id for mcp_id, _ in mcps) == ["fs", "web"]


class TestAgentOperations:
    """Tests for agent operations and allow-list management."""

    @pytest.mark.asyncio
    async def test_create_with_unknown_target_raises(self, service: ConfigService) -> None:
        """Should reject an allow-list naming an unknown id."""
        with pytest.raises(InvalidFormatError):
            await service.create_agent("a1", ["ghost"])

        with pytest.raises(NotFoundError):
            await service.get_agent("a1")

    @pytest.mark.asyncio
    async def test_create_deduplicates_allow_list(
        self, service: ConfigService, make_leaf: LeafFactory
    ) -> None:
        """Should keep the first occurrence of each allowed id."""
        await service.create_leaf_mcp("fs", make_leaf("fs"))
        agent = await service.create_agent("a1", ["fs", "fs"])
        assert agent.allowed_mcp_ids == ["fs"]

    @pytest.mark.asyncio
    async def test_create_duplicate_raises(self, service: ConfigService) -> None:
        """Should reject an existing agent id."""
        await service.create_agent("a1")
        with pytest.raises(AlreadyExistsError):
            await service.create_agent("a1")

    @pytest.mark.asyncio
    async def test_agent_may_allow_another_agent(self, service: ConfigService) -> None:
        """Should accept an agent id as an allow-list target."""
        await service.create_agent("a1")
        agent = await service.create_agent("a2", ["a1"])
        assert agent.allowed_mcp_ids == ["a1"]

    @pytest.mark.asyncio
    async def test_add_allowed_mcp(self, service: ConfigService, make_leaf: LeafFactory) -> None:
        """Should append the id and audit it against the allow-list entry."""
        await service.create_leaf_mcp("fs", make_leaf("fs"))
        await service.create_agent("a1")

        agent = await service.add_allowed_mcp("a1", "fs", actor="admin", reason="grant")

        assert agent.allowed_mcp_ids == ["fs"]
        entries = await service.get_audit_logs()
        last = entries[-1]
        assert last.action == AuditAction.ADD_ALLOWED_MCP
        assert last.target.kind == "agentallowedmcp"
        assert last.details == {"mcp_id": "fs"}
        assert last.reason == "grant"

    @pytest.mark.asyncio
    async def test_add_allowed_mcp_errors(
        self, service: ConfigService, make_leaf: LeafFactory
    ) -> None:
        """Should distinguish unknown agent, unknown target and duplicates."""
        await _seed(service, make_leaf)

        with pytest.raises(NotFoundError):
            await service.add_allowed_mcp("ghost", "fs")
        with pytest.raises(InvalidFormatError):
            await service.add_allowed_mcp("a1", "ghost")
        with pytest.raises(AlreadyExistsError):
            await service.add_allowed_mcp("a1", "fs")

    @pytest.mark.asyncio
    async def test_remove_allowed_mcp(self, service: ConfigService, make_leaf: LeafFactory) -> None:
        """Should drop the id from the allow-list."""
        await _seed(service, make_leaf)

        agent = await service.remove_allowed_mcp("a1", "fs")

        assert agent.allowed_mcp_ids == ["web"]
        with pytest.raises(NotFoundError):
            await service.remove_allowed_mcp("a1", "fs")

    @pytest.mark.asyncio
    async def test_update_validates_new_targets(
        self, service: ConfigService, make_leaf: LeafFactory
    ) -> None:
        """Should reject an update that grants an unknown id."""
        await _seed(service, make_leaf)

        with pytest.raises(InvalidFormatError):
            await service.update_agent("a1", {"allowed_mcp_ids": ["fs", "ghost"]})

        assert (await service.get_agent("a1")).allowed_mcp_ids == ["fs", "web"]

    @pytest.mark.asyncio
    async def test_update_merges_fields(self, service: ConfigService) -> None:
        """Should apply a partial update to an agent."""
        await service.create_agent("a1")

        agent = await service.update_agent("a1", {"name": "Agent One", "is_connected": True})

        assert agent.name == "Agent One"
        assert agent.is_connected is True

    @pytest.mark.asyncio
    async def test_update_rejects_id_change(self, service: ConfigService) -> None:
        """Should not let a patch change the agent's id."""
        await service.create_agent("a1")
        with pytest.raises(InvalidFormatError):
            await service.update_agent("a1", {"agent_id": "a2"})

    @pytest.mark.asyncio
    async def test_update_rejects_last_seen_without_offset(self, service: ConfigService) -> None:
        """Should only accept timezone-aware last_seen values."""
        await service.create_agent("a1")

        with pytest.raises(InvalidFormatError):
            await service.update_agent("a1", {"last_seen": datetime(2024, 1, 1, 12, 0)})

        agent = await service.update_agent(
            "a1", {"last_seen": datetime(2024, 1, 1, 12, 0, tzinfo=UTC)}
        )
        assert agent.last_seen == datetime(2024, 1, 1, 12, 0, tzinfo=UTC)

    @pytest.mark.asyncio
    async def test_delete_agent_revokes_from_other_agents(self, service: ConfigService) -> None:
        """Should remove a deleted agent from other allow-lists."""
        await service.create_agent("a1")
        await service.create_agent("a2", ["a1"])

        await service.delete_agent("a1")

        assert (await service.get_agent("a2")).allowed_mcp_ids == []


class TestAuditTrail:
    """Tests for the audit entries written by the service."""

    @pytest.mark.asyncio
    async def test_each_mutation_writes_one_entry(
        self, service: ConfigService, audit_store: InMemoryAuditStore, make_leaf: LeafFactory
    ) -> None:
        """Should append exactly one entry per successful mutation."""
        await service.create_leaf_mcp("fs", make_leaf("fs"), actor="admin")
        await service.update_leaf_mcp("fs", {"name": "Files"}, actor="admin")
        await service.create_agent("a1", ["fs"], actor="admin")
        await service.delete_leaf_mcp("fs", actor="admin")

        entries = await audit_store.load_entries()

        assert [(e.action, e.target.kind) for e in entries] == [
            (AuditAction.CREATE, "leafmcp"),
            (AuditAction.UPDATE, "leafmcp"),
            (AuditAction.CREATE, "agent"),
            (AuditAction.DELETE, "leafmcp"),
        ]
        assert entries[1].details == {"name": "Files"}
        assert all(e.actor == "admin" for e in entries)

    @pytest.mark.asyncio
    async def test_failed_mutation_writes_nothing(
        self, service: ConfigService, audit_store: InMemoryAuditStore
    ) -> None:
        """Should leave the log untouched when validation fails."""
        with pytest.raises(NotFoundError):
            await service.delete_agent("missing")
        assert await audit_store.load_entries() == []

    @pytest.mark.asyncio
    async def test_reads_are_audited(
        self, service: ConfigService, audit_store: InMemoryAuditStore, make_leaf: LeafFactory
    ) -> None:
        """Should record gets and listings as read entries."""
        await service.create_leaf_mcp("fs", make_leaf("fs"))
        await service.get_leaf_mcp("fs", actor="a1")
        await service.list_agents(actor="admin")

        reads = [e for e in await audit_store.load_entries() if e.action == AuditAction.READ]

        assert reads[0].target.kind == "leafmcp"
        assert reads[0].actor == "a1"
        assert reads[1].target == ServerTarget()
        assert reads[1].details == {"resource": "agents", "count": 0}

    @pytest.mark.asyncio
    async def test_read_audit_failure_is_swallowed(
        self, config_store: InMemoryConfigStore, make_leaf: LeafFactory
    ) -> None:
        """Should still return the resource when the read entry cannot be written."""
        audit_store = FailingAuditStore()
        service = ConfigService(config_store=config_store, audit_store=audit_store)
        await service.create_leaf_mcp("fs", make_leaf("fs"))
        audit_store.failing = True

        leaf = await service.get_leaf_mcp("fs")
        mcps = await service.list_leaf_mcps()

        assert leaf.id == "fs"
        assert len(mcps) == 1

    @pytest.mark.asyncio
    async def test_write_audit_failure_skips_persistence(
        self, config_store: InMemoryConfigStore, make_leaf: LeafFactory
    ) -> None:
        """Should raise, keep the in-memory change and leave storage behind."""
        audit_store = FailingAuditStore()
        service = ConfigService(config_store=config_store, audit_store=audit_store)
        await service.create_leaf_mcp("fs", make_leaf("fs"))
        audit_store.failing = True

        with pytest.raises(StorageIOError):
            await service.create_leaf_mcp("web", make_leaf("web"))

        live = await service.get_configuration()
        persisted = await config_store.load_config()
        assert "web" in live.leaf_mcps
        assert "web" not in persisted.leaf_mcps

    @pytest.mark.asyncio
    async def test_persist_failure_raises_after_audit(
        self, audit_store: InMemoryAuditStore, make_leaf: LeafFactory
    ) -> None:
        """Should raise the storage error once the entry is already logged."""
        config_store = FailingConfigStore()
        config_store.failing = True
        service = ConfigService(config_store=config_store, audit_store=audit_store)

        with pytest.raises(StorageIOError):
            await service.create_leaf_mcp("fs", make_leaf("fs"))

        assert len(await audit_store.load_entries()) == 1

    @pytest.mark.asyncio
    async def test_query_audit_logs(self, service: ConfigService, make_leaf: LeafFactory) -> None:
        """Should filter and order entries newest first."""
        await _seed(service, make_leaf)

        entries = await service.query_audit_logs(AuditQuery(action="create", limit=2))

        assert len(entries) == 2
        assert all(e.action == AuditAction.CREATE for e in entries)
        assert entries[0].timestamp >= entries[1].timestamp


class TestPersistence:
    """Tests for save, load and snapshot behaviour."""

    @pytest.mark.asyncio
    async def test_mutation_is_persisted(
        self, service: ConfigService, config_store: InMemoryConfigStore, make_leaf: LeafFactory
    ) -> None:
        """Should persist the configuration after each mutation."""
        await _seed(service, make_leaf)

        persisted = await config_store.load_config()

        assert persisted == await service.get_configuration()

    @pytest.mark.asyncio
    async def test_load_replaces_live_configuration(
        self, config_store: InMemoryConfigStore, audit_store: InMemoryAuditStore,
        make_leaf: LeafFactory,
    ) -> None:
        """Should serve what another instance persisted."""
        writer = ConfigService(config_store=config_store, audit_store=audit_store)
        await _seed(writer, make_leaf)

        reader = ConfigService(config_store=config_store, audit_store=audit_store)
        await reader.load_configuration()

        assert await reader.get_configuration() == await writer.get_configuration()

    @pytest.mark.asyncio
    async def test_snapshot_is_detached(
        self, service: ConfigService, make_leaf: LeafFactory
    ) -> None:
        """Should not let callers mutate live state through a snapshot."""
        await _seed(service, make_leaf)

        snapshot = await service.get_configuration()
        snapshot.agents["a1"].allowed_mcp_ids.clear()
        fetched = await service.get_agent("a1")
        fetched.allowed_mcp_ids.append("x")

        assert (await service.get_agent("a1")).allowed_mcp_ids == ["fs", "web"]

    @pytest.mark.asyncio
    async def test_last_modified_advances(
        self, service: ConfigService, make_leaf: LeafFactory
    ) -> None:
        """Should stamp last_modified on every mutation."""
        before = (await service.get_configuration()).metadata.last_modified
        await service.create_leaf_mcp("fs", make_leaf("fs"))
        after = (await service.get_configuration()).metadata.last_modified
        assert after >= before

    @pytest.mark.asyncio
    async def test_backup_requires_persisted_configuration(
        self, service: ConfigService, make_leaf: LeafFactory
    ) -> None:
        """Should fail before the first save and succeed afterwards."""
        with pytest.raises(NotFoundError):
            await service.backup_configuration()

        await service.create_leaf_mcp("fs", make_leaf("fs"))
        location = await service.backup_configuration()

        assert location.startswith("memory://config.backup.")


class TestRemoteConfig:
    """Tests for the per-agent projection."""

    @pytest.mark.asyncio
    async def test_projection_contains_allowed_targets(
        self, service: ConfigService, make_leaf: LeafFactory
    ) -> None:
        """Should resolve allowed ids to their configurations."""
        await _seed(service, make_leaf)
        await service.create_leaf_mcp("secret", make_leaf("secret"))
        await service.create_agent("a2", ["a1"])

        remote = await service.get_agent_remote_config("a1")

        assert remote.agent_id == "a1"
        assert set(remote.mcps) == {"fs", "web"}
        assert remote.allows("fs")
        assert not remote.allows("secret")
        assert isinstance((await service.get_agent_remote_config("a2")).mcps["a1"], AgentConfig)

    @pytest.mark.asyncio
    async def test_projection_metadata(self, service: ConfigService, make_leaf: LeafFactory) -> None:
        """Should carry the configuration's version and last_modified."""
        await _seed(service, make_leaf)

        remote = await service.get_agent_remote_config("a1")
        config = await service.get_configuration()

        assert remote.metadata.version == config.metadata.version
        assert remote.metadata.last_updated == config.metadata.last_modified

    @pytest.mark.asyncio
    async def test_projection_unknown_agent_raises(self, service: ConfigService) -> None:
        """Should raise NotFoundError for an unknown agent."""
        with pytest.raises(NotFoundError):
            await service.get_agent_remote_config("ghost")


class TestConcurrency:
    """Tests for concurrent access to one service."""

    @pytest.mark.asyncio
    async def test_concurrent_grants_are_all_applied(
        self, service: ConfigService, make_leaf: LeafFactory
    ) -> None:
        """Should apply every concurrent allow-list change."""
        ids = [f"leaf{i}" for i in range(10)]
        for mcp_id in ids:
            await service.create_leaf_mcp(mcp_id, make_leaf(mcp_id))
        await service.create_agent("a1")

        await asyncio.gather(*(service.add_allowed_mcp("a1", mcp_id) for mcp_id in ids))

        agent = await service.get_agent("a1")
        assert sorted(agent.allowed_mcp_ids) == sorted(ids)
        grants = await service.query_audit_logs(AuditQuery(action="addallowedmcp"))
        assert len(grants) == len(ids)
