"""Command-line interface for the MCePtion server.

Usage:
    mception                       # start the HTTP server
    mception --port 9000 start
    mception show-config --format table
    mception show-audit --action create --limit 10
    mception export --output backup.json
"""

import asyncio
from pathlib import Path
from typing import NoReturn

import click
import uvicorn
from rich.console import Console

from mception.api.app import create_app
from mception.audit import AuditQuery
from mception.config import get_settings
from mception.config.settings import Settings
from mception.errors import ConfigurationError, MceptionError
from mception.observability.logging import get_logger, setup_logging
from mception.registry.factory import open_config_service
from mception.registry.service import ConfigService
from mception.rendering import (
    OutputFormat,
    render_agents,
    render_audit_entries,
    render_config,
    render_leaf_mcps,
)

logger = get_logger(__name__)

err_console = Console(stderr=True)

FORMAT_CHOICE = click.Choice([f.value for f in OutputFormat], case_sensitive=False)


def _apply_overrides(
    settings: Settings,
    config_path: str | None,
    audit_log_path: str | None,
    host: str | None,
    port: int | None,
) -> Settings:
    storage_updates = {
        key: value
        for key, value in (("config_path", config_path), ("audit_log_path", audit_log_path))
        if value is not None
    }
    api_updates = {key: value for key, value in (("host", host), ("port", port)) if value is not None}
    return settings.model_copy(
        update={
            "storage": settings.storage.model_copy(update=storage_updates),
            "api": settings.api.model_copy(update=api_updates),
        }
    )


def _fail(message: str) -> NoReturn:
    err_console.print(
        f"Error: {message}", style="bold red", markup=False, highlight=False, soft_wrap=True
    )
    raise SystemExit(1)


def _open_service(settings: Settings) -> ConfigService:
    """Load the persisted configuration, exiting with status 1 on failure."""
    try:
        return asyncio.run(open_config_service(settings))
    except MceptionError as e:
        logger.error("config_load_failed", error=str(e))
        _fail(f"Failed to load configuration: {e}")


def _echo(text: str) -> None:
    click.echo(text.rstrip("\n"))


@click.group(invoke_without_command=True)
@click.option("--config", "config_path", default=None, help="Server configuration JSON file")
@click.option("--audit-log", "audit_log_path", default=None, help="Audit log JSONL file")
@click.option("--host", default=None, help="HTTP bind address")
@click.option("--port", type=int, default=None, help="HTTP port")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: str | None,
    audit_log_path: str | None,
    host: str | None,
    port: int | None,
) -> None:
    """MCePtion configuration and audit server."""
    try:
        base_settings = get_settings()
    except ConfigurationError as e:
        _fail(str(e))
    settings = _apply_overrides(base_settings, config_path, audit_log_path, host, port)
    setup_logging(
        level=settings.observability.logging.level,
        format=settings.observability.logging.format,
        redact_pii=settings.observability.logging.redact_pii,
    )

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings

    if ctx.invoked_subcommand is None:
        ctx.invoke(start)


@cli.command()
@click.pass_context
def start(ctx: click.Context) -> None:
    """Start the HTTP server."""
    settings: Settings = ctx.obj["settings"]
    service = _open_service(settings)

    logger.info(
        "server_starting",
        host=settings.api.host,
        port=settings.api.port,
        config_path=settings.storage.config_path,
        audit_log_path=settings.storage.audit_log_path,
    )
    app = create_app(service=service, settings=settings)
    uvicorn.run(
        app,
        host=settings.api.host,
        port=settings.api.port,
        log_level=settings.observability.logging.level.lower(),
    )


@cli.command("show-config")
@click.option("--format", "fmt", type=FORMAT_CHOICE, default=OutputFormat.PRETTY.value)
@click.pass_context
def show_config(ctx: click.Context, fmt: str) -> None:
    """Show the current server configuration."""
    service = _open_service(ctx.obj["settings"])
    config = asyncio.run(service.get_configuration())
    _echo(render_config(config, OutputFormat(fmt)))


@cli.command("show-audit")
@click.option("--limit", type=click.IntRange(min=0), default=None, help="Maximum entries")
@click.option("--action", default=None, help="Action filter, e.g. create or addallowedmcp")
@click.option("--target", default=None, help="Target kind filter, e.g. leafmcp or agent")
@click.option("--actor", default=None, help="Actor substring")
@click.option("--format", "fmt", type=FORMAT_CHOICE, default=OutputFormat.PRETTY.value)
@click.pass_context
def show_audit(
    ctx: click.Context,
    limit: int | None,
    action: str | None,
    target: str | None,
    actor: str | None,
    fmt: str,
) -> None:
    """Show audit log entries, most recent first."""
    service = _open_service(ctx.obj["settings"])
    query = AuditQuery(action=action, target=target, actor=actor, limit=limit)
    try:
        entries = asyncio.run(service.query_audit_logs(query))
    except MceptionError as e:
        _fail(f"Failed to read audit log: {e}")
    _echo(render_audit_entries(entries, OutputFormat(fmt)))


@cli.command("list-mcps")
@click.option("--format", "fmt", type=FORMAT_CHOICE, default=OutputFormat.TABLE.value)
@click.pass_context
def list_mcps(ctx: click.Context, fmt: str) -> None:
    """List leaf MCPs."""
    settings: Settings = ctx.obj["settings"]
    service = _open_service(settings)
    mcps = asyncio.run(service.list_leaf_mcps(actor=settings.api.default_actor))
    _echo(render_leaf_mcps(mcps, OutputFormat(fmt)))


@cli.command("list-agents")
@click.option("--format", "fmt", type=FORMAT_CHOICE, default=OutputFormat.TABLE.value)
@click.pass_context
def list_agents(ctx: click.Context, fmt: str) -> None:
    """List agents and their allowed MCPs."""
    settings: Settings = ctx.obj["settings"]
    service = _open_service(settings)
    agents = asyncio.run(service.list_agents(actor=settings.api.default_actor))
    _echo(render_agents(agents, OutputFormat(fmt)))


@cli.command()
@click.option(
    "--output",
    "output_path",
    type=click.Path(dir_okay=False, path_type=Path),
    required=True,
    help="Destination JSON file",
)
@click.pass_context
def export(ctx: click.Context, output_path: Path) -> None:
    """Export the server configuration as JSON."""
    service = _open_service(ctx.obj["settings"])
    config = asyncio.run(service.get_configuration())
    try:
        output_path.write_text(render_config(config, OutputFormat.JSON), encoding="utf-8")
    except OSError as e:
        _fail(f"Cannot write {output_path}: {e}")
    click.echo(f"Configuration exported to {output_path}")


if __name__ == "__main__":
    cli()
