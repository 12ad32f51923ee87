"""orw command line interface.

Provides commands to run the daemon, trigger a single catalog check, and
inspect the stored change log.
"""

import asyncio
import sys
from pathlib import Path

import click

from orw_library.config import Config
from orw_library.config import load_config
from orw_library.errors import SnapshotStoreError
from orw_library.store import SnapshotStore
from orw_library.watcher import CatalogClient
from orw_library.watcher import CatalogWatcher

from .main import configure_logging


def _load(config_path: str | None) -> Config:
    return load_config(Path(config_path) if config_path else None)


async def _run_check(config: Config) -> bool:
    store = SnapshotStore.from_path(config.storage.database_path)
    await store.initialize()
    try:
        client = CatalogClient(config.watcher.api_url, timeout=config.watcher.request_timeout_seconds)
        watcher = CatalogWatcher(store, client, interval_seconds=config.watcher.interval_seconds)
        await watcher.load_state()
        ok = await watcher.perform_check()
        status = watcher.status
        click.echo(f"Check {status.api_last_check_status} at {status.api_last_check.isoformat()}")
        click.echo(
            f"Models: {status.db_model_count}, changes: {status.db_changes_count}, "
            f"removed: {status.db_removed_model_count}"
        )
        return ok
    finally:
        await store.close()


async def _print_changes(config: Config, limit: int, model_id: str | None) -> None:
    store = SnapshotStore.from_path(config.storage.database_path)
    await store.initialize()
    try:
        if model_id:
            changes = await store.load_changes_for_model(model_id, limit)
        else:
            changes = await store.load_changes(limit)
    finally:
        await store.close()

    for change in changes:
        click.echo(change.model_dump_json())


@click.group()
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="Path to orw.yaml")
@click.pass_context
def cli(ctx, config_path: str | None):
    """orw - OpenRouter model catalog watcher."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@cli.command()
@click.option("--host", default=None, help="Override the bind host")
@click.option("--port", default=None, type=int, help="Override the bind port")
@click.pass_context
def serve(ctx, host: str | None, port: int | None):
    """Run the daemon in the foreground."""
    import uvicorn

    from .main import create_app

    configure_logging()
    config = _load(ctx.obj["config_path"])
    if host:
        config.daemon.host = host
    if port:
        config.daemon.port = port

    uvicorn.run(
        create_app(config),
        host=config.daemon.host,
        port=config.daemon.port,
        log_level=config.daemon.log_level.lower(),
    )


@cli.command()
@click.pass_context
def check(ctx):
    """Poll the catalog once and record any changes."""
    config = _load(ctx.obj["config_path"])
    configure_logging(config.daemon.log_level)
    try:
        ok = asyncio.run(_run_check(config))
    except SnapshotStoreError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    sys.exit(0 if ok else 1)


@cli.command()
@click.option("-n", "--limit", default=20, show_default=True, help="Number of changes to show")
@click.option("--model", "model_id", default=None, help="Only show changes of this model id")
@click.pass_context
def changes(ctx, limit: int, model_id: str | None):
    """Print recent change events as JSON lines, newest first."""
    config = _load(ctx.obj["config_path"])
    configure_logging("WARNING")
    try:
        asyncio.run(_print_changes(config, limit, model_id))
    except SnapshotStoreError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def main():
    """Entry point for the orw CLI."""
    try:
        cli()
    except KeyboardInterrupt:
        click.echo("\nInterrupted")
        sys.exit(0)


if __name__ == "__main__":
    main()
