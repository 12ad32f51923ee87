"""Shared components for the daemon and their FastAPI dependency.

The daemon's components are assembled once per process by
``build_context`` and stored on ``app.state``; routers reach them through
``get_context``.
"""

import logging
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path

from fastapi import Request

from orw_library.cache import CacheManager
from orw_library.config import Config
from orw_library.errors import SnapshotStoreError
from orw_library.store import SnapshotStore
from orw_library.watcher import CatalogClient
from orw_library.watcher import CatalogSource
from orw_library.watcher import CatalogWatcher
from orw_library.watcher import WatcherScheduler

from .serving import ResourceServer

logger = logging.getLogger(__name__)


def list_static_files(static_dir: Path) -> frozenset[str]:
    """Names of the regular files directly inside the static directory."""
    if not static_dir.is_dir():
        logger.warning(f"Static directory not found: {static_dir}")
        return frozenset()
    return frozenset(entry.name for entry in static_dir.iterdir() if entry.is_file())


@dataclass
class ServerContext:
    """Everything a request handler needs, built once at startup."""

    config: Config
    store: SnapshotStore
    watcher: CatalogWatcher
    cache: CacheManager
    server: ResourceServer
    scheduler: WatcherScheduler
    static_files: frozenset[str] = field(default_factory=frozenset)

    @property
    def public_url(self) -> str:
        return self.config.daemon.get_public_url()

    async def close(self) -> None:
        """Wait for pending cache writes and release the store."""
        await self.cache.drain()
        await self.store.close()


async def build_context(config: Config, client: CatalogSource | None = None) -> ServerContext:
    """Assemble and initialize the daemon components.

    Args:
        config: Daemon configuration
        client: Catalog source; defaults to an HTTP client for the configured URL

    Returns:
        Initialized context with the stored snapshot loaded

    Raises:
        SnapshotStoreError: If the store cannot be opened or read
        OSError: If the cache directory cannot be created
    """
    if client is None:
        client = CatalogClient(
            config.watcher.api_url,
            timeout=config.watcher.request_timeout_seconds,
        )

    store = SnapshotStore.from_path(config.storage.database_path)
    watcher = CatalogWatcher(store, client, interval_seconds=config.watcher.interval_seconds)
    try:
        await store.initialize()
        await watcher.load_state()
    except SnapshotStoreError:
        await store.close()
        raise

    cache = CacheManager(config.storage.cache_dir, enabled=not config.storage.disable_cache)
    cache.ensure_dir()

    return ServerContext(
        config=config,
        store=store,
        watcher=watcher,
        cache=cache,
        server=ResourceServer(watcher, cache, config.daemon.content_security_policy),
        scheduler=WatcherScheduler(watcher, config.watcher.interval_seconds),
        static_files=list_static_files(config.storage.static_dir),
    )


def get_context(request: Request) -> ServerContext:
    """FastAPI dependency returning the daemon's shared components."""
    return request.app.state.context
