"""
Fixtures for daemon tests.

The application is built from injected components and exercised in-process
through httpx's ASGI transport, on the same event loop as the fixtures.
"""

from collections.abc import AsyncGenerator
from pathlib import Path

import httpx
import pytest

from orw_library.config import Config
from orw_library.config import DaemonConfig
from orw_library.config import StorageConfig
from orw_library.config import WatcherConfig
from orwd.dependencies import ServerContext
from orwd.dependencies import build_context
from orwd.main import create_app

INDEX_HTML = "<!doctype html><html><body><div id='root'></div></body></html>"
APP_JS = "console.log('orw');"
FAVICON = "<svg xmlns='http://www.w3.org/2000/svg'></svg>"


@pytest.fixture
def client_files(tmp_path: Path) -> tuple[Path, Path]:
    """Built web client and static directory with one file each.

    Returns:
        Tuple of (client dist dir, static dir)
    """
    dist_dir = tmp_path / "dist"
    (dist_dir / "assets").mkdir(parents=True)
    (dist_dir / "index.html").write_text(INDEX_HTML)
    (dist_dir / "assets" / "app.js").write_text(APP_JS)

    static_dir = tmp_path / "static"
    static_dir.mkdir()
    (static_dir / "favicon.svg").write_text(FAVICON)
    return dist_dir, static_dir


@pytest.fixture
def daemon_config(tmp_path: Path, mock_storage_env: Path, client_files: tuple[Path, Path]) -> Config:
    """Configuration with every path under tmp_path and the schedule off."""
    dist_dir, static_dir = client_files
    return Config(
        daemon=DaemonConfig(public_url="https://orw.test/"),
        watcher=WatcherConfig(enabled=False),
        storage=StorageConfig(
            database_path=tmp_path / "state" / "orw.db",
            cache_dir=tmp_path / "cache",
            client_dist_dir=dist_dir,
            static_dir=static_dir,
        ),
    )


@pytest.fixture
async def context(daemon_config: Config, fake_catalog) -> AsyncGenerator[ServerContext, None]:
    """Daemon components after one successful poll of the fake catalog."""
    ctx = await build_context(daemon_config, client=fake_catalog)
    await ctx.watcher.perform_check()
    yield ctx
    await ctx.close()


@pytest.fixture
async def client(context: ServerContext) -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP client for an app using ``context``."""
    app = create_app(context=context)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http_client:
        yield http_client
