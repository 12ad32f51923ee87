"""Main FastAPI application for the orwd daemon.

This module builds the FastAPI application that serves the watched
catalog, its change log, and the web client, and runs the catalog
watcher in the background.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from orw_library.config import Config
from orw_library.config import load_config

from . import __version__
from .dependencies import ServerContext
from .dependencies import build_context
from .routers import api_router
from .routers import client_router
from .routers import feed_router

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the process and apply the level."""
    logging.basicConfig(format=LOG_FORMAT)
    logging.getLogger().setLevel(level.upper())


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager.

    Builds the shared components unless they were injected, starts the
    watcher schedule, and releases everything on shutdown. A store that
    cannot be opened aborts startup.

    Args:
        app: FastAPI application instance
    """
    # Startup
    config: Config = app.state.config
    context: ServerContext | None = getattr(app.state, "context", None)
    if context is None:
        try:
            context = await build_context(config)
        except Exception as e:
            logger.error(f"Failed to initialize storage: {e}")
            raise
        app.state.context = context

    logger.info(f"Starting orwd daemon on {config.daemon.host}:{config.daemon.port}")
    logger.info(f"Database: {config.storage.database_path}")

    if config.watcher.enabled:
        await context.scheduler.start()
    else:
        logger.info("Catalog watcher disabled")

    logger.info(f"Web interface running at URL {context.public_url}")

    yield

    # Shutdown
    logger.info("Shutting down orwd daemon")
    if config.watcher.enabled:
        await context.scheduler.stop()
    await context.close()


def create_app(config: Config | None = None, context: ServerContext | None = None) -> FastAPI:
    """Create the FastAPI application.

    Args:
        config: Configuration (loaded from file and environment if omitted)
        context: Pre-built components, used instead of building them at startup

    Returns:
        Configured application
    """
    if context is not None:
        config = context.config
    elif config is None:
        config = load_config()

    configure_logging(config.daemon.log_level)

    app = FastAPI(
        title="orwd",
        description="Watches the OpenRouter model catalog and serves its change history",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    if context is not None:
        app.state.context = context

    if config.daemon.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.daemon.cors_origins,
            allow_methods=["GET", "HEAD"],
            allow_headers=["*"],
        )

    app.include_router(api_router)
    app.include_router(feed_router)
    # Catch-all, keep last
    app.include_router(client_router)

    return app
