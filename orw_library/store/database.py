"""Async SQLite engine for the snapshot store.

Provides an async SQLAlchemy engine backed by ``aiosqlite``. Queries run on
the aiosqlite worker thread, so the event loop is never blocked by disk I/O.
"""

from __future__ import annotations

import logging
from pathlib import Path

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

MEMORY = ":memory:"


def get_engine(db_path: Path | str) -> AsyncEngine:
    """Create an async SQLAlchemy engine backed by SQLite via aiosqlite.

    Args:
        db_path: Path to the SQLite database file. Parent directories are
            created automatically. Use ``:memory:`` for an ephemeral database
            shared by every session of this engine.

    Returns:
        A configured async engine
    """
    if str(db_path) == MEMORY:
        engine = create_async_engine(
            "sqlite+aiosqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        db_path = Path(db_path)
        db_path.parent.mkdir(parents=True, exist_ok=True)
        engine = create_async_engine(
            f"sqlite+aiosqlite:///{db_path}",
            connect_args={"check_same_thread": False},
        )

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragmas(dbapi_conn: object, _: object) -> None:
        cursor = dbapi_conn.cursor()  # type: ignore[attr-defined]
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA synchronous=NORMAL")
        cursor.close()

    logger.info(f"Created SQLite engine: {engine.url}")
    return engine
