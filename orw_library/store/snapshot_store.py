"""Snapshot store.

Durable storage for catalog snapshots and the change log, backed by SQLite.
Every operation either completes or raises ``SnapshotStoreError``; nothing
is silently dropped.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import UTC
from datetime import datetime
from pathlib import Path

from sqlalchemy import distinct
from sqlalchemy import func
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.ext.asyncio import async_sessionmaker

from ..errors import SnapshotStoreError
from ..models import EPOCH
from ..models import ChangedChange
from ..models import Model
from ..models import ModelChange
from ..models import model_change_adapter
from .database import get_engine
from .tables import Base
from .tables import ChangeTable
from .tables import ModelSnapshotTable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreCounters:
    """Derived counters for status reporting.

    Attributes:
        model_count: Distinct models in the current snapshot
        changes_count: Change events recorded
        removed_count: Models whose latest event is a removal
        first_change: Timestamp of the oldest change, if any
        last_change: Last write time of stored content (epoch when empty)
    """

    model_count: int
    changes_count: int
    removed_count: int
    first_change: datetime | None
    last_change: datetime


def _to_db(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _from_db(value: datetime | None) -> datetime | None:
    # SQLite hands back naive values; they were written as UTC
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _change_payload(change: ModelChange) -> dict:
    if isinstance(change, ChangedChange):
        return {"changes": {path: fc.model_dump(mode="json") for path, fc in change.changes.items()}}
    return {"model": change.model.model_dump(mode="json")}


def _change_from_row(row: ChangeTable) -> ModelChange:
    return model_change_adapter.validate_python(
        {
            "id": row.model_id,
            "type": row.change_type,
            "timestamp": _from_db(row.timestamp),
            **row.payload,
        }
    )


def _snapshot_rows(models: list[Model], captured_at: datetime) -> list[ModelSnapshotTable]:
    timestamp = _to_db(captured_at)
    return [
        ModelSnapshotTable(timestamp=timestamp, model_id=model.id, data=model.model_dump(mode="json"))
        for model in models
    ]


def _change_rows(changes: list[ModelChange]) -> list[ChangeTable]:
    return [
        ChangeTable(
            timestamp=_to_db(change.timestamp),
            model_id=change.id,
            change_type=change.type,
            payload=_change_payload(change),
        )
        for change in changes
    ]


def _latest_change_per_model():
    """Subquery selecting the newest change row of every model."""
    return (
        select(func.max(ChangeTable.row_id).label("row_id"))
        .group_by(ChangeTable.model_id)
        .subquery()
    )


class SnapshotStore:
    """SQLite-backed storage for snapshots and change events."""

    def __init__(self, engine: AsyncEngine) -> None:
        """Initialize store on an existing engine.

        Args:
            engine: Async SQLAlchemy engine
        """
        self.engine = engine
        self._sessionmaker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    @classmethod
    def from_path(cls, db_path: Path | str) -> SnapshotStore:
        """Create a store backed by a SQLite file (or ``:memory:``)."""
        return cls(get_engine(db_path))

    @asynccontextmanager
    async def _session(self, action: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._sessionmaker() as session:
                yield session
        except SQLAlchemyError as e:
            raise SnapshotStoreError(f"Failed to {action}: {e}") from e

    async def initialize(self) -> None:
        """Create tables if they don't exist. Safe to call on every startup.

        Raises:
            SnapshotStoreError: If the database cannot be opened or created
        """
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as e:
            raise SnapshotStoreError(f"Failed to initialize database: {e}") from e
        logger.info("Snapshot store tables created/verified")

    async def close(self) -> None:
        """Dispose of the engine and its connections."""
        await self.engine.dispose()

    # Snapshots

    async def store_snapshot(self, models: list[Model], captured_at: datetime) -> None:
        """Append every model of a snapshot tagged with its capture time.

        Args:
            models: Snapshot contents, in upstream order
            captured_at: Capture time shared by every row
        """
        rows = _snapshot_rows(models, captured_at)
        async with self._session("store snapshot") as session:
            async with session.begin():
                session.add_all(rows)
        logger.debug(f"Stored snapshot of {len(rows)} models at {captured_at.isoformat()}")

    async def record_check(self, models: list[Model], changes: list[ModelChange], captured_at: datetime) -> None:
        """Append a snapshot and the changes detected against it in one transaction.

        Args:
            models: Snapshot contents, in upstream order
            changes: Events detected for this snapshot
            captured_at: Capture time of the snapshot
        """
        async with self._session("record check") as session:
            async with session.begin():
                session.add_all(_snapshot_rows(models, captured_at))
                session.add_all(_change_rows(changes))
        logger.debug(f"Recorded check at {captured_at.isoformat()}: {len(models)} models, {len(changes)} changes")

    async def load_latest_snapshot(self) -> list[Model]:
        """Load the most recent snapshot.

        Returns:
            Models of the newest capture round in stored order, empty if the store is empty
        """
        latest = select(func.max(ModelSnapshotTable.timestamp)).scalar_subquery()
        stmt = (
            select(ModelSnapshotTable)
            .where(ModelSnapshotTable.timestamp == latest)
            .order_by(ModelSnapshotTable.row_id)
        )
        async with self._session("load latest snapshot") as session:
            rows = (await session.scalars(stmt)).all()
        return [Model.model_validate(row.data) for row in rows]

    # Changes

    async def store_changes(self, changes: list[ModelChange]) -> None:
        """Append change events in one transaction.

        Args:
            changes: Events to append, in detection order
        """
        if not changes:
            return
        rows = _change_rows(changes)
        async with self._session("store changes") as session:
            async with session.begin():
                session.add_all(rows)
        logger.debug(f"Stored {len(rows)} change events")

    async def load_changes(self, limit: int) -> list[ModelChange]:
        """Load the newest change events.

        Args:
            limit: Maximum number of events

        Returns:
            Events, newest first
        """
        stmt = select(ChangeTable).order_by(ChangeTable.timestamp.desc(), ChangeTable.row_id.desc()).limit(limit)
        async with self._session("load changes") as session:
            rows = (await session.scalars(stmt)).all()
        return [_change_from_row(row) for row in rows]

    async def load_changes_for_model(self, model_id: str, limit: int) -> list[ModelChange]:
        """Load the newest change events for one model.

        Args:
            model_id: Model identifier
            limit: Maximum number of events

        Returns:
            Events for that model, newest first
        """
        stmt = (
            select(ChangeTable)
            .where(ChangeTable.model_id == model_id)
            .order_by(ChangeTable.timestamp.desc(), ChangeTable.row_id.desc())
            .limit(limit)
        )
        async with self._session("load changes for model") as session:
            rows = (await session.scalars(stmt)).all()
        return [_change_from_row(row) for row in rows]

    async def load_removed_models(self) -> list[Model]:
        """Load models whose most recent event is a removal.

        A model that was removed and later added again is not included.

        Returns:
            Last known state of each removed model, most recently removed first
        """
        latest = _latest_change_per_model()
        stmt = (
            select(ChangeTable)
            .join(latest, ChangeTable.row_id == latest.c.row_id)
            .where(ChangeTable.change_type == "removed")
            .order_by(ChangeTable.timestamp.desc(), ChangeTable.row_id.desc())
        )
        async with self._session("load removed models") as session:
            rows = (await session.scalars(stmt)).all()
        return [Model.model_validate(row.payload["model"]) for row in rows]

    # Counters

    async def get_counters(self) -> StoreCounters:
        """Compute the counters reported in the status envelope."""
        latest_snapshot = select(func.max(ModelSnapshotTable.timestamp)).scalar_subquery()
        latest_change = _latest_change_per_model()

        async with self._session("compute counters") as session:
            model_count = await session.scalar(
                select(func.count(distinct(ModelSnapshotTable.model_id))).where(
                    ModelSnapshotTable.timestamp == latest_snapshot
                )
            )
            changes_count, first_change, newest_change = (
                await session.execute(
                    select(
                        func.count(ChangeTable.row_id),
                        func.min(ChangeTable.timestamp),
                        func.max(ChangeTable.timestamp),
                    )
                )
            ).one()
            removed_count = await session.scalar(
                select(func.count())
                .select_from(ChangeTable)
                .join(latest_change, ChangeTable.row_id == latest_change.c.row_id)
                .where(ChangeTable.change_type == "removed")
            )
            first_snapshot = await session.scalar(select(func.min(ModelSnapshotTable.timestamp)))

        last_change = _from_db(newest_change) or _from_db(first_snapshot) or EPOCH
        return StoreCounters(
            model_count=model_count or 0,
            changes_count=changes_count or 0,
            removed_count=removed_count or 0,
            first_change=_from_db(first_change),
            last_change=last_change,
        )
