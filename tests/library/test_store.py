"""
Integration tests for the snapshot store on a temporary SQLite file.

Tests cover snapshot round-trips, latest-snapshot selection, change log
queries, removed models, counters, and error wrapping.
"""

from collections.abc import Callable
from datetime import UTC
from datetime import datetime
from datetime import timedelta
from pathlib import Path

import pytest

from orw_library.errors import SnapshotStoreError
from orw_library.models import EPOCH
from orw_library.models import AddedChange
from orw_library.models import ChangedChange
from orw_library.models import FieldChange
from orw_library.models import Model
from orw_library.models import RemovedChange
from orw_library.store import SnapshotStore

T1 = datetime(2024, 5, 1, 10, 0, tzinfo=UTC)
T2 = T1 + timedelta(hours=1)
T3 = T2 + timedelta(hours=1)


@pytest.mark.integration
class TestSnapshots:
    """Test snapshot storage and retrieval."""

    async def test_empty_store_returns_empty_snapshot(self, store: SnapshotStore) -> None:
        """Test the latest snapshot of an empty store is an empty list."""
        assert await store.load_latest_snapshot() == []

    async def test_round_trip(self, store: SnapshotStore, sample_models: list[Model]) -> None:
        """Test a stored snapshot loads back unchanged and in order."""
        await store.store_snapshot(sample_models, T1)

        assert await store.load_latest_snapshot() == sample_models

    async def test_latest_snapshot_wins(self, store: SnapshotStore, make_model: Callable[..., Model]) -> None:
        """Test only the newest capture round is returned, never a mix."""
        m1 = make_model("vendor/m1")
        m2 = make_model("vendor/m2")
        await store.store_snapshot([m1], T1)
        await store.store_snapshot([m1, m2], T2)

        assert await store.load_latest_snapshot() == [m1, m2]

    async def test_snapshot_survives_reopen(self, tmp_path: Path, sample_models: list[Model]) -> None:
        """Test snapshots are durable across store instances."""
        db_path = tmp_path / "orw.db"
        first = SnapshotStore.from_path(db_path)
        await first.initialize()
        await first.store_snapshot(sample_models, T1)
        await first.close()

        second = SnapshotStore.from_path(db_path)
        await second.initialize()
        try:
            assert await second.load_latest_snapshot() == sample_models
        finally:
            await second.close()

    async def test_memory_store(self, sample_models: list[Model]) -> None:
        """Test an in-memory store keeps data across sessions."""
        memory_store = SnapshotStore.from_path(":memory:")
        await memory_store.initialize()
        try:
            await memory_store.store_snapshot(sample_models, T1)
            assert await memory_store.load_latest_snapshot() == sample_models
        finally:
            await memory_store.close()


@pytest.mark.integration
class TestChanges:
    """Test change log storage and queries."""

    async def test_load_changes_newest_first(self, store: SnapshotStore, sample_models: list[Model]) -> None:
        """Test changes come back newest first and bounded by the limit."""
        await store.store_changes([AddedChange(id=m.id, timestamp=T1, model=m) for m in sample_models])
        renamed = ChangedChange(id=sample_models[0].id, timestamp=T2, changes={"name": FieldChange(old="a", new="b")})
        await store.store_changes([renamed])

        changes = await store.load_changes(2)

        assert changes[0] == renamed
        assert len(changes) == 2
        # Same timestamp: later insertion first
        assert changes[1].id == sample_models[-1].id

    async def test_store_no_changes_is_noop(self, store: SnapshotStore) -> None:
        """Test storing an empty batch writes nothing."""
        await store.store_changes([])

        assert await store.load_changes(10) == []

    async def test_load_changes_for_model(self, store: SnapshotStore, sample_models: list[Model]) -> None:
        """Test per-model history is filtered and newest first."""
        target = sample_models[1]
        await store.store_changes([AddedChange(id=m.id, timestamp=T1, model=m) for m in sample_models])
        await store.store_changes(
            [ChangedChange(id=target.id, timestamp=T2, changes={"context_length": FieldChange(old=1, new=2)})]
        )

        changes = await store.load_changes_for_model(target.id, 50)

        assert [change.type for change in changes] == ["changed", "added"]
        assert all(change.id == target.id for change in changes)

    async def test_record_check_writes_snapshot_and_changes(
        self,
        store: SnapshotStore,
        sample_models: list[Model],
    ) -> None:
        """Test a check records its snapshot and changes together."""
        gone = sample_models[0].model_copy(update={"id": "vendor/gone"})
        removed = RemovedChange(id=gone.id, timestamp=T2, model=gone)

        await store.record_check(sample_models, [removed], T2)

        assert await store.load_latest_snapshot() == sample_models
        assert await store.load_changes(10) == [removed]


@pytest.mark.integration
class TestRemovedModels:
    """Test the removed models query."""

    async def test_removed_model_listed(self, store: SnapshotStore, sample_models: list[Model]) -> None:
        """Test a model whose latest event is a removal is listed."""
        gone = sample_models[0]
        await store.store_changes([RemovedChange(id=gone.id, timestamp=T1, model=gone)])

        assert await store.load_removed_models() == [gone]

    async def test_readded_model_not_listed(self, store: SnapshotStore, sample_models: list[Model]) -> None:
        """Test a model added again after removal is no longer listed."""
        model = sample_models[0]
        await store.store_changes([RemovedChange(id=model.id, timestamp=T1, model=model)])
        await store.store_changes([AddedChange(id=model.id, timestamp=T2, model=model)])

        assert await store.load_removed_models() == []


@pytest.mark.integration
class TestCounters:
    """Test derived counters."""

    async def test_empty_store_counters(self, store: SnapshotStore) -> None:
        """Test an empty store reports zeros and the epoch."""
        counters = await store.get_counters()

        assert counters.model_count == 0
        assert counters.changes_count == 0
        assert counters.removed_count == 0
        assert counters.first_change is None
        assert counters.last_change == EPOCH

    async def test_counters_after_checks(self, store: SnapshotStore, sample_models: list[Model]) -> None:
        """Test counters reflect the current snapshot and the change log."""
        await store.record_check(sample_models, [], T1)
        gone = sample_models[0]
        await store.record_check(sample_models[1:], [RemovedChange(id=gone.id, timestamp=T2, model=gone)], T2)
        await store.record_check(sample_models[1:], [], T3)

        counters = await store.get_counters()

        assert counters.model_count == 2
        assert counters.changes_count == 1
        assert counters.removed_count == 1
        assert counters.first_change == T2
        assert counters.last_change == T2

    async def test_last_change_falls_back_to_first_snapshot(
        self,
        store: SnapshotStore,
        sample_models: list[Model],
    ) -> None:
        """Test the last write time is the first snapshot when no change exists."""
        await store.record_check(sample_models, [], T1)
        await store.record_check(sample_models, [], T2)

        counters = await store.get_counters()

        assert counters.last_change == T1
        assert counters.last_change.tzinfo is not None


@pytest.mark.integration
async def test_storage_errors_are_wrapped(tmp_path: Path) -> None:
    """Test SQLAlchemy failures surface as SnapshotStoreError."""
    uninitialized = SnapshotStore.from_path(tmp_path / "orw.db")
    try:
        with pytest.raises(SnapshotStoreError):
            await uninitialized.load_latest_snapshot()
    finally:
        await uninitialized.close()
