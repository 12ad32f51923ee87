"""Catalog watcher.

Runs one poll cycle at a time: fetch the upstream catalog, diff it against
the stored snapshot, persist both, and publish a fresh status record.
"""

import asyncio
import dataclasses
import logging
from datetime import UTC
from datetime import datetime

from ..changes import find_changes
from ..errors import CatalogFetchError
from ..errors import SnapshotStoreError
from ..models import CheckOutcome
from ..models import Model
from ..models import ModelChange
from ..models import WatcherStatus
from ..store import SnapshotStore
from ..store import StoreCounters
from .client import CatalogSource

logger = logging.getLogger(__name__)


class CatalogWatcher:
    """Owns the poll cycle and the status record.

    The watcher is the only writer of snapshots and changes. HTTP handlers
    read through the accessors below and never write.
    """

    def __init__(
        self,
        store: SnapshotStore,
        client: CatalogSource,
        interval_seconds: int = 3600,
    ) -> None:
        """Initialize watcher.

        Args:
            store: Snapshot store
            client: Source of the upstream catalog
            interval_seconds: Poll interval, used to tell clients when data will refresh
        """
        self.store = store
        self.client = client
        self.interval_seconds = interval_seconds
        self._status = WatcherStatus()
        self._models: list[Model] = []
        self._lock = asyncio.Lock()

    @property
    def status(self) -> WatcherStatus:
        """Latest published status."""
        return self._status

    @property
    def is_checking(self) -> bool:
        """Whether a poll is running right now."""
        return self._lock.locked()

    def get_models(self) -> list[Model]:
        """Current snapshot, as of the last successful poll or startup."""
        return self._models

    def find_model(self, model_id: str) -> Model | None:
        """Look up one model in the current snapshot."""
        return next((model for model in self._models if model.id == model_id), None)

    async def load_changes(self, limit: int) -> list[ModelChange]:
        return await self.store.load_changes(limit)

    async def load_changes_for_model(self, model_id: str, limit: int) -> list[ModelChange]:
        return await self.store.load_changes_for_model(model_id, limit)

    async def load_removed_models(self) -> list[Model]:
        return await self.store.load_removed_models()

    def seconds_until_next_check(self, now: datetime | None = None) -> int:
        """Whole seconds until the next scheduled poll, never negative."""
        now = now or datetime.now(UTC)
        elapsed = (now - self._status.api_last_check).total_seconds()
        return max(0, int(self.interval_seconds - elapsed))

    async def load_state(self) -> None:
        """Load the current snapshot and counters from the store.

        Called once at startup so the daemon can serve stored data before
        the first poll completes.

        Raises:
            SnapshotStoreError: If the store cannot be read
        """
        self._models = await self.store.load_latest_snapshot()
        counters = await self.store.get_counters()
        self._publish(counters=counters)
        logger.info(f"Loaded {len(self._models)} models and {counters.changes_count} changes from store")

    async def perform_check(self) -> bool:
        """Run one poll cycle unless one is already running.

        Never raises: fetch and storage failures are logged and recorded in
        the status record.

        Returns:
            True if the poll completed successfully
        """
        if self._lock.locked():
            logger.info("Catalog check already in progress, skipping")
            return False
        async with self._lock:
            return await self._check()

    async def _check(self) -> bool:
        logger.info("Checking catalog for changes")

        try:
            models = await self.client.fetch_models()
        except CatalogFetchError as e:
            logger.warning(f"Catalog fetch failed: {e}")
            self._publish(api_last_check=datetime.now(UTC), outcome="failed")
            return False

        checked_at = datetime.now(UTC)
        try:
            previous = await self.store.load_latest_snapshot()
            # Nothing to diff against on the very first fetch
            changes = find_changes(models, previous, now=checked_at) if previous else []
            await self.store.record_check(models, changes, checked_at)
            counters = await self.store.get_counters()
        except SnapshotStoreError as e:
            logger.error(f"Failed to record catalog check: {e}")
            self._publish(api_last_check=checked_at, outcome="failed")
            return False

        self._models = models
        # Taken after the swap; anything built from the old data is older than these clocks
        published_at = datetime.now(UTC)
        if changes or not previous:
            counters = dataclasses.replace(counters, last_change=max(counters.last_change, published_at))
        self._publish(api_last_check=published_at, outcome="success", counters=counters)

        if not previous:
            logger.info(f"Stored initial snapshot of {len(models)} models")
        elif changes:
            logger.info(f"Detected {len(changes)} changes across {len(models)} models")
        else:
            logger.info(f"No changes across {len(models)} models")
        return True

    def _publish(
        self,
        api_last_check: datetime | None = None,
        outcome: CheckOutcome | None = None,
        counters: StoreCounters | None = None,
    ) -> None:
        update: dict = {"version": self._status.version + 1}
        if api_last_check is not None:
            update["api_last_check"] = api_last_check
        if outcome is not None:
            update["api_last_check_status"] = outcome
        if counters is not None:
            update.update(
                db_last_change=counters.last_change,
                db_model_count=counters.model_count,
                db_changes_count=counters.changes_count,
                db_removed_model_count=counters.removed_count,
                db_first_change_timestamp=counters.first_change,
            )
        self._status = self._status.model_copy(update=update)
