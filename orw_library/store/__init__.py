"""Snapshot store for catalog snapshots and the change log.

Public Interface:
    - SnapshotStore: Async SQLite-backed store
    - StoreCounters: Derived counters for status reporting
    - get_engine: Create the async SQLite engine
"""

from .database import get_engine
from .snapshot_store import SnapshotStore
from .snapshot_store import StoreCounters

__all__ = [
    "SnapshotStore",
    "StoreCounters",
    "get_engine",
]
