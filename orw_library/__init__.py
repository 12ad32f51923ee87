"""orw library layer.

Everything the watcher daemon needs that has no HTTP knowledge: catalog
models, change detection, the snapshot store, the upstream watcher and
the file-backed response cache.

Public Interface:
    Modules:
    - models: Catalog records, change events, watcher status
    - changes: Record differencer
    - store: SQLite snapshot and change-log persistence
    - watcher: Upstream client, poll cycle and scheduler
    - cache: Materialized response artifacts
    - config: Configuration loading
    - storage: Path resolution
"""

from .errors import CatalogFetchError
from .errors import SnapshotStoreError

__all__ = [
    "CatalogFetchError",
    "SnapshotStoreError",
]
