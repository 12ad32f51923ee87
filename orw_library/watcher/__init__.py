"""Upstream watcher: catalog client, poll cycle, and schedule.

Public Interface:
    - CatalogClient: httpx client for the catalog API
    - CatalogSource: Protocol for catalog providers
    - CatalogWatcher: Poll cycle and status owner
    - WatcherScheduler: Recurring APScheduler job
"""

from .client import CatalogClient
from .client import CatalogSource
from .scheduler import WatcherScheduler
from .watcher import CatalogWatcher

__all__ = [
    "CatalogClient",
    "CatalogSource",
    "CatalogWatcher",
    "WatcherScheduler",
]
