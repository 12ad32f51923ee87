"""File-backed response cache.

Public Interface:
    - CacheManager: Freshness checks, background materialization
    - CachePaths: Raw/gzip/etag sibling paths of a resource
    - CacheResult: Outcome of a lookup
    - compute_etag: Integrity tag of a file
    - get_mtime: File modification time as UTC datetime
"""

from .manager import CacheManager
from .manager import CachePaths
from .manager import CacheResult
from .manager import ContentGenerator
from .manager import compute_etag
from .manager import get_mtime

__all__ = [
    "CacheManager",
    "CachePaths",
    "CacheResult",
    "ContentGenerator",
    "compute_etag",
    "get_mtime",
]
