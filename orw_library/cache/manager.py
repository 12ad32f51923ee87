"""File-backed cache for generated responses.

A cached resource is three sibling files in the cache directory: the raw
body, its gzip-compressed copy, and an ETag file. Artifacts are disposable;
they can be deleted at any time and are regenerated from the store.

Materialization protocol:
- Write ``<key>.tmp``, ``<key>.gz.tmp`` and ``<key>.etag.tmp``
- Skip entirely if any of those temp files already exists (another
  materialization is in flight)
- Stamp the raw and gzip files with the time generation started, so an
  artifact built from data that a concurrent poll replaced is never newer
  than the clock that poll publishes
- Rename each temp file over its final name; readers of the final paths
  never see a partial file

Temp files are created exclusively, and a failed materialization removes
only the temp files it created itself. Temp files left by a crashed process
are swept by ``ensure_dir`` at startup.

The existence check is best-effort, not a lock. Two materializations that
pass the check at the same instant both write, which only wastes work since
the same resource always regenerates to equivalent bytes.
"""

from __future__ import annotations

import asyncio
import gzip
import hashlib
import logging
import os
from collections.abc import Awaitable
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)

ContentGenerator = Callable[[], Awaitable[bytes]]


def _tmp(path: Path) -> Path:
    return path.with_name(path.name + ".tmp")


@dataclass(frozen=True)
class CachePaths:
    """Final and temporary paths of one cached resource."""

    raw: Path
    gzip: Path
    etag: Path

    @classmethod
    def for_file(cls, raw: Path) -> CachePaths:
        """Sibling paths of a raw file (``<name>.gz``, ``<name>.etag``)."""
        return cls(raw=raw, gzip=raw.with_name(raw.name + ".gz"), etag=raw.with_name(raw.name + ".etag"))

    @property
    def temp_paths(self) -> tuple[Path, Path, Path]:
        return _tmp(self.raw), _tmp(self.gzip), _tmp(self.etag)


@dataclass(frozen=True)
class CacheResult:
    """Outcome of a cache lookup.

    Attributes:
        hit: True if fresh artifacts exist on disk
        paths: Artifact paths (set on a hit)
        content: Freshly generated body (set on a miss)
    """

    hit: bool
    paths: CachePaths | None = None
    content: bytes | None = None


def _write_new(path: Path, data: bytes, created: list[Path]) -> None:
    with path.open("xb") as f:
        created.append(path)
        f.write(data)


def _set_mtime(path: Path, when: datetime) -> None:
    ns = round(when.timestamp() * 1_000_000) * 1000
    os.utime(path, ns=(ns, ns))


def get_mtime(path: Path) -> datetime | None:
    """Modification time as aware UTC datetime, None if the file is missing."""
    try:
        return datetime.fromtimestamp(path.stat().st_mtime, UTC)
    except FileNotFoundError:
        return None


def compute_etag(path: Path) -> str:
    """Quoted SHA-256 over the file content followed by its modification time.

    Args:
        path: File to tag

    Returns:
        ETag value including the surrounding quotes
    """
    content = path.read_bytes()
    mtime = datetime.fromtimestamp(path.stat().st_mtime, UTC)
    digest = hashlib.sha256()
    digest.update(content)
    digest.update(mtime.isoformat().encode())
    return f'"{digest.hexdigest()}"'


class CacheManager:
    """Decides when generated content can be served from disk and keeps it there."""

    def __init__(self, cache_dir: Path, enabled: bool = True) -> None:
        """Initialize cache manager.

        Args:
            cache_dir: Directory holding cached artifacts
            enabled: When False, every lookup generates content and nothing is written
        """
        self.cache_dir = Path(cache_dir)
        self.enabled = enabled
        self._pending: set[asyncio.Task[None]] = set()

    def ensure_dir(self) -> None:
        """Create the cache directory if caching is enabled.

        Leftover ``*.tmp`` files are removed. No materialization runs before
        startup, so they can only come from a process that crashed mid-write.

        Raises:
            OSError: If the directory cannot be created
        """
        if self.enabled:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            stale = list(self.cache_dir.glob("*.tmp"))
            for tmp in stale:
                tmp.unlink(missing_ok=True)
            if stale:
                logger.warning(f"Removed {len(stale)} stale temp files from cache")
            logger.info(f"Cache directory: {self.cache_dir}")
        else:
            logger.info("Caching disabled")

    def paths(self, key: str) -> CachePaths:
        """Paths of the artifacts for a cache key.

        Raises:
            ValueError: If the key is not a plain file name
        """
        if not key or key in (".", "..") or "/" in key or "\\" in key:
            raise ValueError(f"Invalid cache key: {key!r}")
        return CachePaths.for_file(self.cache_dir / key)

    async def is_fresh(self, key: str, freshness_clock: datetime) -> bool:
        """Whether cached artifacts for ``key`` are at least as new as the clock.

        Fresh means the raw and gzip files both exist with a modification
        time not before ``freshness_clock``, and the ETag file exists.
        """
        return await asyncio.to_thread(self._is_fresh, self.paths(key), freshness_clock)

    @staticmethod
    def _is_fresh(paths: CachePaths, freshness_clock: datetime) -> bool:
        raw_mtime = get_mtime(paths.raw)
        gzip_mtime = get_mtime(paths.gzip)
        if raw_mtime is None or gzip_mtime is None:
            return False
        return raw_mtime >= freshness_clock and gzip_mtime >= freshness_clock and paths.etag.exists()

    async def get_or_generate(
        self,
        key: str,
        freshness_clock: datetime,
        generator: ContentGenerator,
    ) -> CacheResult:
        """Serve from cache or generate.

        On a miss the content is generated and returned right away, while
        the artifacts are written by a background task.

        Args:
            key: Cache file name
            freshness_clock: Artifacts older than this are stale
            generator: Produces the response body

        Returns:
            Cache hit with artifact paths, or miss with the generated content
        """
        if not self.enabled:
            return CacheResult(hit=False, content=await generator())

        if await self.is_fresh(key, freshness_clock):
            return CacheResult(hit=True, paths=self.paths(key))

        generated_at = datetime.now(UTC)
        content = await generator()
        self.schedule_materialize(key, content, generated_at)
        return CacheResult(hit=False, content=content)

    def schedule_materialize(
        self,
        key: str,
        content: bytes,
        generated_at: datetime | None = None,
    ) -> asyncio.Task[None]:
        """Materialize artifacts in the background; failures are only logged."""
        task = asyncio.create_task(self._materialize_logged(key, content, generated_at), name=f"cache:{key}")
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _materialize_logged(self, key: str, content: bytes, generated_at: datetime | None) -> None:
        try:
            etag = await self.materialize(key, content, generated_at)
        except Exception as e:
            logger.error(f"Failed to cache {key}: {e}")
            return
        if etag:
            logger.debug(f"Cached {key} ({len(content)} bytes, etag {etag})")

    async def materialize(self, key: str, content: bytes, generated_at: datetime | None = None) -> str | None:
        """Write raw, gzip and ETag artifacts for ``key``.

        Args:
            key: Cache file name
            content: Raw response body
            generated_at: Modification time stamped on the raw and gzip
                files (defaults to the time of writing)

        Returns:
            The new ETag, or None if another materialization was in flight

        Raises:
            OSError: If writing or renaming fails (temp files are removed)
        """
        return await asyncio.to_thread(self._materialize, self.paths(key), content, generated_at)

    @staticmethod
    def _materialize(paths: CachePaths, content: bytes, generated_at: datetime | None = None) -> str | None:
        raw_tmp, gzip_tmp, etag_tmp = paths.temp_paths
        if raw_tmp.exists() or gzip_tmp.exists() or etag_tmp.exists():
            logger.debug(f"Materialization of {paths.raw.name} already in flight, skipping")
            return None

        created: list[Path] = []
        try:
            _write_new(raw_tmp, content, created)
            # mtime=0 keeps the gzip bytes identical for identical content
            _write_new(gzip_tmp, gzip.compress(content, mtime=0), created)
            if generated_at is not None:
                _set_mtime(raw_tmp, generated_at)
                _set_mtime(gzip_tmp, generated_at)
            etag = compute_etag(raw_tmp)
            _write_new(etag_tmp, etag.encode("utf-8"), created)

            raw_tmp.replace(paths.raw)
            gzip_tmp.replace(paths.gzip)
            etag_tmp.replace(paths.etag)
        except FileExistsError:
            for tmp in created:
                tmp.unlink(missing_ok=True)
            logger.debug(f"Materialization of {paths.raw.name} raced another writer, skipping")
            return None
        except OSError:
            for tmp in created:
                tmp.unlink(missing_ok=True)
            raise
        return etag

    async def drain(self) -> None:
        """Wait for all background materializations to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending))
