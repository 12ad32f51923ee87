"""HTTP serving of cached artifacts and static files.

Implements conditional GET (ETag and If-Modified-Since), gzip content
negotiation against pre-compressed siblings, HEAD handling, and the
Cache-Control policy tied to the watcher's poll cadence.
"""

from __future__ import annotations

import asyncio
import logging
import mimetypes
from dataclasses import dataclass
from datetime import UTC
from datetime import datetime
from email.utils import format_datetime
from email.utils import parsedate_to_datetime
from pathlib import Path

from fastapi import Request
from fastapi import Response
from fastapi.responses import PlainTextResponse

from orw_library.cache import CacheManager
from orw_library.cache import CachePaths
from orw_library.cache import ContentGenerator
from orw_library.cache import get_mtime
from orw_library.watcher import CatalogWatcher

logger = logging.getLogger(__name__)

# Filesystems differ in mtime precision; dates this close count as equal
MODIFIED_SINCE_TOLERANCE_SECONDS = 1.0


@dataclass(frozen=True)
class FileState:
    """What is on disk for one servable file."""

    last_modified: datetime | None
    gzip_last_modified: datetime | None
    etag: str


def _read_file_state(path: Path) -> FileState:
    paths = CachePaths.for_file(path)
    try:
        etag = paths.etag.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        etag = ""
    return FileState(
        last_modified=get_mtime(paths.raw),
        gzip_last_modified=get_mtime(paths.gzip),
        etag=etag,
    )


def http_date(value: datetime) -> str:
    """Format as an RFC 7231 HTTP date (``Sun, 06 Nov 1994 08:49:37 GMT``)."""
    return format_datetime(value.astimezone(UTC), usegmt=True)


def parse_http_date(value: str) -> datetime | None:
    """Parse an HTTP date header, None if unparseable."""
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed


def accepts_gzip(request: Request) -> bool:
    return "gzip" in request.headers.get("accept-encoding", "")


def is_not_modified(request: Request, state: FileState) -> bool:
    """Whether the client's cached copy is still valid.

    An exact If-None-Match match wins; otherwise If-Modified-Since is compared
    with the file's modification time within the tolerance window.
    """
    client_etag = request.headers.get("if-none-match")
    if client_etag and state.etag and client_etag == state.etag:
        return True

    client_modified = request.headers.get("if-modified-since")
    if client_modified and state.last_modified is not None:
        client_date = parse_http_date(client_modified)
        if client_date is not None:
            delta = abs((state.last_modified - client_date).total_seconds())
            return delta <= MODIFIED_SINCE_TOLERANCE_SECONDS
    return False


class ResourceServer:
    """Builds responses for cached resources and static files."""

    def __init__(
        self,
        watcher: CatalogWatcher,
        cache: CacheManager,
        content_security_policy: str | None = None,
    ) -> None:
        """Initialize resource server.

        Args:
            watcher: Source of the freshness clocks and poll cadence
            cache: Cache manager for generated resources
            content_security_policy: Optional Content-Security-Policy header value
        """
        self.watcher = watcher
        self.cache = cache
        self.content_security_policy = content_security_policy

    def default_cache_control(self) -> str:
        """Cache-Control expiring when the next poll is due."""
        return f"public, max-age={self.watcher.seconds_until_next_check()}"

    def respond(
        self,
        request: Request,
        content: bytes,
        content_type: str,
        cache_control: str | None = None,
        content_encoding: str | None = None,
        etag: str | None = None,
        last_modified: datetime | None = None,
    ) -> Response:
        """Build a 200 response with the standard header set.

        HEAD requests get every header, plus ``X-Content-Length`` carrying the
        real body size, and an empty body.
        """
        headers = {"Content-Type": content_type}
        if self.content_security_policy:
            headers["Content-Security-Policy"] = self.content_security_policy
        if content_encoding:
            headers["Content-Encoding"] = content_encoding
        if self.cache.enabled:
            headers["Cache-Control"] = cache_control or self.default_cache_control()
        if etag:
            headers["ETag"] = etag
        if last_modified is not None:
            headers["Last-Modified"] = http_date(last_modified)

        if request.method == "HEAD":
            length = str(len(content))
            headers["X-Content-Length"] = length
            headers["Content-Length"] = length
            return Response(content=b"", headers=headers)
        return Response(content=content, headers=headers)

    def not_found(self, path: str, message: str = "File not found") -> Response:
        logger.info(f"Error 404: {path} {message}")
        return PlainTextResponse(message, status_code=404)

    async def serve_file(
        self,
        request: Request,
        path: Path,
        content_type: str | None = None,
        cache_control: str | None = None,
    ) -> Response:
        """Serve a file, honoring conditional requests and gzip siblings.

        Args:
            request: Incoming request
            path: Raw file; ``<path>.gz`` and ``<path>.etag`` are used when present
            content_type: Content-Type (guessed from the file name if omitted)
            cache_control: Cache-Control override

        Returns:
            304, 404, or 200 response
        """
        state = await asyncio.to_thread(_read_file_state, path)

        if is_not_modified(request, state):
            return Response(status_code=304)

        if state.last_modified is None:
            return self.not_found(str(path))

        content_type = content_type or mimetypes.guess_type(path.name)[0] or "application/octet-stream"

        # Only serve a compressed sibling at least as new as the original
        if (
            accepts_gzip(request)
            and state.gzip_last_modified is not None
            and state.gzip_last_modified >= state.last_modified
        ):
            content = await asyncio.to_thread(CachePaths.for_file(path).gzip.read_bytes)
            return self.respond(
                request,
                content,
                content_type=content_type,
                cache_control=cache_control,
                content_encoding="gzip",
                etag=state.etag,
                last_modified=state.last_modified,
            )

        content = await asyncio.to_thread(path.read_bytes)
        return self.respond(
            request,
            content,
            content_type=content_type,
            cache_control=cache_control,
            etag=state.etag,
            last_modified=state.last_modified,
        )

    async def cache_and_serve(
        self,
        request: Request,
        key: str,
        content_type: str,
        generator: ContentGenerator,
        db_only_check: bool = False,
        cache_control: str | None = None,
    ) -> Response:
        """Serve a generated resource through the cache.

        Args:
            request: Incoming request
            key: Cache file name
            content_type: Content-Type of the resource
            generator: Produces the body on a cache miss
            db_only_check: Use the store's last write time as freshness clock
                instead of the watcher's last check
            cache_control: Cache-Control override

        Returns:
            Response served from cache or from freshly generated content
        """
        status = self.watcher.status
        freshness_clock = status.db_last_change if db_only_check else status.api_last_check

        result = await self.cache.get_or_generate(key, freshness_clock, generator)
        if result.hit and result.paths is not None:
            return await self.serve_file(request, result.paths.raw, content_type, cache_control)
        return self.respond(request, result.content or b"", content_type=content_type, cache_control=cache_control)
