"""RSS feed router."""

import logging

from fastapi import APIRouter
from fastapi import Depends
from fastapi import HTTPException
from fastapi import Request
from fastapi import Response

from orw_library.errors import SnapshotStoreError

from ..dependencies import ServerContext
from ..dependencies import get_context
from ..feed import render_feed

logger = logging.getLogger(__name__)

router = APIRouter(tags=["feed"])

FEED_CHANGES_LIMIT = 50
RSS_CONTENT_TYPE = "application/rss+xml"


@router.api_route("/rss", methods=["GET", "HEAD"])
async def get_feed(request: Request, ctx: ServerContext = Depends(get_context)) -> Response:
    """RSS feed of the latest changes.

    The feed only changes when new changes are stored, so freshness follows
    the store's last write rather than the last poll.
    """

    async def generate() -> bytes:
        try:
            changes = await ctx.watcher.load_changes(FEED_CHANGES_LIMIT)
        except SnapshotStoreError as e:
            logger.error(f"Failed to load changes for feed: {e}")
            raise HTTPException(status_code=500, detail="Internal server error") from e
        return render_feed(changes, ctx.public_url, ctx.watcher.status.db_last_change)

    return await ctx.server.cache_and_serve(request, "rss.xml", RSS_CONTENT_TYPE, generate, db_only_check=True)
