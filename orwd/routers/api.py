"""JSON API router.

Every endpoint answers with the ``{"status": ..., "data": ...}`` envelope
and is served through the response cache, keyed by a file name per
resource.
"""

import base64
import logging
import re
from collections.abc import Awaitable
from collections.abc import Callable
from typing import Any

from fastapi import APIRouter
from fastapi import Depends
from fastapi import HTTPException
from fastapi import Request
from fastapi import Response

from orw_library.errors import SnapshotStoreError
from orw_library.models import Model

from ..dependencies import ServerContext
from ..dependencies import get_context
from ..models import ApiResponse
from ..models import ApiStatus
from ..models import ChangeList
from ..models import ModelDetails

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["api"])

JSON_CONTENT_TYPE = "application/json"
MODEL_CHANGES_LIMIT = 50
RECENT_CHANGES_LIMIT = 100
MAX_MODEL_ID_LENGTH = 256
MODEL_ID_PATTERN = re.compile(r"^[a-zA-Z0-9/\-:.]+$")


def is_valid_model_id(model_id: str) -> bool:
    """Model ids are short and limited to a URL- and file-safe alphabet."""
    return len(model_id) < MAX_MODEL_ID_LENGTH and MODEL_ID_PATTERN.fullmatch(model_id) is not None


def model_cache_key(model_id: str) -> str:
    """Cache file name for one model's details."""
    encoded = base64.urlsafe_b64encode(model_id.encode("utf-8")).decode("ascii")
    return f"model-{encoded}.json"


def envelope(ctx: ServerContext, data: Any) -> bytes:
    """Wrap endpoint data in the status envelope."""
    status = ApiStatus.from_watcher(ctx.watcher.status, ctx.config.daemon.is_development)
    return ApiResponse[Any](status=status, data=data).to_bytes()


def json_generator(ctx: ServerContext, load: Callable[[], Awaitable[Any]]) -> Callable[[], Awaitable[bytes]]:
    """Generator producing the enveloped JSON of ``load()``.

    Storage failures become a 500; the details stay in the log.
    """

    async def generate() -> bytes:
        try:
            data = await load()
        except SnapshotStoreError as e:
            logger.error(f"Failed to load data: {e}")
            raise HTTPException(status_code=500, detail="Internal server error") from e
        return envelope(ctx, data)

    return generate


@router.api_route("/models", methods=["GET", "HEAD"])
async def list_models(request: Request, ctx: ServerContext = Depends(get_context)) -> Response:
    """Current catalog."""

    async def load() -> list[Model]:
        return ctx.watcher.get_models()

    return await ctx.server.cache_and_serve(request, "models.json", JSON_CONTENT_TYPE, json_generator(ctx, load))


@router.api_route("/removed", methods=["GET", "HEAD"])
async def list_removed_models(request: Request, ctx: ServerContext = Depends(get_context)) -> Response:
    """Models whose latest change removed them from the catalog."""
    return await ctx.server.cache_and_serve(
        request,
        "removed.json",
        JSON_CONTENT_TYPE,
        json_generator(ctx, ctx.watcher.load_removed_models),
    )


@router.api_route("/model", methods=["GET", "HEAD"])
async def get_model(
    request: Request,
    id: str | None = None,
    ctx: ServerContext = Depends(get_context),
) -> Response:
    """One model of the current catalog and its change history.

    Args:
        id: Model id, e.g. ``openai/gpt-4o``

    Returns:
        Enveloped ``{"model": ..., "changes": [...]}``, or 404 if the id is
        invalid or not in the current catalog
    """
    model = ctx.watcher.find_model(id) if id and is_valid_model_id(id) else None
    if model is None:
        return ctx.server.not_found(request.url.path, "Model not found")

    async def load() -> ModelDetails:
        changes = await ctx.watcher.load_changes_for_model(model.id, MODEL_CHANGES_LIMIT)
        return ModelDetails(model=model, changes=changes)

    return await ctx.server.cache_and_serve(
        request,
        model_cache_key(model.id),
        JSON_CONTENT_TYPE,
        json_generator(ctx, load),
    )


@router.api_route("/changes", methods=["GET", "HEAD"])
async def list_changes(request: Request, ctx: ServerContext = Depends(get_context)) -> Response:
    """Most recent change events, newest first."""

    async def load() -> ChangeList:
        return ChangeList(changes=await ctx.watcher.load_changes(RECENT_CHANGES_LIMIT))

    return await ctx.server.cache_and_serve(request, "changes.json", JSON_CONTENT_TYPE, json_generator(ctx, load))
