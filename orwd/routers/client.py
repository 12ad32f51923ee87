"""Web client router.

Serves the single-page client (its ``index.html`` for every client route,
plus built assets) and the files of the static directory from the root.
Must be included last: its catch-all route turns every unmatched path
into a plain-text 404.
"""

from pathlib import Path

from fastapi import APIRouter
from fastapi import Depends
from fastapi import Request
from fastapi import Response

from ..dependencies import ServerContext
from ..dependencies import get_context

router = APIRouter(tags=["client"])

CLIENT_ROUTES = ("/", "/list", "/removed", "/changes", "/model")


def resolve_inside(root: Path, relative: str) -> Path | None:
    """Resolve ``relative`` under ``root``, None if it escapes the root."""
    base = root.resolve()
    target = (base / relative).resolve()
    if target != base and target.is_relative_to(base):
        return target
    return None


async def serve_index(request: Request, ctx: ServerContext = Depends(get_context)) -> Response:
    """Client entry page; routing happens in the browser."""
    return await ctx.server.serve_file(request, ctx.config.storage.client_dist_dir / "index.html")


for _route in CLIENT_ROUTES:
    router.add_api_route(_route, serve_index, methods=["GET", "HEAD"], include_in_schema=False)


@router.api_route("/assets/{asset_path:path}", methods=["GET", "HEAD"], include_in_schema=False)
async def serve_asset(asset_path: str, request: Request, ctx: ServerContext = Depends(get_context)) -> Response:
    """Built client assets (scripts, styles, images)."""
    path = resolve_inside(ctx.config.storage.client_dist_dir / "assets", asset_path)
    if path is None:
        return ctx.server.not_found(request.url.path)
    return await ctx.server.serve_file(request, path)


@router.api_route("/{file_path:path}", methods=["GET", "HEAD"], include_in_schema=False)
async def serve_static(file_path: str, request: Request, ctx: ServerContext = Depends(get_context)) -> Response:
    """Files found directly in the static directory, e.g. ``/favicon.svg``."""
    if file_path not in ctx.static_files:
        return ctx.server.not_found(request.url.path)
    return await ctx.server.serve_file(request, ctx.config.storage.static_dir / file_path)
