"""RSS feed of detected catalog changes."""

import html
import json
from datetime import datetime
from typing import Any
from urllib.parse import quote

from feedgen.feed import FeedGenerator

from orw_library.models import ModelChange

FEED_TITLE = "OpenRouter Model Changes"
FEED_DESCRIPTION = "RSS feed for detected changes in the OpenRouter model list"
FEED_DOCS = "https://github.com/fry69/orw"
FEED_TTL_MINUTES = 60
REDACTED = "[...]"

_CODE_STYLE = "display: block; white-space: pre-wrap; font-family: monospace;"


def redact_descriptions(value: Any) -> Any:
    """Replace every ``description`` value, at any depth, with ``[...]``.

    Long free-text descriptions upset some feed readers.
    """
    if isinstance(value, dict):
        return {
            key: REDACTED if key == "description" else redact_descriptions(item) for key, item in value.items()
        }
    if isinstance(value, list):
        return [redact_descriptions(item) for item in value]
    return value


def change_link(public_url: str, change: ModelChange) -> str:
    """Web client link for one change event."""
    page = "removed" if change.type == "removed" else "model"
    return f"{public_url}{page}?id={quote(change.id, safe='')}&timestamp={change.timestamp.isoformat()}"


def render_feed(changes: list[ModelChange], public_url: str, last_change: datetime) -> bytes:
    """Render changes as an RSS 2.0 document.

    Args:
        changes: Change events, newest first
        public_url: Public base URL of the web client, with trailing slash
        last_change: Publication date of the channel

    Returns:
        Pretty-printed RSS XML
    """
    fg = FeedGenerator()
    fg.title(FEED_TITLE)
    fg.description(FEED_DESCRIPTION)
    fg.link(href=public_url, rel="alternate")
    fg.link(href=f"{public_url}rss", rel="self")
    fg.image(url=f"{public_url}favicon.svg", title=FEED_TITLE, link=public_url)
    fg.docs(FEED_DOCS)
    fg.language("en")
    fg.ttl(FEED_TTL_MINUTES)
    fg.pubDate(last_change)

    for change in changes:
        body = json.dumps(redact_descriptions(change.model_dump(mode="json")), indent=2)
        link = change_link(public_url, change)

        entry = fg.add_entry(order="append")
        entry.title(f"Model {change.id} {change.type}")
        entry.link(href=link)
        entry.guid(link, permalink=True)
        entry.description(f'<code style="{_CODE_STYLE}">{html.escape(body)}</code>')
        entry.pubDate(change.timestamp)

    return fg.rss_str(pretty=True)
