"""
Tests for the RSS feed.
"""

from collections.abc import Callable
from datetime import UTC
from datetime import datetime
from xml.etree import ElementTree

import httpx
import pytest

from orw_library.models import AddedChange
from orw_library.models import Model
from orw_library.models import RemovedChange
from orwd.dependencies import ServerContext
from orwd.feed import change_link
from orwd.feed import redact_descriptions
from orwd.feed import render_feed

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


@pytest.mark.unit
class TestRenderFeed:
    """Test feed rendering."""

    def test_redact_descriptions_at_any_depth(self) -> None:
        """Test every description value is replaced, nested ones included."""
        data = {"description": "long", "model": {"description": "long", "name": "kept"}, "items": [{"description": 1}]}

        assert redact_descriptions(data) == {
            "description": "[...]",
            "model": {"description": "[...]", "name": "kept"},
            "items": [{"description": "[...]"}],
        }

    def test_change_link(self, sample_models: list[Model]) -> None:
        """Test removed models link to the removed page, others to the model page."""
        model = sample_models[0]

        removed = change_link("https://orw.test/", RemovedChange(id=model.id, timestamp=NOW, model=model))
        added = change_link("https://orw.test/", AddedChange(id=model.id, timestamp=NOW, model=model))

        assert removed == "https://orw.test/removed?id=openai%2Fgpt-4o&timestamp=2024-05-01T12:00:00+00:00"
        assert added.startswith("https://orw.test/model?id=openai%2Fgpt-4o&")

    def test_render_items(self, sample_models: list[Model]) -> None:
        """Test channel metadata and one item per change, in order."""
        changes = [
            RemovedChange(id=sample_models[0].id, timestamp=NOW, model=sample_models[0]),
            AddedChange(id=sample_models[1].id, timestamp=NOW, model=sample_models[1]),
        ]

        root = ElementTree.fromstring(render_feed(changes, "https://orw.test/", NOW))

        channel = root.find("channel")
        assert channel is not None
        assert channel.findtext("title") == "OpenRouter Model Changes"
        assert channel.findtext("ttl") == "60"
        assert channel.findtext("language") == "en"
        titles = [item.findtext("title") for item in channel.findall("item")]
        assert titles == [f"Model {sample_models[0].id} removed", f"Model {sample_models[1].id} added"]
        description = channel.findall("item")[0].findtext("description") or ""
        assert description.startswith("<code")
        assert "[...]" in description
        assert sample_models[0].description not in description


@pytest.mark.integration
class TestFeedEndpoint:
    """Test /rss."""

    async def test_feed(
        self,
        client: httpx.AsyncClient,
        context: ServerContext,
        fake_catalog,
        sample_models: list[Model],
        make_model: Callable[..., Model],
    ) -> None:
        """Test the feed lists stored changes."""
        fake_catalog.models = [*sample_models, make_model("new/model")]
        await context.watcher.perform_check()

        response = await client.get("/rss")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/rss+xml"
        assert "Model new/model added" in response.text

    async def test_feed_freshness_follows_store(
        self,
        client: httpx.AsyncClient,
        context: ServerContext,
    ) -> None:
        """Test polls without changes keep the cached feed fresh."""
        await client.get("/rss")
        await context.cache.drain()
        await context.watcher.perform_check()

        response = await client.get("/rss")

        assert "etag" in response.headers
