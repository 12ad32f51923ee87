"""
Shared pytest fixtures for the orw test suite.

Provides fixtures for:
- Isolated ORW_HOME storage
- Sample catalog records
- Snapshot stores on temporary SQLite files
- A scriptable in-process catalog source
"""

import asyncio
from collections.abc import AsyncGenerator
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from orw_library.errors import CatalogFetchError
from orw_library.models import Model
from orw_library.store import SnapshotStore


def build_model(model_id: str = "vendor/model-1", **overrides: Any) -> Model:
    """Build a catalog record with realistic defaults.

    Nested records can be overridden partially, e.g.
    ``build_model(architecture={"instruct_type": "chatml"})``.
    """
    data: dict[str, Any] = {
        "id": model_id,
        "name": f"Model {model_id}",
        "description": f"Description of {model_id}",
        "pricing": {"prompt": "0.000001", "completion": "0.000002", "request": "0", "image": "0"},
        "context_length": 8192,
        "architecture": {"modality": "text->text", "tokenizer": "GPT", "instruct_type": None},
        "top_provider": {"max_completion_tokens": 4096, "is_moderated": True},
        "per_request_limits": None,
    }
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(data.get(key), dict):
            data[key] = {**data[key], **value}
        else:
            data[key] = value
    return Model.model_validate(data)


class FakeCatalog:
    """In-process catalog source returning scripted responses.

    Set ``models`` to the next catalog, or ``error`` to make the next fetch
    fail. ``gate`` can be cleared to hold a fetch until the test releases it.
    """

    def __init__(self, models: list[Model] | None = None) -> None:
        self.models = models or []
        self.error: CatalogFetchError | None = None
        self.calls = 0
        self.gate = asyncio.Event()
        self.gate.set()

    async def fetch_models(self) -> list[Model]:
        self.calls += 1
        await self.gate.wait()
        if self.error is not None:
            raise self.error
        return list(self.models)


@pytest.fixture
def mock_storage_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point ORW_HOME at a temporary directory.

    Ensures tests use isolated storage and never touch real data.

    Returns:
        Path to the temporary ORW_HOME
    """
    home = tmp_path / "orw-home"
    monkeypatch.setenv("ORW_HOME", str(home))
    return home


@pytest.fixture
def make_model() -> Callable[..., Model]:
    """Factory for catalog records (see ``build_model``)."""
    return build_model


@pytest.fixture
def sample_models() -> list[Model]:
    """Three distinct catalog records."""
    return [
        build_model("openai/gpt-4o", context_length=128000),
        build_model("anthropic/claude-3-haiku", architecture={"instruct_type": "claude"}),
        build_model("meta-llama/llama-3-8b-instruct:free", pricing={"prompt": "0", "completion": "0"}),
    ]


@pytest.fixture
async def store(tmp_path: Path) -> AsyncGenerator[SnapshotStore, None]:
    """Initialized snapshot store on a temporary SQLite file."""
    snapshot_store = SnapshotStore.from_path(tmp_path / "state" / "orw.db")
    await snapshot_store.initialize()
    yield snapshot_store
    await snapshot_store.close()


@pytest.fixture
def fake_catalog(sample_models: list[Model]) -> FakeCatalog:
    """Catalog source serving ``sample_models``."""
    return FakeCatalog(sample_models)
