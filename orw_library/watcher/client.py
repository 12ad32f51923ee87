"""Upstream catalog client.

Fetches the model list from the catalog API. Every way the fetch can go
wrong surfaces as ``CatalogFetchError`` so the watcher has exactly one
failure to handle.
"""

import logging
from typing import Protocol

import httpx
from pydantic import ValidationError

from ..errors import CatalogFetchError
from ..models import Model

logger = logging.getLogger(__name__)


class CatalogSource(Protocol):
    """Anything that can produce the current catalog."""

    async def fetch_models(self) -> list[Model]: ...


class CatalogClient:
    """HTTP client for a catalog endpoint returning ``{"data": [...]}``."""

    def __init__(
        self,
        api_url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize catalog client.

        Args:
            api_url: Catalog endpoint URL
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used to stub the network in tests)
        """
        self.api_url = api_url
        self.timeout = timeout
        self.transport = transport

    async def fetch_models(self) -> list[Model]:
        """Fetch and validate the current catalog.

        Returns:
            Models in upstream order

        Raises:
            CatalogFetchError: On network errors, non-2xx responses, malformed
                JSON, an empty catalog, or entries that don't match the schema
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(self.api_url, headers={"Accept": "application/json"})
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as e:
            raise CatalogFetchError(f"Catalog request returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise CatalogFetchError(f"Catalog request failed: {e}") from e
        except ValueError as e:
            raise CatalogFetchError(f"Catalog response is not valid JSON: {e}") from e

        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, list):
            raise CatalogFetchError("Catalog response has no 'data' list")
        if not data:
            # An empty catalog is an upstream glitch, not every model being removed
            raise CatalogFetchError("Catalog response is empty")

        try:
            models = [Model.model_validate(item) for item in data]
        except ValidationError as e:
            raise CatalogFetchError(f"Catalog entry failed validation: {e}") from e

        logger.debug(f"Fetched {len(models)} models from {self.api_url}")
        return models
