"""Catalog record models.

One ``Model`` is one entry of the upstream catalog. Records are immutable;
unknown upstream fields are dropped on validation so that only the declared
schema is stored and compared.
"""

from typing import Any

from pydantic import BaseModel
from pydantic import ConfigDict


class CatalogRecord(BaseModel):
    """Base for immutable catalog records."""

    model_config = ConfigDict(frozen=True, extra="ignore")


class Pricing(CatalogRecord):
    """Per-unit prices as decimal strings, exactly as upstream reports them."""

    prompt: str
    completion: str
    request: str = "0"
    image: str = "0"


class Architecture(CatalogRecord):
    """Input/output modality and tokenizer family."""

    modality: str = ""
    tokenizer: str = ""
    instruct_type: str | None = None


class TopProvider(CatalogRecord):
    """Limits of the provider currently serving the model."""

    max_completion_tokens: int | None = None
    is_moderated: bool = False


class Model(CatalogRecord):
    """One catalog entry, keyed by ``id``."""

    id: str
    name: str
    description: str = ""
    pricing: Pricing
    context_length: int | None = None
    architecture: Architecture
    top_provider: TopProvider
    per_request_limits: dict[str, Any] | None = None
