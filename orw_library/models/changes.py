"""Change event models.

A change event records one added, removed, or changed catalog entry between
two snapshots. Events are serialized with a ``type`` discriminator so that a
stored row or a JSON payload can be loaded back into the right variant.
"""

from datetime import UTC
from datetime import datetime
from typing import Annotated
from typing import Any
from typing import Literal

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import TypeAdapter
from pydantic import field_validator

from .catalog import Model


class FieldChange(BaseModel):
    """Old and new value of a single field."""

    model_config = ConfigDict(frozen=True)

    old: Any = None
    new: Any = None


class ChangeBase(BaseModel):
    """Fields shared by every change event."""

    model_config = ConfigDict(frozen=True)

    id: str
    timestamp: datetime

    @field_validator("timestamp")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        """Normalize to timezone-aware UTC (naive values are taken as UTC)."""
        if v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v.astimezone(UTC)


class AddedChange(ChangeBase):
    """A model that appeared upstream."""

    type: Literal["added"] = "added"
    model: Model


class RemovedChange(ChangeBase):
    """A model that disappeared upstream, with its last known state."""

    type: Literal["removed"] = "removed"
    model: Model


class ChangedChange(ChangeBase):
    """Field-level differences keyed by dotted path (e.g. ``architecture.instruct_type``)."""

    type: Literal["changed"] = "changed"
    changes: dict[str, FieldChange] = Field(min_length=1)


ModelChange = Annotated[AddedChange | RemovedChange | ChangedChange, Field(discriminator="type")]

model_change_adapter: TypeAdapter[ModelChange] = TypeAdapter(ModelChange)
