"""Response models for the orwd JSON API.

Every JSON endpoint answers with the same envelope,
``{"status": {...}, "data": ...}``, which the web client depends on.
"""

from datetime import datetime
from typing import Generic
from typing import TypeVar

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic.alias_generators import to_camel

from orw_library.models import Model
from orw_library.models import ModelChange
from orw_library.models import WatcherStatus

T = TypeVar("T")


class WireModel(BaseModel):
    """Serializes snake_case fields under the camelCase names the web client reads."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApiStatus(WireModel):
    """Operational metadata attached to every JSON response."""

    is_valid: bool = True
    is_development: bool = False
    api_last_check: datetime
    api_last_check_status: str
    db_last_change: datetime
    db_model_count: int
    db_changes_count: int
    db_removed_model_count: int
    db_first_change_timestamp: datetime | None = Field(default=None, alias="dbfirstChangeTimestamp")

    @classmethod
    def from_watcher(cls, status: WatcherStatus, is_development: bool = False) -> "ApiStatus":
        """Build the envelope status from the watcher's status record."""
        return cls(
            is_development=is_development,
            api_last_check=status.api_last_check,
            api_last_check_status=status.api_last_check_status,
            db_last_change=status.db_last_change,
            db_model_count=status.db_model_count,
            db_changes_count=status.db_changes_count,
            db_removed_model_count=status.db_removed_model_count,
            db_first_change_timestamp=status.db_first_change_timestamp,
        )


class ApiResponse(WireModel, Generic[T]):
    """JSON envelope: status plus endpoint-specific data."""

    status: ApiStatus
    data: T

    def to_bytes(self) -> bytes:
        return self.model_dump_json(by_alias=True).encode("utf-8")


class ModelDetails(BaseModel):
    """Data of /api/model: one model with its change history."""

    model: Model
    changes: list[ModelChange]


class ChangeList(BaseModel):
    """Data of /api/changes."""

    changes: list[ModelChange]
