"""Watcher status record.

The status is owned by the watcher and replaced as a whole at the end of
each poll. Readers always see one consistent version, though possibly the
one from just before a poll finished.
"""

from datetime import UTC
from datetime import datetime
from typing import Literal

from pydantic import BaseModel
from pydantic import ConfigDict

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

CheckOutcome = Literal["unknown", "success", "failed"]


class WatcherStatus(BaseModel):
    """Operational metadata published by the watcher.

    Attributes:
        version: Incremented on every publication
        api_last_check: When the last poll finished (success or failure)
        api_last_check_status: Outcome of the last poll
        db_last_change: Last write time of the snapshot store
        db_model_count: Models in the current snapshot
        db_changes_count: Change events recorded
        db_removed_model_count: Models currently removed
        db_first_change_timestamp: Oldest recorded change, if any
    """

    model_config = ConfigDict(frozen=True)

    version: int = 0
    api_last_check: datetime = EPOCH
    api_last_check_status: CheckOutcome = "unknown"
    db_last_change: datetime = EPOCH
    db_model_count: int = 0
    db_changes_count: int = 0
    db_removed_model_count: int = 0
    db_first_change_timestamp: datetime | None = None
