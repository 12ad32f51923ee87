"""
Unit tests for catalog and change event models.
"""

from datetime import UTC
from datetime import datetime
from datetime import timedelta
from datetime import timezone

import pytest
from pydantic import ValidationError

from orw_library.models import AddedChange
from orw_library.models import ChangedChange
from orw_library.models import Model
from orw_library.models import model_change_adapter


@pytest.mark.unit
class TestModel:
    """Test catalog record validation."""

    def test_unknown_upstream_fields_are_dropped(self) -> None:
        """Test extra upstream keys do not end up in the record."""
        model = Model.model_validate(
            {
                "id": "vendor/model",
                "name": "Model",
                "created": 1700000000,
                "pricing": {"prompt": "0.1", "completion": "0.2", "web_search": "0"},
                "architecture": {"modality": "text->text", "tokenizer": "GPT"},
                "top_provider": {"is_moderated": False},
            }
        )

        assert "created" not in model.model_dump()
        assert model.pricing.request == "0"
        assert model.architecture.instruct_type is None
        assert model.per_request_limits is None

    def test_records_are_immutable(self) -> None:
        """Test records cannot be modified after validation."""
        model = Model.model_validate(
            {
                "id": "vendor/model",
                "name": "Model",
                "pricing": {"prompt": "0", "completion": "0"},
                "architecture": {},
                "top_provider": {},
            }
        )

        with pytest.raises(ValidationError):
            model.name = "Other"  # type: ignore[misc]


@pytest.mark.unit
class TestModelChange:
    """Test change event parsing."""

    def test_discriminates_on_type(self) -> None:
        """Test the type field selects the event variant."""
        change = model_change_adapter.validate_python(
            {
                "id": "vendor/model",
                "type": "changed",
                "timestamp": "2024-05-01T12:00:00Z",
                "changes": {"name": {"old": "a", "new": "b"}},
            }
        )

        assert isinstance(change, ChangedChange)
        assert change.changes["name"].new == "b"

    def test_changed_event_requires_changes(self) -> None:
        """Test a changed event with an empty field map is rejected."""
        with pytest.raises(ValidationError):
            ChangedChange(id="vendor/model", timestamp=datetime.now(UTC), changes={})

    def test_timestamp_normalized_to_utc(self, sample_models: list[Model]) -> None:
        """Test offset-aware timestamps are converted to UTC."""
        local = datetime(2024, 5, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))

        change = AddedChange(id=sample_models[0].id, timestamp=local, model=sample_models[0])

        assert change.timestamp == datetime(2024, 5, 1, 12, 0, tzinfo=UTC)
        assert change.timestamp.utcoffset() == timedelta(0)

    def test_naive_timestamp_taken_as_utc(self, sample_models: list[Model]) -> None:
        """Test naive timestamps are interpreted as UTC."""
        change = AddedChange(id=sample_models[0].id, timestamp=datetime(2024, 5, 1, 12, 0), model=sample_models[0])

        assert change.timestamp.tzinfo is not None
        assert change.timestamp.hour == 12
