"""Record differencer.

Compares two catalog snapshots and produces added/removed/changed events.
The comparison walks an explicit field schema rather than reflecting over
whatever keys the records happen to carry, so the set of compared fields is
fixed and every field of ``Model`` is covered exactly once.
"""

from collections.abc import Iterable
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import UTC
from datetime import datetime
from typing import Any

from pydantic import BaseModel

from ..models import AddedChange
from ..models import ChangedChange
from ..models import FieldChange
from ..models import Model
from ..models import ModelChange
from ..models import RemovedChange


@dataclass(frozen=True)
class FieldSpec:
    """How one top-level field of ``Model`` is compared.

    Attributes:
        name: Attribute name on ``Model``
        leaves: Leaf names of a nested record, None for a scalar field
        open_shape: Nested record of arbitrary shape; leaves are its keys in sorted order
    """

    name: str
    leaves: tuple[str, ...] | None = None
    open_shape: bool = False

    @property
    def nested(self) -> bool:
        return self.leaves is not None or self.open_shape


MODEL_SCHEMA: tuple[FieldSpec, ...] = (
    FieldSpec("name"),
    FieldSpec("description"),
    FieldSpec("pricing", leaves=("prompt", "completion", "request", "image")),
    FieldSpec("context_length"),
    FieldSpec("architecture", leaves=("modality", "tokenizer", "instruct_type")),
    FieldSpec("top_provider", leaves=("max_completion_tokens", "is_moderated")),
    FieldSpec("per_request_limits", open_shape=True),
)


def _plain(value: Any) -> Any:
    """Convert nested records to plain JSON-compatible values."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    return value


def _leaf(value: Any, key: str) -> Any:
    if isinstance(value, dict):
        return value.get(key)
    return getattr(value, key)


def _leaf_names(spec: FieldSpec, old_value: Any, new_value: Any) -> Iterable[str]:
    if spec.open_shape:
        return sorted(set(old_value) | set(new_value))
    return spec.leaves or ()


def _field_changes(old: Model, new: Model) -> Iterator[tuple[str, FieldChange]]:
    """Yield (dotted path, change) for every differing field, in schema order."""
    for spec in MODEL_SCHEMA:
        old_value = getattr(old, spec.name)
        new_value = getattr(new, spec.name)

        # Only recurse when both sides are populated; a record appearing or
        # disappearing is a change of the whole field.
        if spec.nested and old_value is not None and new_value is not None:
            for leaf in _leaf_names(spec, old_value, new_value):
                old_leaf = _leaf(old_value, leaf)
                new_leaf = _leaf(new_value, leaf)
                if old_leaf != new_leaf:
                    yield f"{spec.name}.{leaf}", FieldChange(old=old_leaf, new=new_leaf)
        elif old_value != new_value:
            yield spec.name, FieldChange(old=_plain(old_value), new=_plain(new_value))


def diff_models(old: Model, new: Model) -> dict[str, FieldChange]:
    """Compare two versions of the same model.

    Args:
        old: Previously stored version
        new: Freshly fetched version

    Returns:
        Mapping of dotted field path to old/new values; empty when identical
    """
    return dict(_field_changes(old, new))


def find_changes(
    new_models: list[Model],
    old_models: list[Model],
    now: datetime | None = None,
) -> list[ModelChange]:
    """Find differences between two snapshots.

    Removed events come first, then added, then changed. Within each group
    events follow the order of the snapshot they were found in. All events
    share one detection timestamp.

    Args:
        new_models: Freshly fetched snapshot
        old_models: Previously stored snapshot
        now: Detection time (default: current UTC time)

    Returns:
        List of change events, empty if both snapshots are equal
    """
    timestamp = now or datetime.now(UTC)
    new_by_id = {model.id: model for model in new_models}
    old_by_id = {model.id: model for model in old_models}

    changes: list[ModelChange] = []

    for model_id, old_model in old_by_id.items():
        if model_id not in new_by_id:
            changes.append(RemovedChange(id=model_id, model=old_model, timestamp=timestamp))

    for model_id, new_model in new_by_id.items():
        if model_id not in old_by_id:
            changes.append(AddedChange(id=model_id, model=new_model, timestamp=timestamp))

    for model_id, new_model in new_by_id.items():
        old_model = old_by_id.get(model_id)
        if old_model is None:
            continue
        field_changes = diff_models(old_model, new_model)
        if field_changes:
            changes.append(ChangedChange(id=model_id, changes=field_changes, timestamp=timestamp))

    return changes
