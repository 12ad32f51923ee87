"""Shared data models for orw.

Public Interface:
    - Model, Pricing, Architecture, TopProvider: Catalog records
    - AddedChange, RemovedChange, ChangedChange, ModelChange: Change events
    - FieldChange: Old/new pair inside a changed event
    - WatcherStatus: Versioned watcher status record
"""

from .catalog import Architecture
from .catalog import Model
from .catalog import Pricing
from .catalog import TopProvider
from .changes import AddedChange
from .changes import ChangedChange
from .changes import FieldChange
from .changes import ModelChange
from .changes import RemovedChange
from .changes import model_change_adapter
from .status import EPOCH
from .status import CheckOutcome
from .status import WatcherStatus

__all__ = [
    "Model",
    "Pricing",
    "Architecture",
    "TopProvider",
    "AddedChange",
    "RemovedChange",
    "ChangedChange",
    "FieldChange",
    "ModelChange",
    "model_change_adapter",
    "WatcherStatus",
    "CheckOutcome",
    "EPOCH",
]
