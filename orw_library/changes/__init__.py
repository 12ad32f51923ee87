"""Change detection between catalog snapshots.

Public Interface:
    - find_changes: Diff two snapshots into change events
    - diff_models: Field-level diff of two versions of one model
    - MODEL_SCHEMA: Declared comparison schema
"""

from .differ import MODEL_SCHEMA
from .differ import FieldSpec
from .differ import diff_models
from .differ import find_changes

__all__ = [
    "find_changes",
    "diff_models",
    "MODEL_SCHEMA",
    "FieldSpec",
]
