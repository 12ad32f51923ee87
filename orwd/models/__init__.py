"""API models for the orwd daemon."""

from .responses import ApiResponse
from .responses import ApiStatus
from .responses import ChangeList
from .responses import ModelDetails
from .responses import WireModel

__all__ = [
    "ApiResponse",
    "ApiStatus",
    "ChangeList",
    "ModelDetails",
    "WireModel",
]
