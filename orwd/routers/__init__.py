"""HTTP routers for the orwd daemon.

The client router holds the catch-all route and must be included last.
"""

from .api import router as api_router
from .client import router as client_router
from .feed import router as feed_router

__all__ = [
    "api_router",
    "client_router",
    "feed_router",
]
