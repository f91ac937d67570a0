from .conversations_router import conversations_router
from .health_router import health_router

__all__ = [
    "conversations_router",
    "health_router",
]
