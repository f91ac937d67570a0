"""
ORM models for conversations, messages and named counters.
"""

from .base import Base, CreatedAtMixin, SortableIDMixin, UTCDateTime
from .conversation import Conversation
from .message import Message, MessageRole
from .counter import Counter

__all__ = [
    "Base",
    "Conversation",
    "Counter",
    "CreatedAtMixin",
    "Message",
    "MessageRole",
    "SortableIDMixin",
    "UTCDateTime",
]
