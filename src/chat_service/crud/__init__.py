from . import conversations, messages
from .messages import MessagePage

__all__ = ["MessagePage", "conversations", "messages"]
