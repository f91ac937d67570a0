from .common import CamelModel, ErrorResponse
from .conversation import (
    ConversationDetail,
    ConversationRead,
    ConversationSummary,
    MessageRead,
    PageInfo,
    SendMessageRequest,
    SendMessageResponse,
)

__all__ = [
    "CamelModel",
    "ConversationDetail",
    "ConversationRead",
    "ConversationSummary",
    "ErrorResponse",
    "MessageRead",
    "PageInfo",
    "SendMessageRequest",
    "SendMessageResponse",
]
