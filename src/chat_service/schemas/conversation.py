from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from ..models.message import MessageRole
from .common import CamelModel


class ConversationRead(CamelModel):
    """Conversation as returned right after creation."""

    id: str = Field(..., description="Sortable unique identifier")
    title: str = Field(..., description="Auto-numbered title, e.g. 'Conversation #3'")
    created_at: datetime


class ConversationSummary(ConversationRead):
    """Conversation list entry."""

    last_message_at: Optional[datetime] = Field(
        None, description="Creation time of the newest message of any role, if any"
    )


class MessageRead(CamelModel):
    id: str
    role: MessageRole
    content: str
    created_at: datetime


class PageInfo(CamelModel):
    next_cursor: Optional[str] = Field(
        None, description="Cursor for the next page of older messages"
    )
    prev_cursor: Optional[str] = Field(
        None, description="Cursor for the adjacent page of newer messages"
    )


class ConversationDetail(CamelModel):
    """A conversation with one page of its messages, oldest first."""

    id: str
    title: str
    messages: List[MessageRead]
    page_info: PageInfo


class SendMessageRequest(CamelModel):
    content: str = Field(..., min_length=1, description="User message text")

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("content must not be blank")
        return v


class SendMessageResponse(CamelModel):
    """The persisted user turn and the assistant reply it produced."""

    message: MessageRead
    reply: MessageRead
