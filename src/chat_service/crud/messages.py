from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import ConversationNotFoundError
from ..models import Conversation, Message, MessageRole
from ..utils.ids import id_timestamp, new_id
from .conversations import conversation_exists, get_conversation


@dataclass
class MessagePage:
    """One page of a conversation's messages, oldest first."""

    conversation: Conversation
    messages: List[Message]
    next_cursor: Optional[str]
    prev_cursor: Optional[str]

    @property
    def has_more(self) -> bool:
        return self.next_cursor is not None


def _new_message(conversation_id: str, role: MessageRole, content: str) -> Message:
    # created_at is read back from the ID so time order and ID order agree
    message_id = new_id()
    return Message(
        id=message_id,
        conversation_id=conversation_id,
        role=role.value,
        content=content,
        created_at=id_timestamp(message_id),
    )


async def create_message(
    db: AsyncSession, conversation_id: str, role: MessageRole, content: str
) -> Message:
    """Persist and commit a single message."""
    message = _new_message(conversation_id, role, content)
    db.add(message)
    await db.commit()
    return message


async def record_reply(db: AsyncSession, conversation_id: str, content: str) -> Message:
    """
    Persist an assistant reply and advance the conversation's
    last_message_at to the reply's timestamp, in one transaction.

    Raises:
        ConversationNotFoundError: If the conversation was deleted meanwhile
    """
    if not await conversation_exists(db, conversation_id):
        raise ConversationNotFoundError(conversation_id)

    reply = _new_message(conversation_id, MessageRole.ASSISTANT, content)
    db.add(reply)
    await db.execute(
        update(Conversation)
        .where(
            Conversation.id == conversation_id,
            or_(
                Conversation.last_message_at.is_(None),
                Conversation.last_message_at < reply.created_at,
            ),
        )
        .values(last_message_at=reply.created_at)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return reply


async def get_history(db: AsyncSession, conversation_id: str) -> List[Message]:
    """Every message of the conversation, oldest first."""
    result = await db.execute(
        select(Message)
        .where(Message.conversation_id == conversation_id)
        .order_by(Message.created_at.asc(), Message.id.asc())
    )
    return list(result.scalars().all())


async def _newer_page_cursor(
    db: AsyncSession, conversation_id: str, after_id: str, limit: int
) -> Optional[str]:
    """Cursor whose page holds up to `limit` messages newer than `after_id`."""
    result = await db.execute(
        select(Message.id)
        .where(Message.conversation_id == conversation_id, Message.id > after_id)
        .order_by(Message.created_at.asc(), Message.id.asc())
        .limit(limit)
    )
    newer = list(result.scalars().all())
    return newer[-1] if newer else None


async def get_message_page(
    db: AsyncSession,
    conversation_id: str,
    cursor: Optional[str] = None,
    limit: int = 20,
) -> MessagePage:
    """
    Cursor pagination over a conversation's messages.

    Without a cursor the newest `limit` messages are returned. With a
    cursor (a message ID) the page holds that message and up to
    `limit - 1` older ones. Messages are fetched newest-first and returned
    oldest-first.

    next_cursor points at the newest message left out of the page and leads
    strictly older. prev_cursor is only set when a cursor was supplied; it
    addresses the adjacent page of newer messages, or is None when there
    are none. It is page-aligned: the newest of up to `limit` messages newer
    than this page, not the single message right after it, so following it
    always moves forward.

    Raises:
        ConversationNotFoundError: If the conversation does not exist
    """
    if limit < 1:
        raise ValueError("limit must be at least 1")

    conversation = await get_conversation(db, conversation_id)

    query = select(Message).where(Message.conversation_id == conversation_id)
    if cursor is not None:
        query = query.where(Message.id <= cursor)
    # One extra row tells us whether anything older exists
    query = query.order_by(Message.created_at.desc(), Message.id.desc()).limit(limit + 1)

    rows = list((await db.execute(query)).scalars().all())
    has_more = len(rows) > limit
    page = rows[:limit]
    next_cursor = rows[limit].id if has_more else None

    prev_cursor = None
    if cursor is not None:
        newest_on_page = page[0].id if page else cursor
        prev_cursor = await _newer_page_cursor(db, conversation_id, newest_on_page, limit)

    page.reverse()
    return MessagePage(
        conversation=conversation,
        messages=page,
        next_cursor=next_cursor,
        prev_cursor=prev_cursor,
    )
