from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import ConversationNotFoundError
from ..logging_config import logger
from ..models import Conversation, Counter, Message
from ..utils.ids import id_timestamp, new_id

CONVERSATION_COUNTER = "conversations"


async def _seed_counter(db: AsyncSession) -> int:
    total = await db.scalar(select(func.count()).select_from(Conversation)) or 0
    counter = await db.get(Counter, CONVERSATION_COUNTER, populate_existing=True)
    if counter is None:
        counter = Counter(name=CONVERSATION_COUNTER, value=total)
        db.add(counter)
    elif counter.value < total:
        counter.value = total
    await db.flush()
    return counter.value


async def seed_conversation_counter(db: AsyncSession) -> int:
    """
    Make sure the conversation-number counter exists and is not behind the
    number of stored conversations. Called once at startup.

    Returns:
        The last number handed out.
    """
    try:
        value = await _seed_counter(db)
        await db.commit()
    except IntegrityError:
        # Another instance inserted the row first
        await db.rollback()
        value = await _seed_counter(db)
        await db.commit()
    logger.info(f"Conversation counter seeded at {value}")
    return value


async def _next_conversation_number(db: AsyncSession) -> int:
    """Increment and read the counter inside the caller's transaction."""
    stmt = (
        update(Counter)
        .where(Counter.name == CONVERSATION_COUNTER)
        .values(value=Counter.value + 1)
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    if result.rowcount == 0:
        await _seed_counter(db)
        await db.execute(stmt)
    return await db.scalar(
        select(Counter.value).where(Counter.name == CONVERSATION_COUNTER)
    )


async def create_conversation(db: AsyncSession) -> Conversation:
    """
    Create an empty conversation titled with the next creation number.

    The number comes from a persisted counter, so it keeps increasing
    across restarts and deletions.
    """
    number = await _next_conversation_number(db)
    conversation_id = new_id()
    conversation = Conversation(
        id=conversation_id,
        title=f"Conversation #{number}",
        created_at=id_timestamp(conversation_id),
    )
    db.add(conversation)
    await db.commit()

    logger.info(f"Created conversation {conversation.id} ({conversation.title})")
    return conversation


async def list_conversations(
    db: AsyncSession,
) -> List[Tuple[Conversation, Optional[datetime]]]:
    """
    All conversations, newest-created first, each paired with the creation
    time of its newest message of any role (None when it has none).
    """
    newest_message = (
        select(func.max(Message.created_at))
        .where(Message.conversation_id == Conversation.id)
        .correlate(Conversation)
        .scalar_subquery()
    )
    result = await db.execute(
        select(Conversation, newest_message.label("newest_message_at"))
        .order_by(Conversation.created_at.desc(), Conversation.id.desc())
        .execution_options(populate_existing=True)
    )
    return [(conversation, newest) for conversation, newest in result.all()]


async def get_conversation(db: AsyncSession, conversation_id: str) -> Conversation:
    """
    Get a conversation by ID.

    Raises:
        ConversationNotFoundError: If the conversation does not exist
    """
    conversation = await db.get(
        Conversation, conversation_id, populate_existing=True
    )
    if conversation is None:
        raise ConversationNotFoundError(conversation_id)
    return conversation


async def conversation_exists(db: AsyncSession, conversation_id: str) -> bool:
    found = await db.scalar(
        select(Conversation.id).where(Conversation.id == conversation_id)
    )
    return found is not None


async def delete_conversation(db: AsyncSession, conversation_id: str) -> None:
    """
    Delete a conversation and all of its messages in one transaction.

    Raises:
        ConversationNotFoundError: If the conversation does not exist
    """
    conversation = await get_conversation(db, conversation_id)

    result = await db.execute(
        delete(Message).where(Message.conversation_id == conversation_id)
    )
    await db.delete(conversation)
    await db.commit()

    logger.info(
        f"Deleted conversation {conversation_id} with {result.rowcount} messages"
    )
