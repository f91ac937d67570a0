"""
Helper functions for seeding test data.
"""

from typing import List, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from chat_service.crud import conversations as conversation_crud
from chat_service.crud import messages as message_crud
from chat_service.models import Conversation, Message, MessageRole


async def create_test_conversation(db_session: AsyncSession) -> Conversation:
    return await conversation_crud.create_conversation(db_session)


async def add_messages(
    db_session: AsyncSession, conversation_id: str, contents: Sequence[str]
) -> List[Message]:
    """
    Append messages in order, alternating user and assistant roles.

    Returns:
        The created messages, oldest first
    """
    created = []
    for index, content in enumerate(contents):
        role = MessageRole.USER if index % 2 == 0 else MessageRole.ASSISTANT
        created.append(
            await message_crud.create_message(db_session, conversation_id, role, content)
        )
    return created
