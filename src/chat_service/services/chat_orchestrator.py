import asyncio
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..crud import conversations as conversation_crud
from ..crud import messages as message_crud
from ..errors import CompletionCancelledError, InvalidMessageError, UpstreamError
from ..llm.types import ChatTurn, CompletionAdapter
from ..logging_config import logger
from ..models import Message, MessageRole


@dataclass
class SendMessageResult:
    message: Message
    reply: Message


class ChatOrchestrator:
    """
    Implements one conversational turn on top of the conversation log and
    a completion adapter.

    The user message is committed before the backend is called and is
    never rolled back. The assistant reply, and the conversation's
    last_message_at, are only written after a successful completion. A
    failed turn therefore leaves the user message in place and surfaces
    the adapter's error unchanged.

    Concurrent sends on one conversation are not serialized; each reads
    whatever history is committed when it starts.
    """

    def __init__(self, db: AsyncSession, adapter: CompletionAdapter):
        self.db = db
        self.adapter = adapter

    async def send_message(
        self,
        conversation_id: str,
        content: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> SendMessageResult:
        if not content or not content.strip():
            raise InvalidMessageError("Message content must not be empty")

        await conversation_crud.get_conversation(self.db, conversation_id)

        user_message = await message_crud.create_message(
            self.db, conversation_id, MessageRole.USER, content
        )
        history = await message_crud.get_history(self.db, conversation_id)
        turns = [ChatTurn(role=m.role, content=m.content) for m in history]

        try:
            completion = await self.adapter.complete(turns, cancel_event=cancel_event)
        except CompletionCancelledError:
            logger.info(
                f"Completion for conversation {conversation_id} cancelled; "
                f"user message {user_message.id} kept"
            )
            raise
        except UpstreamError as e:
            logger.error(
                f"Completion for conversation {conversation_id} failed "
                f"({e.code}, attempts={e.attempts}); user message {user_message.id} kept"
            )
            raise

        reply = await message_crud.record_reply(self.db, conversation_id, completion)
        logger.info(
            f"Conversation {conversation_id}: stored turn {user_message.id} -> {reply.id}"
        )
        return SendMessageResult(message=user_message, reply=reply)
