from __future__ import annotations

import asyncio
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..crud import conversations as conversation_crud
from ..crud import messages as message_crud
from ..db import get_db
from ..dependencies.app_deps import get_chat_orchestrator
from ..logging_config import logger
from ..schemas.conversation import (
    ConversationDetail,
    ConversationRead,
    ConversationSummary,
    MessageRead,
    PageInfo,
    SendMessageRequest,
    SendMessageResponse,
)
from ..services.chat_orchestrator import ChatOrchestrator
from ..utils.ids import is_valid_id

conversations_router = APIRouter(prefix="/api/conversations", tags=["Conversations"])


async def _cancel_on_disconnect(
    request: Request, cancel_event: asyncio.Event, interval: float
) -> None:
    while not cancel_event.is_set():
        await asyncio.sleep(interval)
        if await request.is_disconnected():
            logger.info("Client disconnected; cancelling in-flight completion")
            cancel_event.set()


@conversations_router.post(
    "", response_model=ConversationRead, status_code=status.HTTP_201_CREATED
)
async def create_conversation(db: AsyncSession = Depends(get_db)):
    return await conversation_crud.create_conversation(db)


@conversations_router.get("", response_model=List[ConversationSummary])
async def list_conversations(db: AsyncSession = Depends(get_db)):
    rows = await conversation_crud.list_conversations(db)
    return [
        ConversationSummary(
            id=conversation.id,
            title=conversation.title,
            created_at=conversation.created_at,
            last_message_at=newest_message_at,
        )
        for conversation, newest_message_at in rows
    ]


@conversations_router.get("/{conversation_id}", response_model=ConversationDetail)
async def get_conversation(
    conversation_id: str,
    messages_cursor: Optional[str] = Query(None, alias="messagesCursor"),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
):
    if messages_cursor is not None:
        if not is_valid_id(messages_cursor):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="messagesCursor is not a valid message ID",
            )
        messages_cursor = messages_cursor.upper()

    page = await message_crud.get_message_page(db, conversation_id, messages_cursor, limit)
    return ConversationDetail(
        id=page.conversation.id,
        title=page.conversation.title,
        messages=[MessageRead.model_validate(m) for m in page.messages],
        page_info=PageInfo(next_cursor=page.next_cursor, prev_cursor=page.prev_cursor),
    )


@conversations_router.delete(
    "/{conversation_id}", status_code=status.HTTP_204_NO_CONTENT
)
async def delete_conversation(conversation_id: str, db: AsyncSession = Depends(get_db)):
    await conversation_crud.delete_conversation(db, conversation_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@conversations_router.post(
    "/{conversation_id}/messages", response_model=SendMessageResponse
)
async def send_message(
    conversation_id: str,
    payload: SendMessageRequest,
    request: Request,
    orchestrator: ChatOrchestrator = Depends(get_chat_orchestrator),
):
    cancel_event = asyncio.Event()
    watcher = None
    if settings.CANCEL_ON_DISCONNECT:
        watcher = asyncio.create_task(
            _cancel_on_disconnect(
                request, cancel_event, settings.DISCONNECT_POLL_INTERVAL_MS / 1000
            )
        )
    try:
        result = await orchestrator.send_message(
            conversation_id, payload.content, cancel_event=cancel_event
        )
    finally:
        if watcher is not None:
            watcher.cancel()

    return SendMessageResponse(
        message=MessageRead.model_validate(result.message),
        reply=MessageRead.model_validate(result.reply),
    )
