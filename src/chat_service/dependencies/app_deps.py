from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_db
from ..errors import ConfigurationError
from ..llm.types import CompletionAdapter
from ..services.chat_orchestrator import ChatOrchestrator


def get_llm_adapter(request: Request) -> CompletionAdapter:
    """
    Returns the completion adapter built once at startup.
    """
    adapter = getattr(request.app.state, "llm_adapter", None)
    if adapter is None:
        raise ConfigurationError("LLM adapter has not been initialised")
    return adapter


def get_chat_orchestrator(
    db: AsyncSession = Depends(get_db),
    adapter: CompletionAdapter = Depends(get_llm_adapter),
) -> ChatOrchestrator:
    return ChatOrchestrator(db, adapter)
