from .app_deps import get_chat_orchestrator, get_llm_adapter

__all__ = ["get_chat_orchestrator", "get_llm_adapter"]
