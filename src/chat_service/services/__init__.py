from .chat_orchestrator import ChatOrchestrator, SendMessageResult

__all__ = ["ChatOrchestrator", "SendMessageResult"]
