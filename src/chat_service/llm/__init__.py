from .adapters import MockLLMAdapter, OllamaAdapter
from .factory import LLMProvider, create_llm_adapter
from .retry import call_with_retry
from .types import ChatTurn, CompletionAdapter, RetryPolicy

__all__ = [
    "ChatTurn",
    "CompletionAdapter",
    "LLMProvider",
    "MockLLMAdapter",
    "OllamaAdapter",
    "RetryPolicy",
    "call_with_retry",
    "create_llm_adapter",
]
