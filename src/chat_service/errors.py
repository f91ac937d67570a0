"""
Error taxonomy shared by the conversation log, the completion adapters
and the orchestration layer.

The HTTP boundary maps these onto status codes in main.py; nothing below
the routers raises HTTPException.
"""

from typing import Optional


class ChatServiceError(Exception):
    """Base class for all errors raised by the Chat Service."""

    code = "CHAT_SERVICE_ERROR"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__name__


class ConfigurationError(ChatServiceError):
    """Missing or invalid settings; the service must not start."""

    code = "CONFIGURATION_ERROR"


class ConversationNotFoundError(ChatServiceError):
    code = "NOT_FOUND"

    def __init__(self, conversation_id: str):
        super().__init__(f"Conversation {conversation_id} not found")
        self.conversation_id = conversation_id


class InvalidMessageError(ChatServiceError):
    code = "VALIDATION_ERROR"


class CompletionCancelledError(ChatServiceError):
    """The caller aborted an in-flight completion. Never retried."""

    code = "CANCELLED"


class UpstreamError(ChatServiceError):
    """
    Failure talking to the completion backend.

    `retryable` marks the transient kinds (timeouts and 5xx responses);
    `attempts` is filled in by the retry loop once it gives up.
    """

    code = "UPSTREAM_ERROR"
    retryable = False

    def __init__(self, message: str = "", *, attempts: Optional[int] = None):
        super().__init__(message)
        self.attempts = attempts


class UpstreamTimeoutError(UpstreamError):
    code = "UPSTREAM_TIMEOUT"
    retryable = True


class UpstreamServerError(UpstreamError):
    code = "UPSTREAM_SERVER_ERROR"
    retryable = True

    def __init__(self, status_code: int, message: str = "", **kwargs):
        super().__init__(message or f"Completion backend returned {status_code}", **kwargs)
        self.status_code = status_code


class UpstreamMalformedResponseError(UpstreamError):
    """The backend answered, but not in the shape the adapter expects."""

    code = "UPSTREAM_MALFORMED_RESPONSE"


class UpstreamRequestError(UpstreamError):
    """Connection failures and non-5xx HTTP statuses."""

    code = "UPSTREAM_REQUEST_ERROR"
