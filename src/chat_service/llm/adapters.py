"""
Completion backend variants.

Both variants flatten the conversation into "role: content" lines and
share the retry policy in retry.py; they differ only in the request they
build and the reply fields they accept.
"""

import asyncio
from typing import Any, Optional, Sequence

import httpx

from ..errors import UpstreamMalformedResponseError
from ..utils.helpers import flatten_history
from .transport import post_json
from .retry import call_with_retry
from .types import ChatTurn, RetryPolicy, validate_history


class MockLLMAdapter:
    """Primary variant: `POST /complete` with `{"content"}`, replies `{"completion"}`."""

    provider = "mock"

    def __init__(
        self,
        base_url: str,
        policy: Optional[RetryPolicy] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self.policy = policy or RetryPolicy()
        self._transport = transport

    async def complete(
        self,
        history: Sequence[ChatTurn],
        cancel_event: Optional[asyncio.Event] = None,
    ) -> str:
        validate_history(history)
        payload = {"content": flatten_history(history)}
        return await call_with_retry(
            lambda: self._request(payload),
            self.policy,
            label="mock LLM",
            cancel_event=cancel_event,
        )

    async def _request(self, payload: dict[str, Any]) -> str:
        data = await post_json(
            self.base_url,
            "/complete",
            payload,
            timeout=self.policy.timeout_seconds,
            transport=self._transport,
        )
        completion = data.get("completion") if isinstance(data, dict) else None
        if not isinstance(completion, str):
            raise UpstreamMalformedResponseError(
                "Mock LLM response missing completion field"
            )
        return completion


class OllamaAdapter:
    """
    Alternate variant: `POST /api/generate` with a model name and a
    non-streaming flag. The reply text is read from `response`, falling
    back to `completion`.
    """

    provider = "ollama"
    REPLY_FIELDS = ("response", "completion")

    def __init__(
        self,
        base_url: str,
        model: str,
        policy: Optional[RetryPolicy] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self.model = model
        self.policy = policy or RetryPolicy()
        self._transport = transport

    async def complete(
        self,
        history: Sequence[ChatTurn],
        cancel_event: Optional[asyncio.Event] = None,
    ) -> str:
        validate_history(history)
        payload = {
            "model": self.model,
            "prompt": flatten_history(history),
            "stream": False,
        }
        return await call_with_retry(
            lambda: self._request(payload),
            self.policy,
            label="Ollama",
            cancel_event=cancel_event,
        )

    async def _request(self, payload: dict[str, Any]) -> str:
        data = await post_json(
            self.base_url,
            "/api/generate",
            payload,
            timeout=self.policy.timeout_seconds,
            transport=self._transport,
        )
        if isinstance(data, dict):
            for field in self.REPLY_FIELDS:
                value = data.get(field)
                if isinstance(value, str) and value:
                    return value
        raise UpstreamMalformedResponseError("Ollama response missing completion field")
