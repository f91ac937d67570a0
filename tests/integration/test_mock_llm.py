"""
End-to-end tests against the bundled mock completion backend.
"""

import httpx
import pytest
from httpx import ASGITransport

from chat_service.dependencies.app_deps import get_llm_adapter
from chat_service.llm import ChatTurn, MockLLMAdapter, RetryPolicy
from chat_service.main import app as fastapi_app
from chat_service.mock_llm import app as mock_llm_app
from chat_service.mock_llm import reply_for


def _adapter() -> MockLLMAdapter:
    return MockLLMAdapter(
        "http://mock-llm.test",
        policy=RetryPolicy(timeout_ms=2000, max_retries=0, retry_delay_ms=10),
        transport=ASGITransport(app=mock_llm_app),
    )


def test_reply_is_derived_from_last_user_line():
    assert reply_for("user: Hello") == "Hi there"
    assert reply_for("user: hi!\nassistant: Hi there\nuser: what time is it?") == (
        "You said: what time is it?"
    )


@pytest.mark.asyncio
async def test_mock_backend_health():
    async with httpx.AsyncClient(
        transport=ASGITransport(app=mock_llm_app), base_url="http://mock-llm.test"
    ) as client:
        response = await client.get("/healthz")
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_adapter_against_mock_backend():
    reply = await _adapter().complete([ChatTurn(role="user", content="Hello")])
    assert reply == "Hi there"


@pytest.mark.asyncio
async def test_chat_service_with_mock_backend(client):
    fastapi_app.dependency_overrides[get_llm_adapter] = _adapter

    conversation = (await client.post("/api/conversations")).json()
    url = f"/api/conversations/{conversation['id']}/messages"

    first = (await client.post(url, json={"content": "Hello"})).json()
    second = (await client.post(url, json={"content": "Tell me a joke"})).json()

    assert first["reply"]["content"] == "Hi there"
    assert second["reply"]["content"] == "You said: Tell me a joke"
