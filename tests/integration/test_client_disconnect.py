"""
Client disconnects during a send, driven through the full ASGI stack.

httpx's ASGITransport never reports a disconnect, so these tests call the
application directly with a `receive` that does.
"""

import asyncio
import json
import time
from typing import Optional

import pytest

from chat_service.dependencies.app_deps import get_llm_adapter
from chat_service.errors import CompletionCancelledError
from chat_service.logging_config import CORRELATION_ID_HEADER
from chat_service.main import app as fastapi_app


class WaitForCancelAdapter:
    """Replies only if nobody cancels within `wait_seconds`."""

    provider = "stub"

    def __init__(self, wait_seconds: float = 3.0):
        self.wait_seconds = wait_seconds
        self.cancelled = False

    async def complete(self, history, cancel_event=None):
        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=self.wait_seconds)
        except asyncio.TimeoutError:
            return "nobody hung up"
        self.cancelled = True
        raise CompletionCancelledError("client went away")


async def _post_json(path: str, payload: dict, disconnect_after: Optional[float] = None):
    """
    Run one POST through the app.

    Returns:
        The ASGI messages the app sent
    """
    loop = asyncio.get_running_loop()
    body = json.dumps(payload).encode()
    body_sent = False

    async def receive():
        nonlocal body_sent
        if not body_sent:
            body_sent = True
            return {"type": "http.request", "body": body, "more_body": False}
        if disconnect_after is None:
            await loop.create_future()
        while loop.time() - started < disconnect_after:
            await asyncio.sleep(0.01)
        return {"type": "http.disconnect"}

    sent = []

    async def send(message):
        sent.append(message)

    scope = {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": "POST",
        "scheme": "http",
        "path": path,
        "raw_path": path.encode(),
        "root_path": "",
        "query_string": b"",
        "headers": [
            (b"host", b"test"),
            (b"content-type", b"application/json"),
            (b"content-length", str(len(body)).encode()),
        ],
        "client": ("127.0.0.1", 50000),
        "server": ("test", 80),
    }
    started = loop.time()
    await fastapi_app(scope, receive, send)
    return sent


def _status(sent) -> int:
    return next(m["status"] for m in sent if m["type"] == "http.response.start")


def _headers(sent) -> dict:
    start = next(m for m in sent if m["type"] == "http.response.start")
    return {k.decode().lower(): v.decode() for k, v in start["headers"]}


@pytest.mark.asyncio
async def test_disconnect_cancels_in_flight_completion(client):
    conversation = (await client.post("/api/conversations")).json()
    adapter = WaitForCancelAdapter(wait_seconds=3.0)
    fastapi_app.dependency_overrides[get_llm_adapter] = lambda: adapter

    started = time.monotonic()
    sent = await _post_json(
        f"/api/conversations/{conversation['id']}/messages",
        {"content": "Hello"},
        disconnect_after=0.1,
    )
    elapsed = time.monotonic() - started

    assert adapter.cancelled
    assert elapsed < 2
    assert _status(sent) == 499
    assert _headers(sent)[CORRELATION_ID_HEADER.lower()]

    # The user turn is kept, no reply is stored
    detail = (await client.get(f"/api/conversations/{conversation['id']}")).json()
    assert [(m["role"], m["content"]) for m in detail["messages"]] == [("user", "Hello")]


@pytest.mark.asyncio
async def test_connected_client_gets_reply(client):
    conversation = (await client.post("/api/conversations")).json()
    adapter = WaitForCancelAdapter(wait_seconds=0.4)
    fastapi_app.dependency_overrides[get_llm_adapter] = lambda: adapter

    sent = await _post_json(
        f"/api/conversations/{conversation['id']}/messages", {"content": "Hello"}
    )

    assert not adapter.cancelled
    assert _status(sent) == 200
    body = json.loads(b"".join(m.get("body", b"") for m in sent if m["type"] == "http.response.body"))
    assert body["reply"]["content"] == "nobody hung up"
