"""
Integration tests for API endpoints.
"""

import pytest
from fastapi import status

from chat_service.errors import (
    CompletionCancelledError,
    UpstreamMalformedResponseError,
    UpstreamServerError,
    UpstreamTimeoutError,
)
from chat_service.logging_config import CORRELATION_ID_HEADER

UNKNOWN_ID = "01ARZ3NDEKTSV4RRFFQ69G5FAV"


async def _create(client) -> dict:
    response = await client.post("/api/conversations")
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()


@pytest.mark.asyncio
async def test_health_endpoints(client):
    live = await client.get("/healthz")
    assert live.status_code == 200
    assert live.json()["status"] == "ok"

    ready = await client.get("/readyz")
    assert ready.status_code == 200
    assert ready.json()["database"] == "connected"


@pytest.mark.asyncio
async def test_create_and_list_conversations(client):
    first = await _create(client)
    second = await _create(client)

    assert first["title"] == "Conversation #1"
    assert second["title"] == "Conversation #2"
    assert set(first) == {"id", "title", "createdAt"}

    response = await client.get("/api/conversations")
    assert response.status_code == 200
    listed = response.json()
    assert [c["id"] for c in listed] == [second["id"], first["id"]]
    assert listed[0]["lastMessageAt"] is None


@pytest.mark.asyncio
async def test_hello_round_trip(client, stub_adapter):
    conversation = await _create(client)

    response = await client.post(
        f"/api/conversations/{conversation['id']}/messages", json={"content": "Hello"}
    )
    assert response.status_code == 200
    data = response.json()
    assert data["message"]["role"] == "user"
    assert data["message"]["content"] == "Hello"
    assert data["reply"]["role"] == "assistant"
    assert data["reply"]["content"] == "Hi there"
    assert [(t.role, t.content) for t in stub_adapter.calls[0]] == [("user", "Hello")]

    detail = (await client.get(f"/api/conversations/{conversation['id']}")).json()
    assert [(m["role"], m["content"]) for m in detail["messages"]] == [
        ("user", "Hello"),
        ("assistant", "Hi there"),
    ]
    assert detail["pageInfo"] == {"nextCursor": None, "prevCursor": None}

    listed = (await client.get("/api/conversations")).json()
    assert listed[0]["lastMessageAt"] == data["reply"]["createdAt"]


@pytest.mark.asyncio
async def test_message_pagination(client, stub_adapter):
    conversation = await _create(client)
    url = f"/api/conversations/{conversation['id']}"
    for text in ["one", "two", "three"]:
        stub_adapter.reply = f"re: {text}"
        await client.post(f"{url}/messages", json={"content": text})

    newest = (await client.get(url, params={"limit": 4})).json()
    assert [m["content"] for m in newest["messages"]] == ["two", "re: two", "three", "re: three"]
    assert newest["pageInfo"]["prevCursor"] is None

    older = (
        await client.get(url, params={"limit": 4, "messagesCursor": newest["pageInfo"]["nextCursor"]})
    ).json()
    assert [m["content"] for m in older["messages"]] == ["one", "re: one"]
    assert older["pageInfo"]["nextCursor"] is None
    assert older["pageInfo"]["prevCursor"] == newest["messages"][-1]["id"]


@pytest.mark.asyncio
async def test_lowercase_cursor_is_accepted(client, stub_adapter):
    conversation = await _create(client)
    url = f"/api/conversations/{conversation['id']}"
    sent = (await client.post(f"{url}/messages", json={"content": "Hello"})).json()

    page = (
        await client.get(url, params={"messagesCursor": sent["message"]["id"].lower()})
    ).json()
    assert [m["content"] for m in page["messages"]] == ["Hello"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "params",
    [{"messagesCursor": "not-a-cursor"}, {"limit": 0}, {"limit": 10_000}],
)
async def test_bad_page_parameters(client, params):
    conversation = await _create(client)
    response = await client.get(f"/api/conversations/{conversation['id']}", params=params)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_unknown_conversation_is_404(client):
    for method, path, body in [
        ("GET", f"/api/conversations/{UNKNOWN_ID}", None),
        ("DELETE", f"/api/conversations/{UNKNOWN_ID}", None),
        ("POST", f"/api/conversations/{UNKNOWN_ID}/messages", {"content": "Hello"}),
    ]:
        response = await client.request(method, path, json=body)
        assert response.status_code == status.HTTP_404_NOT_FOUND
        data = response.json()
        assert data["code"] == "NOT_FOUND"
        assert data["correlationId"]


@pytest.mark.asyncio
async def test_delete_conversation(client, stub_adapter):
    conversation = await _create(client)
    url = f"/api/conversations/{conversation['id']}"
    await client.post(f"{url}/messages", json={"content": "Hello"})

    response = await client.delete(url)
    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert response.content == b""

    assert (await client.get(url)).status_code == status.HTTP_404_NOT_FOUND
    assert (await client.get("/api/conversations")).json() == []


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{"content": ""}, {"content": "   "}, {}, {"content": 42}])
async def test_invalid_message_body(client, stub_adapter, body):
    conversation = await _create(client)
    response = await client.post(
        f"/api/conversations/{conversation['id']}/messages", json=body
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["code"] == "VALIDATION_ERROR"
    assert stub_adapter.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error, expected_status, retry_after",
    [
        (UpstreamTimeoutError("slow", attempts=3), 504, 1000),
        (UpstreamServerError(500, attempts=3), 502, 1000),
        (UpstreamMalformedResponseError("bad shape", attempts=1), 502, None),
        (CompletionCancelledError("client went away"), 499, None),
    ],
)
async def test_upstream_failures(client, stub_adapter, error, expected_status, retry_after):
    conversation = await _create(client)
    url = f"/api/conversations/{conversation['id']}"
    stub_adapter.error = error

    response = await client.post(f"{url}/messages", json={"content": "Hello"})

    assert response.status_code == expected_status
    data = response.json()
    assert data["code"] == error.code
    assert data.get("retryAfterMs") == retry_after
    assert data["correlationId"] == response.headers[CORRELATION_ID_HEADER]

    # The user message stays; no reply is stored
    detail = (await client.get(url)).json()
    assert [(m["role"], m["content"]) for m in detail["messages"]] == [("user", "Hello")]
    listed = (await client.get("/api/conversations")).json()
    assert listed[0]["lastMessageAt"] == detail["messages"][0]["createdAt"]


@pytest.mark.asyncio
async def test_correlation_id_is_echoed(client):
    response = await client.get("/healthz", headers={CORRELATION_ID_HEADER: "trace-123"})
    assert response.headers[CORRELATION_ID_HEADER] == "trace-123"

    generated = await client.get("/healthz")
    assert generated.headers[CORRELATION_ID_HEADER]
