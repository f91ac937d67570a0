"""
Stand-in completion backend for local development and end-to-end tests.

Speaks the `/complete` contract used by MockLLMAdapter and answers
deterministically from the last "user:" line of the flattened history.

    uvicorn chat_service.mock_llm:app --port 8080
"""

from fastapi import FastAPI
from pydantic import BaseModel

GREETINGS = {"hello", "hi", "hey"}


class CompletionRequest(BaseModel):
    content: str


class CompletionResponse(BaseModel):
    completion: str


def last_user_line(content: str) -> str:
    for line in reversed(content.splitlines()):
        if line.startswith("user: "):
            return line[len("user: "):].strip()
    return content.strip()


def reply_for(content: str) -> str:
    said = last_user_line(content)
    if said.lower().rstrip("!.") in GREETINGS:
        return "Hi there"
    return f"You said: {said}"


app = FastAPI(title="Mock LLM", version="0.1.0")


@app.post("/complete", response_model=CompletionResponse)
async def complete(request: CompletionRequest):
    return CompletionResponse(completion=reply_for(request.content))


@app.get("/healthz")
async def healthz():
    return {"status": "ok"}
