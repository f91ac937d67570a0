"""
Logging setup for the Chat Service.

Every log record carries the correlation ID of the request being served,
taken from the X-Correlation-ID header or generated when absent.
"""

import logging
import sys
import time
import uuid
from contextvars import ContextVar
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from .config import settings

CORRELATION_ID_HEADER = "X-Correlation-ID"

_correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

logger = logging.getLogger("chat_service")


def get_correlation_id() -> Optional[str]:
    return _correlation_id.get()


def generate_correlation_id() -> str:
    return uuid.uuid4().hex


class CorrelationIdFilter(logging.Filter):
    """Attach the current correlation ID to each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = _correlation_id.get() or "-"
        return True


def setup_logging() -> None:
    """Configure the root logger once; repeated calls are no-ops."""
    root = logging.getLogger()
    if any(getattr(h, "_chat_service", False) for h in root.handlers):
        return

    formatter = logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.addFilter(CorrelationIdFilter())
    handler._chat_service = True

    root.addHandler(handler)
    root.setLevel(settings.LOGGING_LEVEL.upper())

    # Uvicorn access logs duplicate what LoggingMiddleware already records
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


class LoggingMiddleware:
    """
    Bind a correlation ID to the request and log its outcome.

    Written as plain ASGI so the endpoint gets the server's own `receive`;
    `request.is_disconnected()` only sees a client going away through it.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        correlation_id = Headers(scope=scope).get(CORRELATION_ID_HEADER) or generate_correlation_id()
        # Read back by handlers that run after the context var is reset
        scope.setdefault("state", {})["correlation_id"] = correlation_id
        token = _correlation_id.set(correlation_id)
        status_code = 500
        start = time.perf_counter()

        async def send_with_correlation_id(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                MutableHeaders(scope=message)[CORRELATION_ID_HEADER] = correlation_id
            await send(message)

        try:
            await self.app(scope, receive, send_with_correlation_id)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.info(f"{scope['method']} {scope['path']} -> {status_code} ({elapsed_ms:.1f}ms)")
            _correlation_id.reset(token)


def setup_middleware(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[CORRELATION_ID_HEADER],
    )
    app.add_middleware(LoggingMiddleware)
