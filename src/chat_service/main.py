import logging
import time
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import settings
from .crud.conversations import seed_conversation_counter
from .db import create_tables, dispose_engine, get_session_factory
from .errors import (
    ChatServiceError,
    CompletionCancelledError,
    ConversationNotFoundError,
    InvalidMessageError,
    UpstreamError,
    UpstreamServerError,
    UpstreamTimeoutError,
)
from .llm import create_llm_adapter
from .logging_config import (
    CORRELATION_ID_HEADER,
    get_correlation_id,
    setup_logging,
    setup_middleware,
)
from .routers import conversations_router, health_router
from .schemas.common import ErrorResponse

# Clients are told to wait this long before retrying a transient upstream failure
UPSTREAM_RETRY_AFTER_MS = 1000

# Non-standard status used when the client went away mid-completion
STATUS_CLIENT_CLOSED_REQUEST = 499


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.logger.info(f"'{settings.PROJECT_NAME}' startup sequence initiated.")
    app.startup_time = time.time()

    # An invalid provider configuration aborts startup here
    app.state.llm_adapter = create_llm_adapter(settings.llm_config())

    if settings.AUTO_CREATE_TABLES:
        await create_tables()
    async with get_session_factory()() as session:
        await seed_conversation_counter(session)

    app.logger.info(f"'{settings.PROJECT_NAME}' startup complete.")
    yield
    app.logger.info(f"'{settings.PROJECT_NAME}' shutdown sequence initiated.")
    await dispose_engine()


# Configure logging before app initialization
setup_logging()

app = FastAPI(
    title=settings.PROJECT_NAME,
    description=(
        "Conversational chat service: persistent conversations, cursor-paginated "
        "message history and pluggable LLM completion backends."
    ),
    version="0.1.0",
    root_path=settings.ROOT_PATH,
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Health", "description": "Service health endpoints"},
        {"name": "Conversations", "description": "Conversation CRUD and messages"},
    ],
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# Initialize application logger
app.logger = logging.getLogger("chat_service")

# Setup middleware
setup_middleware(app)


def _correlation_id(request: Request) -> Optional[str]:
    return get_correlation_id() or getattr(request.state, "correlation_id", None)


def error_response(
    request: Request,
    status_code: int,
    code: str,
    detail: Any,
    retry_after_ms: Optional[int] = None,
) -> JSONResponse:
    correlation_id = _correlation_id(request)
    body = ErrorResponse(
        detail=detail,
        code=code,
        correlation_id=correlation_id,
        retry_after_ms=retry_after_ms,
    )
    headers = {CORRELATION_ID_HEADER: correlation_id} if correlation_id else None
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(by_alias=True, exclude_none=True, mode="json"),
        headers=headers,
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may hold the raw exception raised by a validator
    errors = []
    for error in exc.errors():
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {k: str(v) for k, v in error["ctx"].items()}
        errors.append(error)
    return jsonable_encoder(errors)


# Exception handlers
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    code = "NOT_FOUND" if exc.status_code == status.HTTP_404_NOT_FOUND else "HTTP_ERROR"
    if exc.status_code == status.HTTP_400_BAD_REQUEST:
        code = "VALIDATION_ERROR"
    return error_response(request, exc.status_code, code, exc.detail)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return error_response(
        request,
        status.HTTP_400_BAD_REQUEST,
        InvalidMessageError.code,
        jsonable_errors(exc),
    )


@app.exception_handler(InvalidMessageError)
async def invalid_message_handler(request: Request, exc: InvalidMessageError):
    return error_response(request, status.HTTP_400_BAD_REQUEST, exc.code, exc.message)


@app.exception_handler(ConversationNotFoundError)
async def not_found_handler(request: Request, exc: ConversationNotFoundError):
    return error_response(request, status.HTTP_404_NOT_FOUND, exc.code, exc.message)


@app.exception_handler(CompletionCancelledError)
async def cancelled_handler(request: Request, exc: CompletionCancelledError):
    app.logger.info(f"{request.method} {request.url.path} cancelled by client")
    return error_response(request, STATUS_CLIENT_CLOSED_REQUEST, exc.code, exc.message)


@app.exception_handler(UpstreamError)
async def upstream_error_handler(request: Request, exc: UpstreamError):
    if isinstance(exc, UpstreamTimeoutError):
        return error_response(
            request,
            status.HTTP_504_GATEWAY_TIMEOUT,
            exc.code,
            "Completion backend timed out",
            retry_after_ms=UPSTREAM_RETRY_AFTER_MS,
        )
    if isinstance(exc, UpstreamServerError):
        return error_response(
            request,
            status.HTTP_502_BAD_GATEWAY,
            exc.code,
            "Completion backend failed",
            retry_after_ms=UPSTREAM_RETRY_AFTER_MS,
        )
    return error_response(
        request, status.HTTP_502_BAD_GATEWAY, exc.code, "Completion backend error"
    )


@app.exception_handler(ChatServiceError)
async def chat_service_error_handler(request: Request, exc: ChatServiceError):
    app.logger.error(f"Unhandled service error ({exc.code}): {exc.message}")
    return error_response(
        request, status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", "Internal server error"
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    app.logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return error_response(
        request, status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", "Internal server error"
    )


# Routers
app.include_router(health_router)
app.include_router(conversations_router)
