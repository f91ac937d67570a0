from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_db, ping
from ..logging_config import logger

health_router = APIRouter(tags=["Health"])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@health_router.get("/healthz")
async def liveness():
    return {"status": "ok", "timestamp": _now()}


@health_router.get("/readyz")
async def readiness(db: AsyncSession = Depends(get_db)):
    """Ready when the database answers a trivial query."""
    try:
        await ping(db)
    except Exception as e:
        logger.error(f"Readiness check - Database error: {e}")
        return JSONResponse(
            status_code=503,
            content={
                "status": "not ready",
                "timestamp": _now(),
                "database": "disconnected",
            },
        )
    return {"status": "ready", "timestamp": _now(), "database": "connected"}
