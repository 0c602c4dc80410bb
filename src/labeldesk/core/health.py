"""Liveness and readiness probes."""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from labeldesk.core.config import app_settings
from labeldesk.core.db import get_db
from labeldesk.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health() -> dict:
    """Liveness probe."""
    return {"status": "ok", "service": app_settings.app_name, "version": app_settings.app_version}


@router.get("/ready")
async def ready(db: AsyncSession = Depends(get_db)) -> JSONResponse:
    """Readiness probe: the database must answer."""
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning("readiness_check_failed", error=str(e))
        return JSONResponse(status_code=503, content={"status": "unavailable"})
    return JSONResponse(status_code=200, content={"status": "ready"})
