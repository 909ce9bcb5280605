"""
Health check endpoints.
"""

import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.db import get_db
from src.models import SETTINGS_ROW_ID, SystemSettings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health_check():
    """
    Basic health check.

    Returns 200 if the service is running.
    """
    return {"status": "healthy", "service": "commission"}


@router.get("/ready")
async def readiness_check(response: Response, db: AsyncSession = Depends(get_db)):
    """
    Readiness check.

    Ready means the database answers and the commission settings row
    exists; without it no deal can be finalized.
    """
    try:
        await db.execute(text("SELECT 1"))
        settings_row = await db.get(SystemSettings, SETTINGS_ROW_ID)
    except SQLAlchemyError as e:
        logger.error(f"Readiness check failed: {e}")
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {"status": "not_ready", "database": f"error: {e}"}

    if settings_row is None:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {"status": "not_ready", "database": "connected", "settings": "missing"}

    return {"status": "ready", "database": "connected", "settings": "present"}


@router.get("/live")
async def liveness_check():
    """
    Liveness check.

    Returns 200 if the process is alive.
    """
    return {"status": "alive"}
