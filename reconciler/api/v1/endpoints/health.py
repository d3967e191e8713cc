"""
Health check endpoints
"""

from typing import Any
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text

from reconciler.core.database import get_session
from reconciler.core.redis import get_redis
from reconciler.config import settings

router = APIRouter()


@router.get("/live")
async def liveness() -> Any:
    """
    Kubernetes liveness probe
    """
    return {"status": "alive", "service": "payment-reconciler"}


@router.get("/ready")
async def readiness(
    db: AsyncSession = Depends(get_session),
) -> Any:
    """
    Kubernetes readiness probe - checks all dependencies
    """
    checks = {
        "database": False,
        "redis": not settings.WEBHOOK_LOCK_ENABLED,
        "api": True
    }

    try:
        result = await db.execute(text("SELECT 1"))
        checks["database"] = result.scalar() == 1
    except Exception:
        pass

    if settings.WEBHOOK_LOCK_ENABLED:
        try:
            redis_client = await get_redis()
            await redis_client.ping()
            checks["redis"] = True
        except Exception:
            pass

    all_healthy = all(checks.values())

    return {
        "status": "ready" if all_healthy else "not ready",
        "checks": checks,
        "version": settings.APP_VERSION
    }
