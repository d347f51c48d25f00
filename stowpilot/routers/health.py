"""
Liveness and dependency checks for the load balancer and uptime monitors.
Mounted at the root, outside /api, and never authenticated.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from redis.exceptions import RedisError
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from stowpilot.core.config import settings
from stowpilot.core.database import get_db
from stowpilot.core.redis import get_redis
from stowpilot.models.profile import Profile

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

SERVICE = "stowpilot-api"


@router.get("/health")
async def health():
    return {"status": "ok", "service": SERVICE, "environment": settings.environment}


@router.get("/health/db")
async def health_db(db: AsyncSession = Depends(get_db)):
    # reading a real table also catches a database that was never migrated
    try:
        await db.scalar(select(func.count()).select_from(Profile))
    except SQLAlchemyError as exc:
        logger.error("Database health check failed: %s", exc)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database unavailable")
    return {"status": "ok", "database": "connected"}


@router.get("/health/redis")
async def health_redis():
    try:
        await get_redis().ping()
    except RedisError as exc:
        logger.error("Redis health check failed: %s", exc)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Redis unavailable")
    return {"status": "ok", "redis": "connected"}
