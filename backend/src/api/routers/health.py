"""Health check endpoints."""
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.redis import get_redis_client
from db.session import get_async_session
from schemas.envelope import ApiResponse


logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    database: str
    redis: str


@router.get("/health", response_model=ApiResponse[HealthResponse])
async def health_check(
    db: AsyncSession = Depends(get_async_session),
) -> ApiResponse[HealthResponse]:
    """
    Check application, database, and Redis health.

    Redis being down degrades the service (no logins, uncached profiles) but
    is reported rather than failing the check.
    """
    db_status = "healthy"
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Database health check failed")
        db_status = "unhealthy"

    redis_client = get_redis_client()
    if redis_client is None or not redis_client.is_connected:
        redis_status = "unavailable"
    elif await redis_client.ping():
        redis_status = "healthy"
    else:
        redis_status = "unhealthy"

    healthy = db_status == "healthy" and redis_status == "healthy"
    return ApiResponse(
        data=HealthResponse(
            status="healthy" if healthy else "degraded",
            database=db_status,
            redis=redis_status,
        ),
    )
