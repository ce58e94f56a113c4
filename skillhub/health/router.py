"""Health check endpoints."""

from fastapi import APIRouter, Request

from skillhub.config import get_settings
from skillhub.core.database import AsyncCassandraConnection
from skillhub.core.redis import get_redis


router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
async def liveness() -> dict[str, str]:
    """Liveness probe - the process is up."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness(request: Request) -> dict[str, str | bool]:
    """Readiness probe - reports which backing services are connected."""
    settings = get_settings()
    database = (
        getattr(request.app.state, "cassandra_session", None) is not None
        and AsyncCassandraConnection.is_connected()
    )
    return {
        "status": "ready" if database else "degraded",
        "environment": settings.environment,
        "database": database,
        "redis": get_redis() is not None,
        "assistant": settings.assistant_configured,
    }


@router.get("")
async def health() -> dict[str, str]:
    """General health check endpoint."""
    settings = get_settings()
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }
