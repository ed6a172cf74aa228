"""Health check endpoints."""

from fastapi import APIRouter, Request

from rizhilu.config import get_settings


router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
async def liveness() -> dict[str, str]:
    """Liveness probe - checks if the application is running."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness(request: Request) -> dict[str, str | bool]:
    """Readiness probe - reports whether the database session is up."""
    settings = get_settings()
    connection = getattr(request.app.state, "cassandra", None)
    database = connection is not None and connection.is_connected()
    return {
        "status": "ready" if database else "degraded",
        "database": database,
        "environment": settings.environment,
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
