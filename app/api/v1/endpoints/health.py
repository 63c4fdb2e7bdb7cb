"""Health check endpoints."""

from fastapi import APIRouter, status

from app.config import settings
from app.core.redis_client import check_redis_connection
from app.database import check_database_connection
from app.schemas.base import CamelModel

router = APIRouter()


def _state(healthy: bool) -> str:
    return "healthy" if healthy else "unhealthy"


class HealthResponse(CamelModel):
    """Liveness response."""

    status: str
    service: str
    version: str
    environment: str


class DetailedHealthResponse(HealthResponse):
    """Readiness response with dependency checks."""

    database: str
    redis: str
    rate_limit_backend: str


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
)
async def health_check() -> HealthResponse:
    """
    Report that the process is up.

    Returns:
        Service name, version and environment
    """
    return HealthResponse(
        status="healthy",
        service=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )


@router.get(
    "/health/detailed",
    response_model=DetailedHealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Detailed health check",
)
async def detailed_health_check() -> DetailedHealthResponse:
    """
    Check PostgreSQL and Redis.

    Redis only matters when it backs the rate limiter; otherwise its state is
    reported but does not degrade the service.

    Returns:
        Health status including dependencies
    """
    db_healthy = await check_database_connection()
    redis_healthy = await check_redis_connection()
    redis_required = settings.rate_limit_backend == "redis"

    healthy = db_healthy and (redis_healthy or not redis_required)
    return DetailedHealthResponse(
        status="healthy" if healthy else "degraded",
        service=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
        database=_state(db_healthy),
        redis=_state(redis_healthy),
        rate_limit_backend=settings.rate_limit_backend,
    )


@router.get("/ping", status_code=status.HTTP_200_OK, summary="Simple ping")
async def ping() -> dict[str, str]:
    return {"message": "pong"}
