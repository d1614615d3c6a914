"""Health check endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from restock_service import __version__
from restock_service.api.dependencies import get_cache, get_store
from restock_service.config import Settings, get_settings
from restock_service.infrastructure.database.store import SubscriptionStore
from restock_service.infrastructure.redis import CacheService

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str
    environment: str
    timestamp: str


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    ready: bool
    checks: dict[str, bool]


@router.get("/health", response_model=HealthResponse)
async def health_check(settings: Settings = Depends(get_settings)) -> HealthResponse:
    """
    Basic health check endpoint.

    Returns the service status and version information.
    """
    return HealthResponse(
        status="healthy",
        version=__version__,
        environment=settings.app_env,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check(
    store: SubscriptionStore = Depends(get_store),
    cache: CacheService = Depends(get_cache),
) -> ReadinessResponse:
    """
    Readiness check endpoint.

    Only the database gates readiness; Redis is reported but optional
    because event dedupe degrades to a no-op without it.
    """
    checks = {
        "database": await store.ping(),
        "redis": await cache.health_check(),
    }
    return ReadinessResponse(ready=checks["database"], checks=checks)


@router.get("/health/live")
async def liveness_check() -> dict[str, str]:
    """Returns 200 if the service is running."""
    return {"status": "alive"}
