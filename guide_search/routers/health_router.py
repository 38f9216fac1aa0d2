"""
Health check router.

Provides liveness and readiness probes.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..config import settings
from ..dependencies import current_search_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["health"])

SERVICE_VERSION = "1.0.0"


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    timestamp: str
    service: str = settings.SERVICE_NAME
    version: str = SERVICE_VERSION


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    ready: bool
    checks: dict
    timestamp: str


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
    description="Basic health check endpoint - returns 200 if service is running",
)
async def health_check():
    """
    Basic health check.

    Always returns 200 OK if the service is running.
    """
    return HealthResponse(status="healthy", timestamp=_now())


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="Check if the search service is initialized and a catalog is loaded",
)
async def readiness_check():
    """
    Readiness check.

    Returns 200 when the search service exists and holds a catalog,
    503 otherwise.
    """
    service = current_search_service()
    checks = {
        "search_service": "healthy" if service is not None else "unavailable",
        "catalog": (
            "healthy" if service is not None and service.catalog is not None else "unavailable"
        ),
    }
    ready = all(check == "healthy" for check in checks.values())
    response = ReadinessResponse(ready=ready, checks=checks, timestamp=_now())

    if not ready:
        logger.warning(f"Readiness check failed: {checks}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=response.model_dump(),
        )
    return response
