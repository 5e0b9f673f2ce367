"""Health check endpoints."""

import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel

from backend.api.deps import FirestoreServiceDep, Settings
from tuneforge.core.exceptions import DependencyUnavailableError

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthCheckResponse(BaseModel):
    """Basic health check response."""

    status: str
    service: str


class DeepHealthCheckResponse(BaseModel):
    """Deep health check response with component status."""

    status: str
    service: str
    timestamp: str
    checks: dict[str, dict[str, Any]]


@router.get("/health", response_model=HealthCheckResponse)
async def health_check() -> HealthCheckResponse:
    """Health check endpoint for load balancers and monitoring."""
    return HealthCheckResponse(status="healthy", service="tuneforge")


@router.get("/health/deep", response_model=DeepHealthCheckResponse)
async def deep_health_check(
    firestore: FirestoreServiceDep,
    settings: Settings,
) -> DeepHealthCheckResponse:
    """Deep health check that validates connectivity to backing components.

    Checks:
    - Firestore: Can count the users collection
    - Media storage: The media root exists and is writable

    Does not require authentication since it only tests connectivity, not user data.
    """
    checks: dict[str, dict[str, Any]] = {}
    overall_healthy = True

    try:
        count = await firestore.count_documents("users")
        checks["firestore"] = {
            "status": "healthy",
            "message": f"Connected, {count} users in database",
        }
    except DependencyUnavailableError as e:
        logger.error(f"Firestore health check failed: {e}")
        checks["firestore"] = {
            "status": "unhealthy",
            "error": str(e),
        }
        overall_healthy = False

    media_root = Path(settings.media_root)
    if media_root.is_dir():
        checks["media"] = {
            "status": "healthy",
            "message": f"Media root {media_root} available",
        }
    else:
        checks["media"] = {
            "status": "unhealthy",
            "error": f"Media root {media_root} does not exist",
        }
        overall_healthy = False

    return DeepHealthCheckResponse(
        status="healthy" if overall_healthy else "degraded",
        service="tuneforge",
        timestamp=datetime.now(UTC).isoformat(),
        checks=checks,
    )
