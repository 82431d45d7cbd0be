"""
Health check endpoints.

Provides endpoints for monitoring application health and readiness.
"""

from fastapi import APIRouter
from pydantic import BaseModel

from pyusers.api.deps import AppDatabase, AppSettings
from pyusers.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    environment: str
    version: str


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    status: str
    database: str


class InfoResponse(BaseModel):
    """Application info response model."""

    name: str
    version: str
    environment: str


@router.get("/health", response_model=HealthResponse)
async def health_check(settings: AppSettings) -> HealthResponse:
    """Basic liveness information."""
    return HealthResponse(
        status="healthy",
        environment=settings.environment,
        version=settings.app_version,
    )


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check(database: AppDatabase) -> ReadinessResponse:
    """Check that the database answers queries."""
    try:
        await database.ping()
        db_status = "connected"
    except Exception as e:
        logger.warning(f"Database readiness check failed: {e}")
        db_status = "disconnected"

    return ReadinessResponse(
        status="ready" if db_status == "connected" else "not_ready",
        database=db_status,
    )


@router.get("/info", response_model=InfoResponse)
async def app_info(settings: AppSettings) -> InfoResponse:
    """Application name and version."""
    return InfoResponse(
        name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )
