"""Health check and service banner endpoints."""

from datetime import UTC, datetime
from typing import Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_db
from app.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["health"])

APP_VERSION = "1.0.0"


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: Literal["ok", "degraded", "unhealthy"]
    timestamp: datetime
    environment: str
    database: Literal["connected", "disconnected"] | None = None


class ServiceInfo(BaseModel):
    """Root endpoint banner."""

    message: str
    status: Literal["running"]
    version: str


@router.get("/", response_model=ServiceInfo, include_in_schema=False)
async def service_info() -> ServiceInfo:
    """Identify the service."""
    return ServiceInfo(
        message=f"{get_settings().app_name} API",
        status="running",
        version=APP_VERSION,
    )


@router.get("/health", response_model=HealthResponse)
@router.get("/api/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic liveness check; never touches the database.

    Returns:
        Health status response.
    """
    logger.debug("health.check_started")
    return HealthResponse(
        status="ok",
        timestamp=datetime.now(UTC),
        environment=get_settings().app_env,
    )


@router.get("/health/ready", response_model=HealthResponse)
async def readiness_check(
    db: AsyncSession = Depends(get_db),
) -> HealthResponse:
    """Readiness check including database connectivity.

    Args:
        db: Database session dependency.

    Returns:
        Health status with database state.
    """
    logger.debug("health.readiness_check_started")
    environment = get_settings().app_env

    try:
        await db.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.error(
            "health.database_disconnected",
            error=str(e),
            error_type=type(e).__name__,
        )
        return HealthResponse(
            status="unhealthy",
            timestamp=datetime.now(UTC),
            environment=environment,
            database="disconnected",
        )

    logger.info("health.database_connected")
    return HealthResponse(
        status="ok",
        timestamp=datetime.now(UTC),
        environment=environment,
        database="connected",
    )
