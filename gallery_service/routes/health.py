"""
Health Routes
Service liveness and database connectivity checks
"""

from datetime import datetime, timezone
import logging
import time

from fastapi import APIRouter

from gallery_service.utils.dependencies import Services
from gallery_service.utils.exceptions import ServiceUnavailableError

logger = logging.getLogger(__name__)

router = APIRouter()

STARTED_AT = time.monotonic()


@router.get("/health")
async def health_check(services: Services):
    """Service health check"""
    return {
        "status": "healthy",
        "service": services.app_config.service_name,
        "version": services.app_config.service_version,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.monotonic() - STARTED_AT, 3),
    }


@router.get("/health/database")
async def database_health_check(services: Services):
    """Database connection health check"""
    try:
        await services.database.ping()
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        raise ServiceUnavailableError("Database connection failed") from e

    return {
        "status": "healthy",
        "database": "connected",
    }
