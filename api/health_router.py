"""
Health and Monitoring Router.

Public, unauthenticated endpoints for liveness probes and uptime checks.

Endpoints Provided:
- `/healthcheck`: static liveness answer; never touches the database.
- `/monitoring/ping`: connectivity test.
- `/monitoring/detailed`: runs a trivial query and reports `degraded` when the
  database cannot be reached.
"""

from fastapi import APIRouter
from datetime import datetime, timezone
from typing import Dict, Any

from core.logging_config import get_logger
from core.database import get_database_info

logger = get_logger(__name__)

SERVICE_NAME = "VidShare API"
VERSION = "1.0.0"

health_router = APIRouter(tags=["Health & Monitoring"])
monitoring_router = APIRouter(prefix="/monitoring", tags=["Health & Monitoring"])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@health_router.get("/healthcheck")
async def health_check() -> Dict[str, Any]:
    """
    Basic health check endpoint (no authentication required)

    Returns:
        Dict with status, timestamp, and version info
    """
    logger.debug("Health check requested")

    return {
        "status": "healthy",
        "timestamp": _now(),
        "version": VERSION,
        "service": SERVICE_NAME,
    }


@monitoring_router.get("/ping")
async def ping() -> Dict[str, str]:
    """Simple ping endpoint for connectivity testing"""
    return {"message": "pong", "timestamp": _now(), "version": VERSION}


@monitoring_router.get("/detailed")
async def detailed_health_check() -> Dict[str, Any]:
    """Detailed health check with database status"""
    logger.info("Detailed health check requested")

    db_info = await get_database_info()
    healthy = db_info.get("connection_healthy", False)

    return {
        "status": "healthy" if healthy else "degraded",
        "timestamp": _now(),
        "version": VERSION,
        "service": SERVICE_NAME,
        "components": {
            "database": {
                "status": "healthy" if healthy else "unhealthy",
                "info": db_info,
            }
        },
    }
