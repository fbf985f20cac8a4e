"""
Health check endpoints.

Reports the status of the database and the rate-limit counter store.
"""

import logging
from typing import Dict, Any
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from sqlalchemy import text
from datetime import datetime, timezone

from app.container import Container, get_container
from app.core.database import get_db

router = APIRouter(tags=["Health"])
logger = logging.getLogger(__name__)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check() -> Dict[str, str]:
    """
    Basic health check endpoint.

    Use this for simple uptime monitoring and load balancer health checks.
    """
    return {
        "status": "healthy",
        "timestamp": _timestamp()
    }


@router.get("/health/detailed", status_code=status.HTTP_200_OK)
def detailed_health_check(
    db: Session = Depends(get_db),
    container: Container = Depends(get_container),
) -> Dict[str, Any]:
    """
    Detailed health check with dependency status.

    Checks:
    - Database connectivity
    - Rate-limit store (Redis, or the in-process backend)
    """
    health_status = {
        "status": "healthy",
        "timestamp": _timestamp(),
        "checks": {}
    }

    try:
        db.execute(text("SELECT 1"))
        health_status["checks"]["database"] = {
            "status": "healthy",
            "message": "Database connection successful"
        }
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        health_status["status"] = "unhealthy"
        health_status["checks"]["database"] = {
            "status": "unhealthy",
            "message": f"Database error: {str(e)}"
        }

    backend = container.settings.RATE_LIMIT_BACKEND
    if container.rate_limiter.is_healthy():
        health_status["checks"]["rate_limiter"] = {
            "status": "healthy",
            "message": f"{backend} counter store reachable"
        }
    else:
        logger.error(f"Rate limiter store ({backend}) unreachable")
        health_status["status"] = "degraded"
        health_status["checks"]["rate_limiter"] = {
            "status": "unhealthy",
            "message": f"{backend} counter store unreachable, rate limits fail open"
        }

    return health_status
