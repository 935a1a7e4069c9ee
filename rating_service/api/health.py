"""
Health API endpoints
"""

import time
from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from rating_service.core.config import config
from rating_service.core.errors import ErrorResponse
from rating_service.core.logger import logger
from rating_service.dependencies.ratings import get_rating_storage
from rating_service.repositories.base import RatingStorage

router = APIRouter()

# Track service start time
start_time = time.time()


@router.get("/health")
def health_check(request: Request):
    """Basic health check endpoint"""
    return {
        "status": "healthy",
        "service": config.service_name,
        "timestamp": datetime.now().isoformat(),
        "version": config.api_version,
    }


@router.get("/health/live")
def liveness_check(request: Request):
    """Liveness probe - check if the app is running"""
    return {
        "status": "alive",
        "service": config.service_name,
        "timestamp": datetime.now().isoformat(),
        "uptime": time.time() - start_time,
    }


@router.get("/health/ready")
async def readiness_check(
    request: Request,
    storage: RatingStorage = Depends(get_rating_storage),
):
    """Readiness probe - check if the storage backend can serve traffic"""
    check = await check_storage_health(storage)

    if check["status"] == "healthy":
        return {
            "status": "ready",
            "service": config.service_name,
            "timestamp": datetime.now().isoformat(),
            "checks": [check],
        }

    logger.warning(
        "Readiness check failed",
        metadata={"event": "readiness_check_failed", "error": check.get("error")}
    )
    return JSONResponse(
        status_code=503,
        content={
            "status": "not ready",
            "service": config.service_name,
            "timestamp": datetime.now().isoformat(),
            "checks": [check],
        },
    )


async def check_storage_health(storage: RatingStorage) -> Dict[str, Any]:
    """Ping the storage backend and time the round trip"""
    check_start = time.time()

    try:
        details = await storage.ping()
    except ErrorResponse as e:
        response_time_ms = (time.time() - check_start) * 1000
        return {
            "name": "storage",
            "status": "unhealthy",
            "error": e.message,
            "response_time_ms": round(response_time_ms, 2),
            "timestamp": datetime.now().isoformat(),
        }

    response_time_ms = (time.time() - check_start) * 1000
    logger.debug(
        "Storage health check passed",
        metadata={"event": "health_check_storage_success", "response_time_ms": response_time_ms}
    )
    return {
        "name": "storage",
        "status": "healthy",
        "response_time_ms": round(response_time_ms, 2),
        "timestamp": datetime.now().isoformat(),
        **details,
    }
