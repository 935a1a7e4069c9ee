"""
Home/Root API endpoints
Service information endpoints
"""

from fastapi import APIRouter

from rating_service.core.config import config

router = APIRouter()


@router.get("/")
async def root():
    """
    Root endpoint - Service information.
    Returns basic service metadata and status.
    """
    return {
        "service": config.service_name,
        "version": config.service_version,
        "environment": config.environment,
        "message": "Rating Service is running",
        "status": "operational",
    }


@router.get("/version")
def get_version():
    """Get service version information"""
    return {
        "version": config.service_version,
        "api_version": config.api_version,
    }
