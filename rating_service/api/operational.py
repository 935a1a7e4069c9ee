"""
Operational and monitoring API endpoints
Provides process metrics for monitoring tools
"""

import os
import sys
import time
from datetime import datetime

import psutil
from fastapi import APIRouter, Request

from rating_service.api.health import start_time
from rating_service.core.config import config
from rating_service.core.logger import logger
from rating_service.dependencies.ratings import entity_locks

router = APIRouter()


@router.get("/metrics")
def get_metrics(request: Request):
    """
    Get service metrics for monitoring.
    Used by Prometheus, monitoring tools, or APM systems.
    """
    process = psutil.Process()
    memory_info = process.memory_info()
    system_memory = psutil.virtual_memory()

    logger.debug(
        "Metrics endpoint called",
        metadata={"event": "metrics_requested", "memory_percent": system_memory.percent}
    )

    return {
        "service": config.service_name,
        "timestamp": datetime.now().isoformat(),
        "uptime_seconds": round(time.time() - start_time, 2),
        "process": {
            "pid": os.getpid(),
            "memory_rss_bytes": memory_info.rss,
            "memory_rss_mb": round(memory_info.rss / 1024 / 1024, 2),
            "cpu_percent": process.cpu_percent(),
        },
        "system": {
            "memory_total_bytes": system_memory.total,
            "memory_available_bytes": system_memory.available,
            "memory_used_percent": round(system_memory.percent, 2),
        },
        "ratings": {
            "storage_backend": config.storage_backend,
            "entities_with_mutations_in_flight": len(entity_locks),
        },
        "runtime": {
            "python_version": sys.version.split()[0],
            "platform": sys.platform,
        },
    }
