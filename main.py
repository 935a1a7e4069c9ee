"""
FastAPI Application - Rating Service
Following FastAPI best practices with proper separation of concerns
"""

# Load environment variables from .env file FIRST before any other imports
from dotenv import load_dotenv
load_dotenv()

from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError

from rating_service.core.config import config
from rating_service.core.errors import (
    ErrorResponse,
    error_response_handler,
    http_exception_handler,
    validation_exception_handler,
)
from rating_service.core.logger import logger
from rating_service.core.telemetry import instrument_app
from rating_service.db.storage import bootstrap_entities, close_storage, connect_storage
from rating_service.api import entities, health, home, operational
from rating_service.middleware import CorrelationIdMiddleware


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # Startup
    logger.info("Starting Rating Service...")
    storage = await connect_storage()

    if config.bootstrap_entity_count:
        await bootstrap_entities(storage, config.bootstrap_entity_count)

    logger.info(
        "Rating Service started successfully",
        metadata={
            "service_name": config.service_name,
            "version": config.service_version,
            "environment": config.environment,
            "port": config.port,
            "storage_backend": config.storage_backend,
        }
    )

    yield

    # Shutdown
    logger.info("Shutting down Rating Service...")
    await close_storage()


# Create FastAPI application with lifespan management
app = FastAPI(
    title="Rating Service",
    description="Running average ratings maintained incrementally per entity",
    version=config.service_version,
    lifespan=lifespan
)

instrument_app(app)

# Configure error handlers
app.add_exception_handler(ErrorResponse, error_response_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)

app.add_middleware(CorrelationIdMiddleware)

# Include API routers
app.include_router(home.router, tags=["home"])
app.include_router(health.router, prefix="/api", tags=["health"])
app.include_router(operational.router, prefix="/api", tags=["operational"])
app.include_router(entities.router, prefix="/api/entities", tags=["entities"])


if __name__ == "__main__":
    import uvicorn

    logger.info(
        f"Starting {config.service_name} on port {config.port}",
        metadata={
            "service_name": config.service_name,
            "version": config.service_version,
            "environment": config.environment,
            "port": config.port
        }
    )

    uvicorn.run(
        "main:app",
        host=config.host,
        port=config.port,
        reload=config.environment == "development"
    )
