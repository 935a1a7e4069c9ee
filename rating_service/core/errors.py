"""
Error handling utilities following FastAPI best practices

ErrorResponse is the base of every error the rating core raises. Each
subclass carries the HTTP status the gateway answers with, so the API layer
needs no per-error mapping.
"""

import traceback
from typing import Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from rating_service.core.config import config
from rating_service.core.logger import logger


class ErrorResponse(Exception):
    """Custom exception for application errors"""

    def __init__(self, message: str, status_code: int = 400, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class InvalidRatingError(ErrorResponse):
    """Rating value outside the configured range; raised before any mutation"""

    def __init__(self, value, min_value: int, max_value: int):
        super().__init__(
            f"Rating must be an integer between {min_value} and {max_value}",
            status_code=422,
            details={"value": value, "min": min_value, "max": max_value},
        )


class UnknownEntityError(ErrorResponse):
    """Target entity has not been registered"""

    def __init__(self, entity_id: str):
        super().__init__(
            "Entity not found",
            status_code=404,
            details={"entity_id": entity_id},
        )


class RatingNotFoundError(ErrorResponse):
    """No rating exists for the (entity, rater) pair"""

    def __init__(self, entity_id: str, rater_id: str):
        super().__init__(
            "Rating not found",
            status_code=404,
            details={"entity_id": entity_id, "rater_id": rater_id},
        )


class ConflictError(ErrorResponse):
    """Transient concurrency failure; retried by the engine before surfacing"""

    def __init__(self, message: str = "Concurrent update conflict, please retry", details: dict = None):
        super().__init__(message, status_code=503, details=details)


class InternalInconsistencyError(ErrorResponse):
    """The sum/count invariant was observed broken. Never retried."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=500, details=details)


class StorageError(ErrorResponse):
    """Storage backend unavailable or failed"""

    def __init__(self, message: str = "Database error", details: dict = None):
        super().__init__(message, status_code=503, details=details)


class ErrorResponseModel(BaseModel):
    """Pydantic model for error responses"""
    error: str
    details: Optional[dict] = None


async def error_response_handler(request: Request, exc: ErrorResponse):
    """Handler for custom ErrorResponse exceptions"""
    metadata = {
        "event": "error_response",
        "status_code": exc.status_code,
        "error_type": type(exc).__name__,
        "url": str(request.url),
        "method": request.method,
        **exc.details,
    }

    if config.environment == "development":
        metadata["traceback"] = "".join(traceback.format_exception(exc))

    if exc.status_code >= 500:
        logger.error(f"Error: {exc.message}", metadata=metadata)
    else:
        logger.warning(f"Error: {exc.message}", metadata=metadata)

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "details": exc.details}
    )


async def http_exception_handler(request: Request, exc: HTTPException):
    """Handler for FastAPI HTTPException"""
    logger.error(
        f"HTTPException: {exc.detail}",
        metadata={
            "event": "http_exception",
            "status_code": exc.status_code,
            "url": str(request.url),
            "method": request.method,
        }
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail}
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handler for request body and path validation failures"""
    logger.warning(
        "Validation error",
        metadata={"event": "validation_error", "url": str(request.url), "errors": exc.errors()}
    )

    return JSONResponse(
        status_code=422,
        content={"error": "Validation error", "details": jsonable_errors(exc)}
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may hold exception instances that JSONResponse cannot encode
    return [
        {key: value for key, value in error.items() if key != "ctx"}
        for error in exc.errors()
    ]
