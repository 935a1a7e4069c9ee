"""
Core module initialization
"""

from .config import config
from .logger import logger
from .errors import (
    ErrorResponse,
    ErrorResponseModel,
    InvalidRatingError,
    UnknownEntityError,
    RatingNotFoundError,
    ConflictError,
    InternalInconsistencyError,
    StorageError,
)

__all__ = [
    "config",
    "logger",
    "ErrorResponse",
    "ErrorResponseModel",
    "InvalidRatingError",
    "UnknownEntityError",
    "RatingNotFoundError",
    "ConflictError",
    "InternalInconsistencyError",
    "StorageError",
]
