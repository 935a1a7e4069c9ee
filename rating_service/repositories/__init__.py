"""
Repository layer for data access.

Abstract contracts for the rating and aggregate stores plus the MongoDB and
in-memory backends implementing them.
"""

from rating_service.repositories.base import (
    AggregateRepository,
    RatingRepository,
    RatingStorage,
    StorageTransaction,
)
from rating_service.repositories.memory import InMemoryRatingStorage
from rating_service.repositories.mongo import MongoRatingStorage

__all__ = [
    "AggregateRepository",
    "RatingRepository",
    "RatingStorage",
    "StorageTransaction",
    "InMemoryRatingStorage",
    "MongoRatingStorage",
]
