"""
Dependency injection for the aggregation engine and query service
"""

from fastapi import Depends

from rating_service.core.config import config
from rating_service.db.storage import get_storage
from rating_service.repositories.base import RatingStorage
from rating_service.services.aggregation import AggregationEngine
from rating_service.services.locks import EntityLockRegistry
from rating_service.services.query import QueryService

# Shared by every request so concurrent mutations of one entity serialize
entity_locks = EntityLockRegistry(timeout_seconds=config.lock_timeout_seconds)


async def get_rating_storage() -> RatingStorage:
    """Get storage backend instance"""
    return await get_storage()


async def get_aggregation_engine(
    storage: RatingStorage = Depends(get_rating_storage)
) -> AggregationEngine:
    """Get aggregation engine instance"""
    return AggregationEngine(
        storage,
        entity_locks,
        min_value=config.rating_min_value,
        max_value=config.rating_max_value,
        max_conflict_retries=config.max_conflict_retries,
        retry_backoff_ms=config.conflict_retry_backoff_ms,
    )


async def get_query_service(
    storage: RatingStorage = Depends(get_rating_storage)
) -> QueryService:
    """Get query service instance"""
    return QueryService(
        storage,
        min_value=config.rating_min_value,
        max_value=config.rating_max_value,
    )
