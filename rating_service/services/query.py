"""
Read-only queries over aggregates and raw ratings
"""

from typing import List

from rating_service.core.errors import InternalInconsistencyError, UnknownEntityError
from rating_service.core.logger import logger
from rating_service.models.rating import EntityAggregate
from rating_service.repositories.base import RatingStorage
from rating_service.schemas.rating import EntityResponse, RatingResponse


class QueryService:
    """Service layer for rating reads; never mutates storage"""

    def __init__(self, storage: RatingStorage, min_value: int = 1, max_value: int = 5):
        self.storage = storage
        self.min_value = min_value
        self.max_value = max_value

    async def list_entities(self) -> List[EntityResponse]:
        """
        All entities with their average rating, from aggregates only.

        An inconsistent aggregate is logged at critical level by _to_response
        and left out, so the remaining entities are still served.
        """
        aggregates = await self.storage.aggregates.list_all()

        logger.info(
            f"Fetched {len(aggregates)} entities",
            metadata={"event": "list_entities", "count": len(aggregates)}
        )

        entities = []
        for aggregate in aggregates:
            try:
                entities.append(self._to_response(aggregate))
            except InternalInconsistencyError:
                continue
        return entities

    async def get_entity(self, entity_id: str) -> EntityResponse:
        aggregate = await self.storage.aggregates.get(entity_id)
        if aggregate is None:
            raise UnknownEntityError(entity_id)
        return self._to_response(aggregate)

    async def list_ratings(self, entity_id: str) -> List[RatingResponse]:
        """Raw ratings of one entity; an unregistered entity has none"""
        records = await self.storage.ratings.list_by_entity(entity_id)

        logger.info(
            f"Fetched {len(records)} ratings for entity {entity_id}",
            metadata={"event": "list_ratings", "entity_id": entity_id, "count": len(records)}
        )

        return [RatingResponse(rater_id=record.rater_id, value=record.value) for record in records]

    def _to_response(self, aggregate: EntityAggregate) -> EntityResponse:
        reason = aggregate.inconsistency(self.min_value, self.max_value)
        if reason:
            details = {
                "entity_id": aggregate.entity_id,
                "rating_sum": aggregate.rating_sum,
                "rating_count": aggregate.rating_count,
            }
            logger.critical(
                f"Inconsistent aggregate read for entity {aggregate.entity_id}: {reason}",
                metadata={"event": "aggregate_inconsistency", **details}
            )
            raise InternalInconsistencyError(
                f"Aggregate for entity {aggregate.entity_id} is inconsistent: {reason}",
                details=details,
            )

        return EntityResponse(
            entity_id=aggregate.entity_id,
            info=aggregate.info,
            rating_count=aggregate.rating_count,
            average_rating=aggregate.average_rating,
        )
