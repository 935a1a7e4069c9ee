"""
Aggregation Engine

Keeps each entity's (rating_sum, rating_count) equal to the sum and number of
its live ratings. Every mutation writes the rating record and applies the
matching delta inside one storage transaction, so an average is always
rating_sum / rating_count and never needs a scan of the rating history.

    first rating by a rater     (+value,          +1)
    replaced rating             (+value - v_old,   0)
    removed rating              (-v_old,          -1)
"""

import asyncio
from typing import Awaitable, Callable

from rating_service.core.errors import (
    ConflictError,
    InternalInconsistencyError,
    InvalidRatingError,
    RatingNotFoundError,
    UnknownEntityError,
)
from rating_service.core.logger import logger
from rating_service.models.rating import EntityAggregate, RatingChange, RatingRecord
from rating_service.repositories.base import RatingStorage, StorageTransaction
from rating_service.services.locks import EntityLockRegistry


class AggregationEngine:
    """Sole write path for ratings and their aggregates"""

    def __init__(
        self,
        storage: RatingStorage,
        locks: EntityLockRegistry,
        min_value: int = 1,
        max_value: int = 5,
        max_conflict_retries: int = 3,
        retry_backoff_ms: int = 10,
    ):
        self.storage = storage
        self.locks = locks
        self.min_value = min_value
        self.max_value = max_value
        self.max_conflict_retries = max_conflict_retries
        self.retry_backoff_ms = retry_backoff_ms

    async def submit_rating(self, entity_id: str, rater_id: str, value: int) -> RatingChange:
        """
        Create or replace the rater's rating of an entity.

        Raises:
            InvalidRatingError: value is not an integer in the configured range
            UnknownEntityError: entity is not registered
            ConflictError: storage conflicts persisted past the retry bound
        """
        self._validate_value(value)

        async def step(tx: StorageTransaction) -> RatingChange:
            if not await tx.aggregates.exists(entity_id):
                raise UnknownEntityError(entity_id)

            previous = await tx.ratings.upsert(
                RatingRecord(entity_id=entity_id, rater_id=rater_id, value=value)
            )
            if previous is None:
                sum_delta, count_delta = value, 1
            else:
                sum_delta, count_delta = value - previous, 0

            if sum_delta == 0 and count_delta == 0:
                aggregate = await tx.aggregates.get(entity_id)
            else:
                aggregate = await tx.aggregates.apply_delta(entity_id, sum_delta, count_delta)
            self._check_consistency(aggregate)

            return RatingChange(
                entity_id=entity_id,
                rater_id=rater_id,
                previous_value=previous,
                value=value,
                sum_delta=sum_delta,
                count_delta=count_delta,
                aggregate=aggregate,
            )

        change = await self._mutate("submit_rating", entity_id, step)
        self._log_change("rating_submitted", change)
        return change

    async def remove_rating(self, entity_id: str, rater_id: str) -> RatingChange:
        """
        Delete the rater's rating of an entity.

        Raises:
            UnknownEntityError: entity is not registered
            RatingNotFoundError: the rater has no rating for the entity
            InternalInconsistencyError: the aggregate count would go negative
        """
        async def step(tx: StorageTransaction) -> RatingChange:
            if not await tx.aggregates.exists(entity_id):
                raise UnknownEntityError(entity_id)

            previous = await tx.ratings.delete(entity_id, rater_id)
            if previous is None:
                raise RatingNotFoundError(entity_id, rater_id)

            aggregate = await tx.aggregates.apply_delta(entity_id, -previous, -1)
            self._check_consistency(aggregate)

            return RatingChange(
                entity_id=entity_id,
                rater_id=rater_id,
                previous_value=previous,
                value=None,
                sum_delta=-previous,
                count_delta=-1,
                aggregate=aggregate,
            )

        change = await self._mutate("remove_rating", entity_id, step)
        self._log_change("rating_removed", change)
        return change

    async def _mutate(
        self,
        operation: str,
        entity_id: str,
        step: Callable[[StorageTransaction], Awaitable[RatingChange]],
    ) -> RatingChange:
        """Run one mutation step in a transaction under the entity's lock, retrying conflicts"""
        async with self.locks.hold(entity_id):
            attempt = 0
            while True:
                attempt += 1
                try:
                    async with self.storage.transaction() as tx:
                        return await step(tx)
                except ConflictError as e:
                    if attempt > self.max_conflict_retries:
                        logger.error(
                            f"{operation} gave up after {attempt} attempts",
                            error=e,
                            metadata={"event": "rating_conflict_exhausted", "entity_id": entity_id}
                        )
                        raise
                    logger.warning(
                        f"{operation} conflicted, retrying",
                        metadata={
                            "event": "rating_conflict_retry",
                            "entity_id": entity_id,
                            "attempt": attempt,
                        }
                    )
                    await asyncio.sleep(self.retry_backoff_ms * attempt / 1000)
                except InternalInconsistencyError as e:
                    logger.critical(
                        f"Aggregate invariant violated during {operation}",
                        error=e,
                        metadata={"event": "aggregate_inconsistency", "entity_id": entity_id, **e.details}
                    )
                    raise

    def _validate_value(self, value):
        # bool is an int subclass but never a rating
        if (
            isinstance(value, bool)
            or not isinstance(value, int)
            or not self.min_value <= value <= self.max_value
        ):
            raise InvalidRatingError(value, self.min_value, self.max_value)

    def _check_consistency(self, aggregate: EntityAggregate):
        reason = aggregate.inconsistency(self.min_value, self.max_value)
        if reason:
            raise InternalInconsistencyError(
                f"Aggregate for entity {aggregate.entity_id} is inconsistent: {reason}",
                details={
                    "entity_id": aggregate.entity_id,
                    "rating_sum": aggregate.rating_sum,
                    "rating_count": aggregate.rating_count,
                },
            )

    @staticmethod
    def _log_change(event: str, change: RatingChange):
        logger.info(
            f"Updated rating aggregate for entity {change.entity_id}",
            metadata={
                "event": event,
                "entity_id": change.entity_id,
                "rater_id": change.rater_id,
                "previous_value": change.previous_value,
                "value": change.value,
                "sum_delta": change.sum_delta,
                "count_delta": change.count_delta,
                "rating_sum": change.aggregate.rating_sum,
                "rating_count": change.aggregate.rating_count,
            }
        )
