"""
In-memory storage backend.

Committed state lives in plain dictionaries. A transaction stages its writes
in an overlay and folds them into the committed state in one synchronous step
at commit, so other tasks on the event loop never see half of a mutation.
"""

from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional, Tuple

from rating_service.core.errors import InternalInconsistencyError, UnknownEntityError
from rating_service.core.logger import logger
from rating_service.models.rating import EntityAggregate, RatingRecord, utc_now
from rating_service.repositories.base import (
    AggregateRepository,
    RatingRepository,
    RatingStorage,
    StorageTransaction,
)

_DELETED = None


class _Staging:
    """Writes made inside one open transaction"""

    def __init__(self):
        # (entity_id, rater_id) -> record, or _DELETED
        self.ratings: Dict[Tuple[str, str], Optional[RatingRecord]] = {}
        self.aggregates: Dict[str, EntityAggregate] = {}


class InMemoryRatingRepository(RatingRepository):

    def __init__(self, storage: "InMemoryRatingStorage", staging: Optional[_Staging] = None):
        self.storage = storage
        self.staging = staging

    async def get(self, entity_id: str, rater_id: str) -> Optional[RatingRecord]:
        key = (entity_id, rater_id)
        if self.staging is not None and key in self.staging.ratings:
            return self.staging.ratings[key]
        return self.storage._ratings.get(entity_id, {}).get(rater_id)

    async def upsert(self, record: RatingRecord) -> Optional[int]:
        existing = await self.get(record.entity_id, record.rater_id)
        if existing is not None:
            record = record.model_copy(update={"created_at": existing.created_at, "updated_at": utc_now()})
        self._write((record.entity_id, record.rater_id), record)
        return existing.value if existing is not None else None

    async def delete(self, entity_id: str, rater_id: str) -> Optional[int]:
        existing = await self.get(entity_id, rater_id)
        if existing is None:
            return None
        self._write((entity_id, rater_id), _DELETED)
        return existing.value

    async def list_by_entity(self, entity_id: str) -> List[RatingRecord]:
        committed = self.storage._ratings.get(entity_id, {})
        if self.staging is None:
            return list(committed.values())

        staged = {
            rater_id: record
            for (staged_entity, rater_id), record in self.staging.ratings.items()
            if staged_entity == entity_id
        }
        records = []
        for rater_id, record in committed.items():
            record = staged.pop(rater_id, record)
            if record is not _DELETED:
                records.append(record)
        records.extend(record for record in staged.values() if record is not _DELETED)
        return records

    def _write(self, key: Tuple[str, str], record: Optional[RatingRecord]):
        if self.staging is not None:
            self.staging.ratings[key] = record
        else:
            self.storage._apply_rating(key, record)


class InMemoryAggregateRepository(AggregateRepository):

    def __init__(self, storage: "InMemoryRatingStorage", staging: Optional[_Staging] = None):
        self.storage = storage
        self.staging = staging

    async def get(self, entity_id: str) -> Optional[EntityAggregate]:
        if self.staging is not None and entity_id in self.staging.aggregates:
            return self.staging.aggregates[entity_id]
        return self.storage._aggregates.get(entity_id)

    async def exists(self, entity_id: str) -> bool:
        return await self.get(entity_id) is not None

    async def apply_delta(self, entity_id: str, sum_delta: int, count_delta: int) -> EntityAggregate:
        current = await self.get(entity_id)
        if current is None:
            raise UnknownEntityError(entity_id)
        if current.rating_count + count_delta < 0:
            raise InternalInconsistencyError(
                "rating_count would become negative",
                details={
                    "entity_id": entity_id,
                    "rating_count": current.rating_count,
                    "count_delta": count_delta,
                },
            )

        updated = current.with_delta(sum_delta, count_delta)
        if self.staging is not None:
            self.staging.aggregates[entity_id] = updated
        else:
            self.storage._aggregates[entity_id] = updated
        return updated

    async def list_all(self) -> List[EntityAggregate]:
        return list(self.storage._aggregates.values())

    async def register(self, entity_id: str, info: Optional[Dict[str, Any]] = None) -> bool:
        if entity_id in self.storage._aggregates:
            return False
        self.storage._aggregates[entity_id] = EntityAggregate(entity_id=entity_id, info=info or {})
        return True


class InMemoryRatingStorage(RatingStorage):
    """Process-local backend for development and tests"""

    def __init__(self):
        # entity_id -> rater_id -> record; dicts keep insertion order
        self._ratings: Dict[str, Dict[str, RatingRecord]] = {}
        self._aggregates: Dict[str, EntityAggregate] = {}
        self.ratings = InMemoryRatingRepository(self)
        self.aggregates = InMemoryAggregateRepository(self)

    @asynccontextmanager
    async def transaction(self):
        staging = _Staging()
        yield StorageTransaction(
            ratings=InMemoryRatingRepository(self, staging),
            aggregates=InMemoryAggregateRepository(self, staging),
        )
        self._commit(staging)

    def _commit(self, staging: _Staging):
        for key, record in staging.ratings.items():
            self._apply_rating(key, record)
        self._aggregates.update(staging.aggregates)

    def _apply_rating(self, key: Tuple[str, str], record: Optional[RatingRecord]):
        entity_id, rater_id = key
        if record is _DELETED:
            entity_ratings = self._ratings.get(entity_id)
            if entity_ratings is not None:
                entity_ratings.pop(rater_id, None)
                if not entity_ratings:
                    del self._ratings[entity_id]
        else:
            self._ratings.setdefault(entity_id, {})[rater_id] = record

    async def ping(self) -> Dict[str, Any]:
        logger.debug("In-memory storage ping", metadata={"event": "storage_ping", "backend": "memory"})
        return {
            "backend": "memory",
            "entities": len(self._aggregates),
            "rated_entities": len(self._ratings),
        }
