"""
Storage contracts for the rating core.

Both stores are exposed twice by a RatingStorage backend: directly, for
reads and bootstrap writes, and through a StorageTransaction, which binds
them to one atomic unit so a rating write and its aggregate delta commit or
roll back together.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, AsyncContextManager, Dict, List, Optional

from rating_service.models.rating import EntityAggregate, RatingRecord


class RatingRepository(ABC):
    """Keyed storage of individual ratings by (entity_id, rater_id)"""

    @abstractmethod
    async def get(self, entity_id: str, rater_id: str) -> Optional[RatingRecord]:
        ...

    @abstractmethod
    async def upsert(self, record: RatingRecord) -> Optional[int]:
        """Insert or replace the record; return the replaced value, or None if it was inserted"""

    @abstractmethod
    async def delete(self, entity_id: str, rater_id: str) -> Optional[int]:
        """Delete the record; return its value, or None if there was nothing to delete"""

    @abstractmethod
    async def list_by_entity(self, entity_id: str) -> List[RatingRecord]:
        ...


class AggregateRepository(ABC):
    """Per-entity running sum and count"""

    @abstractmethod
    async def get(self, entity_id: str) -> Optional[EntityAggregate]:
        ...

    @abstractmethod
    async def exists(self, entity_id: str) -> bool:
        ...

    @abstractmethod
    async def apply_delta(self, entity_id: str, sum_delta: int, count_delta: int) -> EntityAggregate:
        """
        Atomically add the delta and return the aggregate after it.

        Raises:
            UnknownEntityError: entity is not registered
            InternalInconsistencyError: rating_count would drop below zero
        """

    @abstractmethod
    async def list_all(self) -> List[EntityAggregate]:
        ...

    @abstractmethod
    async def register(self, entity_id: str, info: Optional[Dict[str, Any]] = None) -> bool:
        """Create the entity with an empty aggregate; return False if it already existed"""


@dataclass
class StorageTransaction:
    """Both stores bound to a single atomic unit of work"""
    ratings: RatingRepository
    aggregates: AggregateRepository


class RatingStorage(ABC):
    """A storage backend holding ratings and aggregates"""

    ratings: RatingRepository
    aggregates: AggregateRepository

    @abstractmethod
    def transaction(self) -> AsyncContextManager[StorageTransaction]:
        """
        Open a unit of work. Leaving the block normally commits it; leaving it
        with an exception discards every write made through it.
        """

    @abstractmethod
    async def ping(self) -> Dict[str, Any]:
        """Verify the backend is reachable and describe it"""

    async def close(self) -> None:
        return None
