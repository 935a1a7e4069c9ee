"""
Rating domain models: individual ratings and per-entity aggregates
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


def utc_now():
    """Helper function for Pydantic default_factory to get current UTC time"""
    return datetime.now(timezone.utc)


class RatingRecord(BaseModel):
    """One rater's current rating of one entity"""
    entity_id: str
    rater_id: str
    value: int
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class EntityAggregate(BaseModel):
    """
    Running sum and count of an entity's ratings.

    Instances are immutable so a reader always holds a (sum, count) pair
    taken from a single point in the delta sequence.
    """
    model_config = ConfigDict(frozen=True)

    entity_id: str
    rating_sum: int = 0
    rating_count: int = 0
    info: Dict[str, Any] = Field(default_factory=dict)

    @property
    def average_rating(self) -> Optional[float]:
        if self.rating_count == 0:
            return None
        return self.rating_sum / self.rating_count

    def with_delta(self, sum_delta: int, count_delta: int) -> "EntityAggregate":
        return self.model_copy(update={
            "rating_sum": self.rating_sum + sum_delta,
            "rating_count": self.rating_count + count_delta,
        })

    def inconsistency(self, min_value: int, max_value: int) -> Optional[str]:
        """
        Describe why this aggregate cannot be the sum/count of valid ratings,
        or return None when it can.
        """
        if self.rating_count < 0:
            return "rating_count is negative"
        if self.rating_count == 0 and self.rating_sum != 0:
            return "rating_sum is non-zero with no ratings"
        if not (self.rating_count * min_value <= self.rating_sum <= self.rating_count * max_value):
            return "rating_sum is outside the range allowed by rating_count"
        return None


class RatingChange(BaseModel):
    """Outcome of one committed rating mutation"""
    entity_id: str
    rater_id: str
    previous_value: Optional[int] = None
    value: Optional[int] = None
    sum_delta: int
    count_delta: int
    aggregate: EntityAggregate

    @property
    def created(self) -> bool:
        return self.previous_value is None and self.value is not None
