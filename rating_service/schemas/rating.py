"""
API schemas for rating endpoints following FastAPI best practices
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, StrictInt


class RatingSubmit(BaseModel):
    """Schema for submitting or replacing a rating"""
    rater_id: str = Field(..., min_length=1, max_length=255)
    # Strict: JSON true or "4" must not coerce to an int. Range is enforced by
    # the aggregation engine against configuration
    rating: StrictInt


class RatingResponse(BaseModel):
    """A single raw rating of an entity"""
    rater_id: str
    value: int


class EntityResponse(BaseModel):
    """An entity with its derived average rating"""
    entity_id: str
    info: Dict[str, Any] = Field(default_factory=dict)
    rating_count: int
    average_rating: Optional[float] = None


class MutationAck(BaseModel):
    """Acknowledgement for a committed rating mutation"""
    status: str = "ok"
