"""
Domain models package
"""

from .rating import RatingRecord, EntityAggregate, RatingChange

__all__ = ["RatingRecord", "EntityAggregate", "RatingChange"]
