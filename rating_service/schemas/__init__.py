"""
API schemas package
"""

from .rating import RatingSubmit, RatingResponse, EntityResponse, MutationAck

__all__ = ["RatingSubmit", "RatingResponse", "EntityResponse", "MutationAck"]
