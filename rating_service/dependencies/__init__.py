"""
Dependencies module initialization
"""

from .ratings import get_rating_storage, get_aggregation_engine, get_query_service

__all__ = [
    "get_rating_storage",
    "get_aggregation_engine",
    "get_query_service",
]
