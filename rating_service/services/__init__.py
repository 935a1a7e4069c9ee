"""
Services module initialization
"""

from .aggregation import AggregationEngine
from .locks import EntityLockRegistry
from .query import QueryService

__all__ = [
    "AggregationEngine",
    "EntityLockRegistry",
    "QueryService",
]
