"""
Database module initialization
"""

from .mongodb import db, connect_to_mongo, close_mongo_connection
from .storage import (
    connect_storage,
    close_storage,
    get_storage,
    register_entities,
    bootstrap_entities,
)

__all__ = [
    "db",
    "connect_to_mongo",
    "close_mongo_connection",
    "connect_storage",
    "close_storage",
    "get_storage",
    "register_entities",
    "bootstrap_entities",
]
