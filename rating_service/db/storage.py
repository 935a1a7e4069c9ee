"""
Storage backend lifecycle: selection, connection and entity bootstrap
"""

from typing import Any, Dict, Iterable, Optional, Tuple

from rating_service.core.config import config
from rating_service.core.logger import logger
from rating_service.db.mongodb import close_mongo_connection, connect_to_mongo, db
from rating_service.repositories.base import RatingStorage
from rating_service.repositories.memory import InMemoryRatingStorage
from rating_service.repositories.mongo import MongoRatingStorage


class StorageState:
    """Holds the process-wide storage backend"""

    storage: Optional[RatingStorage] = None


state = StorageState()


async def connect_storage() -> RatingStorage:
    """Create the configured storage backend"""
    if config.storage_backend == "memory":
        state.storage = InMemoryRatingStorage()
    else:
        await connect_to_mongo()
        storage = MongoRatingStorage(db.client, db.database)
        await storage.ensure_indexes()
        state.storage = storage

    logger.info(
        f"Storage backend '{config.storage_backend}' ready",
        metadata={"event": "storage_connected", "backend": config.storage_backend}
    )
    return state.storage


async def close_storage():
    """Release the storage backend"""
    if config.storage_backend == "mongodb":
        await close_mongo_connection()
    elif state.storage is not None:
        await state.storage.close()
    state.storage = None


async def get_storage() -> RatingStorage:
    """Get the storage backend, connecting on first use"""
    if state.storage is None:
        await connect_storage()
    return state.storage


async def register_entities(
    storage: RatingStorage,
    entities: Iterable[Tuple[str, Dict[str, Any]]],
) -> int:
    """Register entities with empty aggregates; existing ones are left untouched"""
    created = 0
    for entity_id, info in entities:
        if await storage.aggregates.register(entity_id, info):
            created += 1

    logger.info(
        f"Registered {created} new entities",
        metadata={"event": "entities_registered", "created": created}
    )
    return created


async def bootstrap_entities(storage: RatingStorage, count: int) -> int:
    """Register entities "1".."count", as the service does on startup"""
    return await register_entities(storage, ((str(i), {}) for i in range(1, count + 1)))
