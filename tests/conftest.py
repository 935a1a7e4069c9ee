"""Shared test fixtures"""
import os

# Must be set before rating_service.core.config builds the global config
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("TRACING_ENABLED", "false")
os.environ.setdefault("LOG_TO_FILE", "false")

import asyncio
import inspect
from contextlib import asynccontextmanager

import pytest
import pytest_asyncio
from unittest.mock import AsyncMock

from rating_service.repositories.base import StorageTransaction
from rating_service.repositories.memory import InMemoryRatingStorage
from rating_service.services.aggregation import AggregationEngine
from rating_service.services.locks import EntityLockRegistry
from rating_service.services.query import QueryService


ENTITY_IDS = ("driver-1", "driver-2", "driver-3")


class YieldingProxy:
    """Wraps a repository so every call suspends the caller, forcing task interleaving"""

    def __init__(self, target):
        self._target = target

    def __getattr__(self, name):
        attr = getattr(self._target, name)
        if not inspect.iscoroutinefunction(attr):
            return attr

        async def call(*args, **kwargs):
            await asyncio.sleep(0)
            result = await attr(*args, **kwargs)
            await asyncio.sleep(0)
            return result

        return call


class YieldingStorage(InMemoryRatingStorage):
    """In-memory storage that yields to the event loop around every store operation"""

    @asynccontextmanager
    async def transaction(self):
        async with super().transaction() as tx:
            yield StorageTransaction(
                ratings=YieldingProxy(tx.ratings),
                aggregates=YieldingProxy(tx.aggregates),
            )
            await asyncio.sleep(0)


@pytest.fixture
def storage():
    """Empty in-memory storage"""
    return YieldingStorage()


@pytest_asyncio.fixture
async def seeded_storage(storage):
    """Storage with three registered entities and no ratings"""
    for index, entity_id in enumerate(ENTITY_IDS, start=1):
        await storage.aggregates.register(entity_id, {"name": f"Driver {index}"})
    return storage


@pytest.fixture
def entity_locks():
    """Fresh lock registry per test"""
    return EntityLockRegistry(timeout_seconds=1.0)


@pytest.fixture
def engine(seeded_storage, entity_locks):
    """Aggregation engine over seeded storage, without retry backoff"""
    return AggregationEngine(
        seeded_storage,
        entity_locks,
        min_value=1,
        max_value=5,
        max_conflict_retries=3,
        retry_backoff_ms=0,
    )


@pytest.fixture
def query_service(seeded_storage):
    """Query service over seeded storage"""
    return QueryService(seeded_storage, min_value=1, max_value=5)


@pytest.fixture
def mock_collection():
    """Mock MongoDB collection for testing"""
    collection = AsyncMock()
    collection.name = "ratings"
    return collection


@pytest.fixture
def entity_id():
    """Sample entity ID for testing"""
    return ENTITY_IDS[0]
