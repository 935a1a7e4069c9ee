"""
Per-entity mutual exclusion for rating mutations
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Dict

from rating_service.core.errors import ConflictError
from rating_service.core.logger import logger


class _LockEntry:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = asyncio.Lock()
        self.users = 0


class EntityLockRegistry:
    """
    Hands out one asyncio.Lock per entity id.

    Mutations on different entities never share a lock. An entry is dropped
    once no task holds or waits for it, so the registry only ever contains
    entities with a mutation in flight.
    """

    def __init__(self, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        self._entries: Dict[str, _LockEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    @asynccontextmanager
    async def hold(self, entity_id: str):
        entry = self._entries.get(entity_id)
        if entry is None:
            entry = self._entries[entity_id] = _LockEntry()
        entry.users += 1

        try:
            try:
                await asyncio.wait_for(entry.lock.acquire(), timeout=self.timeout_seconds)
            except asyncio.TimeoutError:
                logger.warning(
                    f"Timed out waiting for entity lock {entity_id}",
                    metadata={
                        "event": "entity_lock_timeout",
                        "entity_id": entity_id,
                        "timeout_seconds": self.timeout_seconds,
                    }
                )
                raise ConflictError(
                    "Timed out waiting for concurrent updates to finish, please retry",
                    details={"entity_id": entity_id},
                )

            try:
                yield
            finally:
                entry.lock.release()
        finally:
            entry.users -= 1
            if entry.users == 0:
                del self._entries[entity_id]
