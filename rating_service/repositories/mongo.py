"""
MongoDB storage backend following the Repository pattern.

Collections:
    ratings   one document per (entity_id, rater_id), unique compound index
    entities  one document per entity, _id = entity_id, holding rating_sum,
              rating_count and info

A mutation's rating write and aggregate $inc run in one multi-document
transaction on a client session (replica set required).
"""

from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING, IndexModel, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from rating_service.core.errors import (
    ConflictError,
    ErrorResponse,
    InternalInconsistencyError,
    StorageError,
    UnknownEntityError,
)
from rating_service.core.logger import logger
from rating_service.models.rating import EntityAggregate, RatingRecord, utc_now
from rating_service.repositories.base import (
    AggregateRepository,
    RatingRepository,
    RatingStorage,
    StorageTransaction,
)

RATINGS_COLLECTION = "ratings"
ENTITIES_COLLECTION = "entities"

# MongoDB server error code for a write conflict inside a transaction
WRITE_CONFLICT_CODE = 112

# Commit may or may not have been applied; only the commit itself is retried
UNKNOWN_COMMIT_RESULT_LABEL = "UnknownTransactionCommitResult"
MAX_COMMIT_RETRIES = 2


def translate_mongo_error(error: PyMongoError, operation: str) -> ErrorResponse:
    """Map a driver error onto the service's error kinds"""
    details = {"operation": operation, "error_type": type(error).__name__}

    if error.has_error_label(UNKNOWN_COMMIT_RESULT_LABEL):
        logger.error(
            f"MongoDB commit outcome unknown during {operation}",
            error=error,
            metadata={"event": "mongodb_commit_unknown", **details}
        )
        return StorageError(
            "Database commit outcome unknown; the change may have been applied",
            details={**details, "commit_outcome": "unknown"},
        )

    if (
        isinstance(error, DuplicateKeyError)
        or error.has_error_label("TransientTransactionError")
        or getattr(error, "code", None) == WRITE_CONFLICT_CODE
    ):
        logger.warning(
            f"MongoDB conflict during {operation}: {error}",
            metadata={"event": "mongodb_conflict", **details}
        )
        return ConflictError(details=details)

    logger.error(f"MongoDB error during {operation}", error=error, metadata={"event": "mongodb_error", **details})
    return StorageError(f"Database error during {operation}", details=details)


def _doc_to_record(doc: dict) -> RatingRecord:
    return RatingRecord(
        entity_id=doc["entity_id"],
        rater_id=doc["rater_id"],
        value=doc["value"],
        created_at=doc.get("created_at") or utc_now(),
        updated_at=doc.get("updated_at") or utc_now(),
    )


def _doc_to_aggregate(doc: dict) -> EntityAggregate:
    return EntityAggregate(
        entity_id=str(doc["_id"]),
        rating_sum=doc.get("rating_sum", 0),
        rating_count=doc.get("rating_count", 0),
        info=doc.get("info") or {},
    )


class MongoRatingRepository(RatingRepository):
    """Repository for individual rating documents"""

    def __init__(self, collection: AsyncIOMotorCollection, session=None):
        self.collection = collection
        self.session = session

    async def get(self, entity_id: str, rater_id: str) -> Optional[RatingRecord]:
        try:
            doc = await self.collection.find_one(
                {"entity_id": entity_id, "rater_id": rater_id},
                session=self.session,
            )
        except PyMongoError as e:
            raise translate_mongo_error(e, "rating lookup") from e
        return _doc_to_record(doc) if doc else None

    async def upsert(self, record: RatingRecord) -> Optional[int]:
        now = utc_now()
        try:
            previous = await self.collection.find_one_and_update(
                {"entity_id": record.entity_id, "rater_id": record.rater_id},
                {
                    "$set": {"value": record.value, "updated_at": now},
                    "$setOnInsert": {"created_at": now},
                },
                projection={"value": True},
                upsert=True,
                return_document=ReturnDocument.BEFORE,
                session=self.session,
            )
        except PyMongoError as e:
            raise translate_mongo_error(e, "rating upsert") from e
        return previous["value"] if previous else None

    async def delete(self, entity_id: str, rater_id: str) -> Optional[int]:
        try:
            deleted = await self.collection.find_one_and_delete(
                {"entity_id": entity_id, "rater_id": rater_id},
                projection={"value": True},
                session=self.session,
            )
        except PyMongoError as e:
            raise translate_mongo_error(e, "rating delete") from e
        return deleted["value"] if deleted else None

    async def list_by_entity(self, entity_id: str) -> List[RatingRecord]:
        try:
            cursor = self.collection.find({"entity_id": entity_id}, session=self.session).sort("_id", ASCENDING)
            docs = await cursor.to_list(length=None)
        except PyMongoError as e:
            raise translate_mongo_error(e, "rating listing") from e
        return [_doc_to_record(doc) for doc in docs]


class MongoAggregateRepository(AggregateRepository):
    """Repository for entity documents carrying the running aggregate"""

    def __init__(self, collection: AsyncIOMotorCollection, session=None):
        self.collection = collection
        self.session = session

    async def get(self, entity_id: str) -> Optional[EntityAggregate]:
        try:
            doc = await self.collection.find_one({"_id": entity_id}, session=self.session)
        except PyMongoError as e:
            raise translate_mongo_error(e, "aggregate lookup") from e
        return _doc_to_aggregate(doc) if doc else None

    async def exists(self, entity_id: str) -> bool:
        try:
            doc = await self.collection.find_one(
                {"_id": entity_id},
                projection={"_id": True},
                session=self.session,
            )
        except PyMongoError as e:
            raise translate_mongo_error(e, "entity lookup") from e
        return doc is not None

    async def apply_delta(self, entity_id: str, sum_delta: int, count_delta: int) -> EntityAggregate:
        query: Dict[str, Any] = {"_id": entity_id}
        if count_delta < 0:
            # Conditional update: never let the stored count go below zero
            query["rating_count"] = {"$gte": -count_delta}

        try:
            doc = await self.collection.find_one_and_update(
                query,
                {"$inc": {"rating_sum": sum_delta, "rating_count": count_delta}},
                return_document=ReturnDocument.AFTER,
                session=self.session,
            )
        except PyMongoError as e:
            raise translate_mongo_error(e, "aggregate update") from e

        if doc is not None:
            return _doc_to_aggregate(doc)

        if not await self.exists(entity_id):
            raise UnknownEntityError(entity_id)
        raise InternalInconsistencyError(
            "rating_count would become negative",
            details={"entity_id": entity_id, "count_delta": count_delta},
        )

    async def list_all(self) -> List[EntityAggregate]:
        try:
            cursor = self.collection.find({}, session=self.session).sort("_id", ASCENDING)
            docs = await cursor.to_list(length=None)
        except PyMongoError as e:
            raise translate_mongo_error(e, "entity listing") from e
        return [_doc_to_aggregate(doc) for doc in docs]

    async def register(self, entity_id: str, info: Optional[Dict[str, Any]] = None) -> bool:
        try:
            result = await self.collection.update_one(
                {"_id": entity_id},
                {"$setOnInsert": {
                    "rating_sum": 0,
                    "rating_count": 0,
                    "info": info or {},
                    "created_at": utc_now(),
                }},
                upsert=True,
                session=self.session,
            )
        except PyMongoError as e:
            raise translate_mongo_error(e, "entity registration") from e
        return result.upserted_id is not None


class MongoRatingStorage(RatingStorage):
    """MongoDB-backed ratings and aggregates"""

    def __init__(self, client: AsyncIOMotorClient, database: AsyncIOMotorDatabase):
        self.client = client
        self.database = database
        self.ratings = MongoRatingRepository(database[RATINGS_COLLECTION])
        self.aggregates = MongoAggregateRepository(database[ENTITIES_COLLECTION])

    async def ensure_indexes(self):
        """Create indexes for the ratings collection"""
        indexes = [
            # Also serves list_by_entity through its entity_id prefix
            IndexModel(
                [("entity_id", ASCENDING), ("rater_id", ASCENDING)],
                unique=True,
                name="entity_rater_unique",
            ),
        ]
        await self.database[RATINGS_COLLECTION].create_indexes(indexes)
        logger.info("Ratings indexes created", metadata={"event": "mongodb_indexes_created"})

    @asynccontextmanager
    async def transaction(self):
        try:
            async with await self.client.start_session() as session:
                session.start_transaction()
                try:
                    yield StorageTransaction(
                        ratings=MongoRatingRepository(self.database[RATINGS_COLLECTION], session),
                        aggregates=MongoAggregateRepository(self.database[ENTITIES_COLLECTION], session),
                    )
                except BaseException:
                    if session.in_transaction:
                        await session.abort_transaction()
                    raise
                await self._commit(session)
        except PyMongoError as e:
            # Commit and session errors; repository errors arrive already translated
            raise translate_mongo_error(e, "transaction") from e

    async def _commit(self, session):
        """
        Commit, retrying only the commit while its outcome is unknown.

        Re-sending commitTransaction is safe; re-running the transaction body
        is not, because the first commit may already have been applied.
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                await session.commit_transaction()
                return
            except PyMongoError as e:
                if not e.has_error_label(UNKNOWN_COMMIT_RESULT_LABEL) or attempt > MAX_COMMIT_RETRIES:
                    raise
                logger.warning(
                    "Transaction commit outcome unknown, retrying commit",
                    metadata={"event": "mongodb_commit_retry", "attempt": attempt}
                )

    async def ping(self) -> Dict[str, Any]:
        try:
            await self.client.admin.command("ping")
            collections = await self.database.list_collection_names()
        except PyMongoError as e:
            raise translate_mongo_error(e, "ping") from e
        return {
            "backend": "mongodb",
            "database": self.database.name,
            "collections_count": len(collections),
        }

    async def close(self) -> None:
        self.client.close()
