"""MongoDB record store implementation.

Persistent storage for owned entities using motor. One collection per
entity kind; documents are the entity records with ``id`` stored as
``_id``. Uniqueness of ``(user_id, name)`` relies on a unique compound
index (see ``ensure_indexes``).
"""

import logging
from typing import Any, Dict, Generic, List, Mapping, Optional, Type

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection
from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from mealsync.domain.catalog.entities import ENTITY_CLASSES, new_record_id
from mealsync.domain.catalog.kinds import EntityKind
from mealsync.domain.shared.errors import DuplicateRecordError, RecordNotFoundError
from mealsync.domain.shared.ports.record_store import TEntity
from mealsync.infrastructure.config import get_mongodb_database, get_mongodb_uri

logger = logging.getLogger(__name__)

COLLECTION_NAMES: Dict[EntityKind, str] = {
    EntityKind.INGREDIENT: "ingredients",
    EntityKind.MEAL: "meals",
    EntityKind.MEAL_PLAN: "meal_plans",
}


class MongoRecordStore(Generic[TEntity]):
    """
    MongoDB implementation of IRecordStore port.

    Document Schema (meal plan example):
    {
        "_id": "hex-id",
        "user_id": "string",
        "name": "Week 1",
        "items": [{"type": "meal", "item_id": "...", "quantity": 1, "group": "Lunch"}],
        "macros": {"calories": 0, "protein": 0, "carbs": 0, "fat": 0},
        "price": 0
    }

    Indexes:
    - (user_id, name): unique
    - user_id: owner listing
    """

    def __init__(
        self,
        kind: EntityKind,
        client: Optional[AsyncIOMotorClient] = None,
        database: Optional[str] = None,
    ) -> None:
        """
        Initialize store with optional client.

        Args:
            kind: Entity kind stored in this collection
            client: Motor client (if None, creates new one from config)
            database: Database name (defaults to MONGODB_DATABASE)
        """
        if client is None:
            uri = get_mongodb_uri()
            if not uri:
                raise ValueError(
                    "MONGODB_URI not configured. "
                    "Set MONGODB_URI, MONGODB_USER, "
                    "and MONGODB_PASSWORD environment variables."
                )
            client = AsyncIOMotorClient(uri)

        self.kind = kind
        self._entity_class: Type[Any] = ENTITY_CLASSES[kind]
        self._client = client
        self._collection: AsyncIOMotorCollection = client[database or get_mongodb_database()][
            COLLECTION_NAMES[kind]
        ]

        logger.info(
            "Initialized MongoRecordStore",
            extra={"collection": COLLECTION_NAMES[kind]},
        )

    @property
    def collection(self) -> AsyncIOMotorCollection:
        """Get MongoDB collection handle."""
        return self._collection

    # ============================================================
    # Document Mapping (Domain <-> MongoDB)
    # ============================================================

    @staticmethod
    def to_document(entity: Any) -> Dict[str, Any]:
        record = entity.to_record()
        record["_id"] = record.pop("id")
        return record

    def from_document(self, doc: Mapping[str, Any]) -> TEntity:
        record = dict(doc)
        record["id"] = str(record.pop("_id"))
        return self._entity_class.from_record(record)  # type: ignore[no-any-return]

    @staticmethod
    def _query(filter: Mapping[str, Any]) -> Dict[str, Any]:
        query = dict(filter)
        if "id" in query:
            query["_id"] = query.pop("id")
        return query

    def _owned(self, record_id: str, owner: Optional[str]) -> Dict[str, Any]:
        query: Dict[str, Any] = {"_id": record_id}
        if owner is not None:
            query["user_id"] = owner
        return query

    # ============================================================
    # IRecordStore
    # ============================================================

    async def ensure_indexes(self) -> None:
        """Create the uniqueness and owner indexes (idempotent)."""
        await self._collection.create_index(
            [("user_id", ASCENDING), ("name", ASCENDING)], unique=True
        )
        await self._collection.create_index([("user_id", ASCENDING)])

    async def find(self, filter: Mapping[str, Any]) -> List[TEntity]:
        try:
            documents = await self._collection.find(self._query(filter)).to_list(length=None)
        except Exception as e:
            logger.error(
                "Error in find",
                extra={"collection": self._collection.name, "filter": dict(filter), "error": str(e)},
            )
            raise
        return [self.from_document(doc) for doc in documents]

    async def find_one(self, filter: Mapping[str, Any]) -> Optional[TEntity]:
        doc = await self._collection.find_one(self._query(filter))
        return self.from_document(doc) if doc is not None else None

    async def find_by_id(self, record_id: str, owner: Optional[str] = None) -> Optional[TEntity]:
        doc = await self._collection.find_one(self._owned(record_id, owner))
        return self.from_document(doc) if doc is not None else None

    async def create(self, record: Mapping[str, Any]) -> TEntity:
        data = dict(record)
        data["id"] = data.get("id") or new_record_id()
        entity = self._entity_class.from_record(data)

        try:
            await self._collection.insert_one(self.to_document(entity))
        except DuplicateKeyError:
            raise DuplicateRecordError(
                f"{self.kind.value} named {entity.name!r} already exists", field="name"
            )
        return entity  # type: ignore[no-any-return]

    async def update_by_id(
        self, record_id: str, patch: Mapping[str, Any], owner: Optional[str] = None
    ) -> TEntity:
        current = await self.find_by_id(record_id, owner)
        if current is None:
            raise RecordNotFoundError(f"{self.kind.value} {record_id} not found")

        updated = current.patched(patch)  # type: ignore[attr-defined]
        document = self.to_document(updated)
        document.pop("_id")

        try:
            result = await self._collection.find_one_and_update(
                self._owned(record_id, owner),
                {"$set": document},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError:
            raise DuplicateRecordError(
                f"{self.kind.value} named {updated.name!r} already exists", field="name"
            )
        if result is None:
            raise RecordNotFoundError(f"{self.kind.value} {record_id} not found")
        return self.from_document(result)

    async def remove_by_id(self, record_id: str, owner: Optional[str] = None) -> TEntity:
        doc = await self._collection.find_one_and_delete(self._owned(record_id, owner))
        if doc is None:
            raise RecordNotFoundError(f"{self.kind.value} {record_id} not found")
        return self.from_document(doc)

    async def remove_many(self, filter: Mapping[str, Any]) -> int:
        result = await self._collection.delete_many(self._query(filter))
        return int(result.deleted_count)

    async def close(self) -> None:
        """Close MongoDB connection."""
        self._client.close()
        logger.info("Closed MongoRecordStore connection")
