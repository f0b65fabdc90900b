"""Unit tests for MongoRecordStore with a mocked motor collection."""

from typing import Any, Dict
from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from mealsync.domain.catalog.entities import Ingredient
from mealsync.domain.catalog.kinds import EntityKind
from mealsync.domain.shared.errors import DuplicateRecordError, RecordNotFoundError
from mealsync.infrastructure.persistence.mongodb.record_store import MongoRecordStore


def _document(**overrides: Any) -> Dict[str, Any]:
    doc: Dict[str, Any] = {
        "_id": "rice",
        "user_id": "user-1",
        "name": "Rice",
        "unit": "g",
        "quantity": None,
        "macros": {"calories": 200, "protein": 4, "carbs": 45, "fat": 0},
        "price": 1.5,
    }
    doc.update(overrides)
    return doc


@pytest.fixture
def collection() -> MagicMock:
    return MagicMock()


@pytest.fixture
def client(collection: MagicMock) -> MagicMock:
    client = MagicMock()
    client.__getitem__.return_value.__getitem__.return_value = collection
    return client


@pytest.fixture
def store(client: MagicMock) -> MongoRecordStore:
    return MongoRecordStore(EntityKind.INGREDIENT, client=client, database="test")


class TestMongoRecordStore:
    """Test document mapping and error translation."""

    def test_collection_selection(self, client: MagicMock) -> None:
        MongoRecordStore(EntityKind.MEAL_PLAN, client=client, database="test")

        client.__getitem__.assert_called_with("test")
        client.__getitem__.return_value.__getitem__.assert_called_with("meal_plans")

    def test_document_mapping(self, store: MongoRecordStore, rice: Ingredient) -> None:
        doc = store.to_document(rice)

        assert doc["_id"] == "rice"
        assert "id" not in doc
        assert store.from_document(doc) == rice

    @pytest.mark.asyncio
    async def test_create(self, store: MongoRecordStore, collection: MagicMock, ingredient_record) -> None:
        collection.insert_one = AsyncMock()

        rice = await store.create(ingredient_record())

        inserted = collection.insert_one.await_args.args[0]
        assert inserted["_id"] == rice.id
        assert inserted["name"] == "Rice"

    @pytest.mark.asyncio
    async def test_create_duplicate(
        self, store: MongoRecordStore, collection: MagicMock, ingredient_record
    ) -> None:
        collection.insert_one = AsyncMock(side_effect=DuplicateKeyError("E11000"))

        with pytest.raises(DuplicateRecordError):
            await store.create(ingredient_record())

    @pytest.mark.asyncio
    async def test_find_translates_id(self, store: MongoRecordStore, collection: MagicMock) -> None:
        collection.find.return_value.to_list = AsyncMock(return_value=[_document()])

        found = await store.find({"user_id": "user-1", "id": "rice"})

        collection.find.assert_called_once_with({"user_id": "user-1", "_id": "rice"})
        assert [i.id for i in found] == ["rice"]

    @pytest.mark.asyncio
    async def test_find_one_translates_id(
        self, store: MongoRecordStore, collection: MagicMock
    ) -> None:
        collection.find_one = AsyncMock(return_value=_document())

        found = await store.find_one({"id": "rice", "user_id": "user-1"})

        collection.find_one.assert_awaited_once_with({"_id": "rice", "user_id": "user-1"})
        assert found is not None
        assert found.id == "rice"

    @pytest.mark.asyncio
    async def test_find_by_id_owner_filter(
        self, store: MongoRecordStore, collection: MagicMock
    ) -> None:
        collection.find_one = AsyncMock(return_value=None)

        assert await store.find_by_id("rice", owner="user-2") is None
        collection.find_one.assert_awaited_once_with({"_id": "rice", "user_id": "user-2"})

    @pytest.mark.asyncio
    async def test_update(self, store: MongoRecordStore, collection: MagicMock) -> None:
        collection.find_one = AsyncMock(return_value=_document())
        collection.find_one_and_update = AsyncMock(return_value=_document(price=2.0))

        updated = await store.update_by_id("rice", {"price": 2.0}, owner="user-1")

        assert updated.price == 2.0
        query, update = collection.find_one_and_update.await_args.args
        assert query == {"_id": "rice", "user_id": "user-1"}
        assert update["$set"]["price"] == 2.0
        assert "_id" not in update["$set"]
        assert (
            collection.find_one_and_update.await_args.kwargs["return_document"]
            is ReturnDocument.AFTER
        )

    @pytest.mark.asyncio
    async def test_update_missing(self, store: MongoRecordStore, collection: MagicMock) -> None:
        collection.find_one = AsyncMock(return_value=None)

        with pytest.raises(RecordNotFoundError):
            await store.update_by_id("rice", {"price": 2.0}, owner="user-1")

    @pytest.mark.asyncio
    async def test_remove(self, store: MongoRecordStore, collection: MagicMock) -> None:
        collection.find_one_and_delete = AsyncMock(return_value=_document())

        removed = await store.remove_by_id("rice")

        assert removed.name == "Rice"
        collection.find_one_and_delete.assert_awaited_once_with({"_id": "rice"})

    @pytest.mark.asyncio
    async def test_remove_missing(self, store: MongoRecordStore, collection: MagicMock) -> None:
        collection.find_one_and_delete = AsyncMock(return_value=None)

        with pytest.raises(RecordNotFoundError):
            await store.remove_by_id("rice")

    @pytest.mark.asyncio
    async def test_remove_many(self, store: MongoRecordStore, collection: MagicMock) -> None:
        collection.delete_many = AsyncMock(return_value=MagicMock(deleted_count=3))

        assert await store.remove_many({"user_id": "user-1"}) == 3

    @pytest.mark.asyncio
    async def test_ensure_indexes(self, store: MongoRecordStore, collection: MagicMock) -> None:
        collection.create_index = AsyncMock()

        await store.ensure_indexes()

        first = collection.create_index.await_args_list[0]
        assert first.kwargs == {"unique": True}
