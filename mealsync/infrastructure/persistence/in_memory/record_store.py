"""In-memory record store implementation.

Provides an in-memory implementation of the IRecordStore port for tests and
development. Uses a dictionary for storage with no external dependencies.
"""

from copy import deepcopy
from typing import Any, Dict, Generic, List, Mapping, Optional, Type

from mealsync.domain.catalog.entities import ENTITY_CLASSES, new_record_id
from mealsync.domain.catalog.kinds import EntityKind
from mealsync.domain.shared.errors import DuplicateRecordError, RecordNotFoundError
from mealsync.domain.shared.ports.record_store import TEntity


class InMemoryRecordStore(Generic[TEntity]):
    """
    In-memory implementation of IRecordStore port.

    Thread safety: NOT thread-safe (use locks if needed in production)
    Persistence: Data lost on process restart (in-memory only)

    Example:
        >>> store = InMemoryRecordStore(EntityKind.INGREDIENT)
        >>> rice = await store.create({"user_id": "u1", "name": "Rice", ...})
        >>> await store.find({"user_id": "u1"})
        [Ingredient(id=..., name='Rice', ...)]
    """

    def __init__(self, kind: EntityKind) -> None:
        """Initialize store with empty storage."""
        self.kind = kind
        self._entity_class: Type[Any] = ENTITY_CLASSES[kind]
        self._storage: Dict[str, TEntity] = {}

    @staticmethod
    def _matches(entity: Any, filter: Mapping[str, Any]) -> bool:
        return all(getattr(entity, key, None) == value for key, value in filter.items())

    def _ensure_unique(self, entity: Any, exclude_id: Optional[str] = None) -> None:
        for other in self._storage.values():
            if other.id == exclude_id:
                continue
            if other.user_id == entity.user_id and other.name == entity.name:  # type: ignore[attr-defined]
                raise DuplicateRecordError(
                    f"{self.kind.value} named {entity.name!r} already exists",
                    field="name",
                )

    def _visible(self, record_id: str, owner: Optional[str]) -> Optional[TEntity]:
        entity = self._storage.get(record_id)
        if entity is None:
            return None
        if owner is not None and entity.user_id != owner:  # type: ignore[attr-defined]
            return None
        return entity

    async def find(self, filter: Mapping[str, Any]) -> List[TEntity]:
        """Return deep copies of matching records in insertion order."""
        return [deepcopy(e) for e in self._storage.values() if self._matches(e, filter)]

    async def find_one(self, filter: Mapping[str, Any]) -> Optional[TEntity]:
        for entity in self._storage.values():
            if self._matches(entity, filter):
                return deepcopy(entity)
        return None

    async def find_by_id(self, record_id: str, owner: Optional[str] = None) -> Optional[TEntity]:
        entity = self._visible(record_id, owner)
        return deepcopy(entity) if entity is not None else None

    async def create(self, record: Mapping[str, Any]) -> TEntity:
        """
        Validate and store a new record.

        Note:
            - Assigns a fresh id when the record has none or reuses a taken one
            - Stores a deep copy to prevent external modifications
        """
        data = dict(record)
        if not data.get("id") or data["id"] in self._storage:
            data["id"] = new_record_id()

        entity = self._entity_class.from_record(data)
        self._ensure_unique(entity)
        self._storage[entity.id] = deepcopy(entity)
        return entity

    async def update_by_id(
        self, record_id: str, patch: Mapping[str, Any], owner: Optional[str] = None
    ) -> TEntity:
        current = self._visible(record_id, owner)
        if current is None:
            raise RecordNotFoundError(f"{self.kind.value} {record_id} not found")

        updated = current.patched(patch)  # type: ignore[attr-defined]
        self._ensure_unique(updated, exclude_id=record_id)
        self._storage[record_id] = deepcopy(updated)
        return updated

    async def remove_by_id(self, record_id: str, owner: Optional[str] = None) -> TEntity:
        current = self._visible(record_id, owner)
        if current is None:
            raise RecordNotFoundError(f"{self.kind.value} {record_id} not found")
        del self._storage[record_id]
        return current

    async def remove_many(self, filter: Mapping[str, Any]) -> int:
        doomed = [rid for rid, e in self._storage.items() if self._matches(e, filter)]
        for record_id in doomed:
            del self._storage[record_id]
        return len(doomed)

    def count(self) -> int:
        """Get total number of records (utility for testing)."""
        return len(self._storage)

    def clear(self) -> None:
        """Clear all records (utility for testing)."""
        self._storage.clear()
