"""Record store port (interface).

Defines the per-entity persistence contract. The store is an external
collaborator: the application layer always supplies the ownership filter
(``user_id``), the store never infers it.
"""

from typing import Any, List, Mapping, Optional, Protocol, TypeVar

from mealsync.domain.catalog.entities import Entity

TEntity = TypeVar("TEntity", bound=Entity)


class IRecordStore(Protocol[TEntity]):
    """
    Interface for one entity kind's persistence.

    Implementations:
    - InMemoryRecordStore (default, tests and development)
    - MongoRecordStore (motor, production)

    Example usage (application layer):
        >>> plans = await store.find({"user_id": "user-1"})
        >>> plan = await store.create({"user_id": "user-1", "name": "Week 1"})
        >>> plan = await store.update_by_id(plan.id, {"name": "Week 2"}, owner="user-1")
    """

    async def find(self, filter: Mapping[str, Any]) -> List[TEntity]:
        """
        Return records whose fields equal every key of ``filter``.

        Args:
            filter: Field equality filter, typically ``{"user_id": ...}``
        """
        ...

    async def find_one(self, filter: Mapping[str, Any]) -> Optional[TEntity]:
        """Return the first record matching ``filter``, or None."""
        ...

    async def find_by_id(self, record_id: str, owner: Optional[str] = None) -> Optional[TEntity]:
        """
        Return the record with ``record_id``, or None.

        Args:
            record_id: Record identifier
            owner: When given, records of other owners are reported as missing
        """
        ...

    async def create(self, record: Mapping[str, Any]) -> TEntity:
        """
        Validate and insert a new record.

        Raises:
            ValidationFailure: Malformed fields
            DuplicateRecordError: ``(user_id, name)`` already taken
        """
        ...

    async def update_by_id(
        self, record_id: str, patch: Mapping[str, Any], owner: Optional[str] = None
    ) -> TEntity:
        """
        Apply ``patch`` to an existing record.

        Raises:
            RecordNotFoundError: No such record under ``owner``
            ValidationFailure: Patch yields an invalid record or changes owner
        """
        ...

    async def remove_by_id(self, record_id: str, owner: Optional[str] = None) -> TEntity:
        """
        Delete a record and return its last state.

        Raises:
            RecordNotFoundError: No such record under ``owner``
        """
        ...

    async def remove_many(self, filter: Mapping[str, Any]) -> int:
        """Delete every record matching ``filter``; return the count removed."""
        ...
