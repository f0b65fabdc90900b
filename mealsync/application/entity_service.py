"""Entity services: the explicit operation surface for each entity kind.

Every operation is authorized with the owner-or-dev rule. Single-record
writes, by id or by filter (``update_one`` / ``remove_one``), go through the
mutation interceptor and publish a change event; batch writes are authorized
but publish nothing.
"""

import logging
from typing import Any, Dict, Generic, List, Mapping, Optional, Sequence

from mealsync.application.mutation_interceptor import MutationInterceptor
from mealsync.application.ownership import CallerContext, MutationArgs, resolve_ownership_key
from mealsync.application.subscription_gateway import DeliveryStream, SubscriptionGateway
from mealsync.domain.catalog.kinds import EntityKind
from mealsync.domain.shared.errors import RecordNotFoundError, ValidationFailure
from mealsync.domain.shared.ports.change_notifier import IChangeNotifier
from mealsync.domain.shared.ports.record_store import IRecordStore, TEntity

logger = logging.getLogger(__name__)


class EntityService(Generic[TEntity]):
    """Find, create, update, delete and subscribe for one entity kind.

    Example:
        >>> plans = EntityService(EntityKind.MEAL_PLAN, store, interceptor, gateway)
        >>> plan = await plans.create(caller, {"user_id": "u1", "name": "Week 1"})
        >>> await plans.update_by_id(caller, plan.id, {"name": "Week 2"}, user_id="u1")
    """

    def __init__(
        self,
        kind: EntityKind,
        store: IRecordStore[TEntity],
        interceptor: MutationInterceptor,
        gateway: SubscriptionGateway,
    ) -> None:
        self.kind = kind
        self._store = store
        self._interceptor = interceptor
        self._gateway = gateway

        self._create = interceptor.wrap(kind.event_name, self._do_create)
        self._update = interceptor.wrap(kind.event_name, self._do_update)
        self._remove = interceptor.wrap(kind.event_name, self._do_remove)
        self._update_one = interceptor.wrap(kind.event_name, self._do_update_one)
        self._remove_one = interceptor.wrap(kind.event_name, self._do_remove_one)

    @property
    def store(self) -> IRecordStore[TEntity]:
        return self._store

    # Store operations behind the interceptor

    async def _do_create(self, args: MutationArgs, owner: Optional[str]) -> TEntity:
        record = dict(args.record)
        if owner is not None:
            record["user_id"] = owner
        return await self._store.create(record)

    async def _do_update(self, args: MutationArgs, owner: Optional[str]) -> TEntity:
        return await self._store.update_by_id(args.record_id or "", args.record, owner=owner)

    async def _do_remove(self, args: MutationArgs, owner: Optional[str]) -> TEntity:
        return await self._store.remove_by_id(args.record_id or "", owner=owner)

    async def _match_one(self, args: MutationArgs, owner: Optional[str]) -> TEntity:
        if not args.filter:
            raise ValidationFailure("filter must name at least one field", field="filter")
        target = await self._store.find_one(args.owner_filter(owner))
        if target is None:
            raise RecordNotFoundError(f"no {self.kind.value} matches {dict(args.filter)}")
        return target

    async def _do_update_one(self, args: MutationArgs, owner: Optional[str]) -> TEntity:
        target = await self._match_one(args, owner)
        return await self._store.update_by_id(target.id, args.record, owner=owner)

    async def _do_remove_one(self, args: MutationArgs, owner: Optional[str]) -> TEntity:
        target = await self._match_one(args, owner)
        return await self._store.remove_by_id(target.id, owner=owner)

    # Reads

    async def find(self, caller: CallerContext, user_id: Optional[str]) -> List[TEntity]:
        """All records of ``user_id`` (every record for a dev caller without one)."""
        self._interceptor.authorize(caller.identity, user_id)
        return await self._store.find(MutationArgs(user_id=user_id).owner_filter(user_id))

    async def find_by_id(
        self, caller: CallerContext, record_id: str, user_id: Optional[str] = None
    ) -> TEntity:
        """
        Raises:
            UnauthorizedError: Caller is not ``user_id`` (nor dev)
            RecordNotFoundError: Missing, or owned by someone else
        """
        self._interceptor.authorize(caller.identity, user_id)
        record = await self._store.find_by_id(record_id, owner=user_id)
        if record is None:
            raise RecordNotFoundError(f"{self.kind.value} {record_id} not found")
        return record

    # Single-record writes (published)

    async def create(self, caller: CallerContext, record: Mapping[str, Any]) -> TEntity:
        return await self._create(caller, MutationArgs(record=record))  # type: ignore[no-any-return]

    async def update_by_id(
        self,
        caller: CallerContext,
        record_id: str,
        record: Mapping[str, Any],
        user_id: Optional[str] = None,
    ) -> TEntity:
        args = MutationArgs(user_id=user_id, record_id=record_id, record=record)
        return await self._update(caller, args)  # type: ignore[no-any-return]

    async def remove_by_id(
        self, caller: CallerContext, record_id: str, user_id: Optional[str] = None
    ) -> TEntity:
        args = MutationArgs(user_id=user_id, record_id=record_id)
        return await self._remove(caller, args)  # type: ignore[no-any-return]

    async def update_one(
        self, caller: CallerContext, filter: Mapping[str, Any], record: Mapping[str, Any]
    ) -> TEntity:
        """Patch the first record matching ``filter``.

        The owner comes from ``filter["user_id"]`` (or ``record["user_id"]``),
        so the change is published on that owner's topic.

        Raises:
            UnauthorizedError: Caller does not own the filtered records (nor dev)
            ValidationFailure: Empty filter, or an invalid patch
            RecordNotFoundError: Nothing matches
        """
        args = MutationArgs(filter=filter, record=record)
        return await self._update_one(caller, args)  # type: ignore[no-any-return]

    async def remove_one(self, caller: CallerContext, filter: Mapping[str, Any]) -> TEntity:
        """Delete the first record matching ``filter`` and return it."""
        return await self._remove_one(caller, MutationArgs(filter=filter))  # type: ignore[no-any-return]

    # Batch writes (never published)

    async def create_many(
        self, caller: CallerContext, records: Sequence[Mapping[str, Any]]
    ) -> List[TEntity]:
        """Create several records. Every record must belong to the caller.

        All records are authorized before the first insert.
        """
        for record in records:
            self._interceptor.authorize(
                caller.identity, resolve_ownership_key(MutationArgs(record=record))
            )
        created = [await self._store.create(record) for record in records]
        logger.info(
            "Batch create",
            extra={"kind": self.kind.value, "count": len(created)},
        )
        return created

    async def remove_many(self, caller: CallerContext, user_id: str) -> int:
        self._interceptor.authorize(caller.identity, user_id)
        removed = await self._store.remove_many({"user_id": user_id})
        logger.info(
            "Batch remove",
            extra={"kind": self.kind.value, "user_id": user_id, "count": removed},
        )
        return removed

    # Live updates

    def subscribe(self, caller: CallerContext, owner_id: str) -> DeliveryStream:
        """Open a delivery stream on the owner's topic.

        Raises:
            UnauthorizedError: Caller is not ``owner_id`` (nor dev)
        """
        self._interceptor.authorize(caller.identity, owner_id)
        return self._gateway.stream(self.kind, owner_id)


def build_entity_services(
    stores: Mapping[EntityKind, IRecordStore[Any]],
    notifier: IChangeNotifier,
    allow_dev_override: bool = False,
) -> Dict[EntityKind, EntityService[Any]]:
    """Wire one service per kind around a shared notifier."""
    interceptor = MutationInterceptor(notifier, allow_dev_override=allow_dev_override)
    gateway = SubscriptionGateway(notifier)
    return {
        kind: EntityService(kind, stores[kind], interceptor, gateway) for kind in EntityKind
    }
