"""Mutation interceptor: authorize, execute, publish.

Wraps single-record mutations so that every successful write is followed by
a ChangeEvent on the owner's topic, tagged with the client session that
caused it. Authorization happens before the mutation runs, so a rejected
call neither writes nor publishes.
"""

import logging
from typing import Any, Awaitable, Callable, Optional

from mealsync.application.ownership import CallerContext, MutationArgs, resolve_ownership_key
from mealsync.domain.events.change_event import ChangeEvent, topic_for
from mealsync.domain.shared.errors import UnauthorizedError
from mealsync.domain.shared.identity import Identity
from mealsync.domain.shared.ports.change_notifier import IChangeNotifier

logger = logging.getLogger(__name__)

UNAUTHORIZED_MESSAGE = "Unauthorized access: You can only access or modify your own data."

Mutation = Callable[[MutationArgs, Optional[str]], Awaitable[Any]]
WrappedMutation = Callable[[CallerContext, MutationArgs], Awaitable[Any]]


class MutationInterceptor:
    """Owner-or-dev authorization plus change publication.

    Example:
        >>> interceptor = MutationInterceptor(notifier, allow_dev_override=False)
        >>> update = interceptor.wrap("MEAL_UPDATED", store_update)
        >>> meal = await update(caller, MutationArgs(record_id=meal_id, record=patch))
    """

    def __init__(self, notifier: IChangeNotifier, allow_dev_override: bool = False) -> None:
        self._notifier = notifier
        self.allow_dev_override = allow_dev_override

    def is_dev(self, identity: Optional[Identity]) -> bool:
        return identity is not None and identity.is_dev and self.allow_dev_override

    def authorize(self, identity: Optional[Identity], ownership_key: Optional[str]) -> None:
        """Allow the dev identity, or a caller acting on its own data.

        Raises:
            UnauthorizedError: Anonymous caller, unresolved key for a non-dev
                caller, or a key that belongs to someone else
        """
        if self.is_dev(identity):
            return
        if identity is None or ownership_key is None or identity.id != ownership_key:
            logger.info(
                "Authorization denied",
                extra={
                    "caller": identity.id if identity else None,
                    "ownership_key": ownership_key,
                },
            )
            raise UnauthorizedError(UNAUTHORIZED_MESSAGE)

    def wrap(self, event_name: str, mutation: Mutation) -> WrappedMutation:
        """Decorate a store mutation.

        Args:
            event_name: Topic prefix, e.g. ``MEAL_PLAN_UPDATED``
            mutation: ``async (args, owner) -> record``. ``owner`` is the
                resolved ownership key, used as the store's ownership
                filter. It is None only for a dev caller whose arguments
                name no owner

        Returns:
            ``async (caller, args) -> record``
        """

        async def wrapped(caller: CallerContext, args: MutationArgs) -> Any:
            key = resolve_ownership_key(args)
            self.authorize(caller.identity, key)

            result = await mutation(args, key)

            if key is None or result is None:
                logger.warning(
                    "publish.skipped",
                    extra={
                        "event_name": event_name,
                        "reason": "no ownership key" if key is None else "empty result",
                    },
                )
                return result

            event = ChangeEvent(
                topic=topic_for(event_name, key),
                payload=result,
                origin_client_id=caller.client_id,
            )
            try:
                await self._notifier.publish(event.topic, event)
            except Exception as e:
                logger.error(
                    "Change publication failed",
                    extra={"topic": event.topic, "event_id": str(event.event_id), "error": str(e)},
                    exc_info=True,
                )
            return result

        wrapped.__name__ = getattr(mutation, "__name__", "mutation")
        return wrapped
