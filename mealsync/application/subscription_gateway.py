"""Subscription gateway.

Exposes a notifier topic to remote clients as a stream of deliveries. Each
delivery carries the mutated record and the client session that caused the
change, so that clients can recognize their own echoes.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from mealsync.domain.catalog.kinds import EntityKind
from mealsync.domain.events.change_event import ChangeEvent, topic_for
from mealsync.domain.shared.ports.change_notifier import IChangeNotifier, ISubscription

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Delivery:
    """One change event as seen by a subscriber.

    Attributes:
        kind: Entity kind of the record
        record: Mutated entity
        source_client_id: Origin client session, None if unknown
    """

    kind: EntityKind
    record: Any
    source_client_id: Optional[str] = None

    @classmethod
    def from_event(cls, kind: EntityKind, event: ChangeEvent) -> "Delivery":
        return cls(kind=kind, record=event.payload, source_client_id=event.origin_client_id)

    def as_payload(self) -> Dict[str, Any]:
        """Wire shape: ``{"<kind>Updated": record, "sourceClientId": id}``."""
        record = self.record.to_record() if hasattr(self.record, "to_record") else self.record
        return {self.kind.payload_field: record, "sourceClientId": self.source_client_id}


class DeliveryStream:
    """Async iterator of deliveries for one (kind, owner) topic.

    The notifier subscription is attached when the stream is created and
    released by ``close``/``aclose`` or on leaving ``async with``.
    """

    def __init__(self, kind: EntityKind, subscription: ISubscription) -> None:
        self.kind = kind
        self._subscription = subscription

    @property
    def topic(self) -> str:
        return self._subscription.topic

    def __aiter__(self) -> "DeliveryStream":
        return self

    async def __anext__(self) -> Delivery:
        event = await self._subscription.__anext__()
        return Delivery.from_event(self.kind, event)

    def close(self) -> None:
        self._subscription.close()
        logger.debug("Subscription stream closed", extra={"topic": self.topic})

    async def aclose(self) -> None:
        self.close()

    async def __aenter__(self) -> "DeliveryStream":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.close()


class SubscriptionGateway:
    """Maps (entity kind, owner) to live delivery streams.

    Example:
        >>> gateway = SubscriptionGateway(notifier)
        >>> async with gateway.stream(EntityKind.MEAL_PLAN, "user-1") as stream:
        ...     async for delivery in stream:
        ...         print(delivery.as_payload())
    """

    def __init__(self, notifier: IChangeNotifier) -> None:
        self._notifier = notifier

    def stream(self, kind: EntityKind, owner_id: str) -> DeliveryStream:
        """Attach to the owner's topic for ``kind``.

        Only events published after this call are delivered; there is no
        replay of earlier changes.
        """
        topic = topic_for(kind.event_name, owner_id)
        logger.info("Subscription opened", extra={"topic": topic})
        return DeliveryStream(kind, self._notifier.subscribe(topic))

    def listener_count(self, kind: EntityKind, owner_id: str) -> int:
        return self._notifier.subscriber_count(topic_for(kind.event_name, owner_id))
