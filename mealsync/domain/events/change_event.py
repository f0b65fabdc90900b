"""ChangeEvent: notification that an owned record was mutated.

Events are ephemeral: they exist only between publish and delivery and are
never persisted.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID, uuid4

TOPIC_SEPARATOR = "."


def topic_for(event_name: str, owner_id: str) -> str:
    """Build the topic for an event kind scoped to one owner.

    Examples:
        >>> topic_for("MEAL_PLAN_UPDATED", "user-1")
        'MEAL_PLAN_UPDATED.user-1'
    """
    if not event_name or not owner_id:
        raise ValueError("event_name and owner_id are required to build a topic")
    return f"{event_name}{TOPIC_SEPARATOR}{owner_id}"


@dataclass(frozen=True)
class ChangeEvent:
    """A mutated record and the client session that caused the mutation.

    Attributes:
        topic: ``{event_name}.{owner_id}``
        payload: Snapshot of the mutated entity
        origin_client_id: Per-browser-session id from the ``x-client-id``
            header, None when the request did not carry one
        event_id: Unique identifier for this event instance
        occurred_at: When the event was created (UTC timezone-aware)
    """

    topic: str
    payload: Any
    origin_client_id: Optional[str] = None
    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        if not self.topic:
            raise ValueError("topic is required")
        if self.occurred_at.tzinfo is None:
            raise ValueError("occurred_at must be timezone-aware (use UTC)")
