"""Change notifier port (interface).

Topic-keyed publish/subscribe contract. Domain defines the port,
infrastructure provides the implementation.
"""

from typing import Any, AsyncIterator, Protocol


class ISubscription(Protocol):
    """Live, non-terminating sequence of payloads for one topic."""

    topic: str

    def __aiter__(self) -> AsyncIterator[Any]:
        ...

    async def __anext__(self) -> Any:
        ...

    def close(self) -> None:
        """Detach from the notifier; iteration stops afterwards."""
        ...


class IChangeNotifier(Protocol):
    """
    Interface for topic-based publish/subscribe.

    Contract:
    - publish delivers to every subscriber attached at publish time,
      at most once each, in publish order per subscriber
    - publishing to a topic with no subscribers is a no-op
    - subscribers joining after a publish never see it
    - a failing consumer never affects the publisher or other subscribers

    Example usage:
        >>> subscription = notifier.subscribe("MEAL_UPDATED.user-1")
        >>> await notifier.publish("MEAL_UPDATED.user-1", event)
        >>> received = await subscription.__anext__()
    """

    def subscribe(self, topic: str) -> ISubscription:
        """Attach a new subscriber to ``topic``."""
        ...

    async def publish(self, topic: str, payload: Any) -> int:
        """Deliver ``payload`` to the current subscribers of ``topic``.

        Returns:
            Number of subscribers the payload was queued for
        """
        ...

    def subscriber_count(self, topic: str) -> int:
        ...
