"""In-memory change notifier implementation.

Provides an in-memory implementation of the IChangeNotifier port.
Each subscriber owns an unbounded asyncio.Queue; publish enqueues the payload
on every queue registered for the topic at that moment.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

_CLOSED = object()


class Subscription:
    """
    Async iterator over the payloads published to one topic.

    Created by ``InMemoryChangeNotifier.subscribe``. Registration happens at
    construction time, so payloads published after ``subscribe`` returns are
    never missed even if iteration starts later.

    Example:
        >>> async with notifier.subscribe("MEAL_UPDATED.user-1") as subscription:
        ...     async for event in subscription:
        ...         print(event.payload)
    """

    def __init__(self, notifier: "InMemoryChangeNotifier", topic: str) -> None:
        self.topic = topic
        self._notifier = notifier
        self._queue: "asyncio.Queue[Any]" = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _deliver(self, payload: Any) -> None:
        self._queue.put_nowait(payload)

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> Any:
        if self._closed and self._queue.empty():
            raise StopAsyncIteration
        payload = await self._queue.get()
        if payload is _CLOSED:
            raise StopAsyncIteration
        return payload

    def pending(self) -> int:
        """Number of payloads queued but not yet consumed."""
        return self._queue.qsize()

    def close(self) -> None:
        """
        Detach from the notifier.

        Payloads already queued are dropped; a consumer blocked in
        ``__anext__`` is woken up and stops iterating.
        """
        if self._closed:
            return
        self._closed = True
        self._notifier._detach(self)
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(_CLOSED)

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.close()


class InMemoryChangeNotifier:
    """
    In-memory implementation of IChangeNotifier port.

    Thread safety: NOT thread-safe (single event loop only)
    Persistence: None. Events published with no subscriber are dropped
    Error handling: Consumers run in their own tasks, a failing consumer
        never reaches the publisher or other subscribers

    Example:
        >>> notifier = InMemoryChangeNotifier()
        >>> subscription = notifier.subscribe("MEAL_UPDATED.user-1")
        >>> await notifier.publish("MEAL_UPDATED.user-1", event)
        1
        >>> await subscription.__anext__() is event
        True
    """

    def __init__(self) -> None:
        """Initialize notifier with empty topic registry."""
        self._subscribers: Dict[str, List[Subscription]] = {}

    def subscribe(self, topic: str) -> Subscription:
        """
        Attach a new subscriber to a topic.

        Args:
            topic: Topic name, e.g. ``MEAL_PLAN_UPDATED.user-1``

        Returns:
            Subscription receiving every payload published from now on
        """
        if not topic:
            raise ValueError("topic is required")

        subscription = Subscription(self, topic)
        self._subscribers.setdefault(topic, []).append(subscription)

        logger.debug(
            "Subscriber attached",
            extra={"topic": topic, "subscriber_count": self.subscriber_count(topic)},
        )
        return subscription

    async def publish(self, topic: str, payload: Any) -> int:
        """
        Deliver a payload to every current subscriber of a topic.

        Args:
            topic: Topic name
            payload: Value handed to each subscriber (typically a ChangeEvent)

        Returns:
            Number of subscribers the payload was queued for

        Note:
            - Subscribers are served in attachment order
            - With no subscribers the payload is discarded (no replay)
        """
        subscribers = list(self._subscribers.get(topic, ()))

        if not subscribers:
            logger.debug("No subscribers for topic", extra={"topic": topic})
            return 0

        for subscription in subscribers:
            subscription._deliver(payload)

        logger.info(
            "Published change",
            extra={
                "topic": topic,
                "event_id": str(getattr(payload, "event_id", "")),
                "subscriber_count": len(subscribers),
            },
        )
        return len(subscribers)

    def subscriber_count(self, topic: str) -> int:
        """
        Get number of subscribers attached to a topic.

        Note: Utility method for testing/debugging
        """
        return len(self._subscribers.get(topic, []))

    def topics(self) -> List[str]:
        """Topics that currently have at least one subscriber."""
        return [topic for topic, subs in self._subscribers.items() if subs]

    def clear(self) -> None:
        """
        Close every subscription and forget all topics.

        Note: Utility method for testing and shutdown
        """
        for subscribers in list(self._subscribers.values()):
            for subscription in list(subscribers):
                subscription.close()
        self._subscribers.clear()
        logger.debug("All subscriptions cleared")

    def _detach(self, subscription: Subscription) -> None:
        subscribers = self._subscribers.get(subscription.topic)
        if not subscribers:
            return
        try:
            subscribers.remove(subscription)
        except ValueError:
            return
        if not subscribers:
            del self._subscribers[subscription.topic]
        logger.debug("Subscriber detached", extra={"topic": subscription.topic})


_notifier: Optional[InMemoryChangeNotifier] = None


def get_change_notifier() -> InMemoryChangeNotifier:
    """Process-wide notifier shared by mutation and subscription paths."""
    global _notifier
    if _notifier is None:
        _notifier = InMemoryChangeNotifier()
    return _notifier


def reset_change_notifier() -> None:
    """Drop the process-wide notifier. Used by tests."""
    global _notifier
    if _notifier is not None:
        _notifier.clear()
    _notifier = None
