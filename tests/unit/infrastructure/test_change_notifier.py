"""Unit tests for InMemoryChangeNotifier.

Tests focus on:
- Topic isolation
- No replay for late subscribers
- FIFO delivery per subscriber
- Closing subscriptions (explicitly, via async with, via clear)
"""

import asyncio

import pytest

from mealsync.infrastructure.events.in_memory_notifier import (
    InMemoryChangeNotifier,
    get_change_notifier,
    reset_change_notifier,
)


class TestSubscribe:
    """Test subscriber registration."""

    def test_subscribe_registers(self, notifier: InMemoryChangeNotifier) -> None:
        notifier.subscribe("MEAL_UPDATED.user-1")
        notifier.subscribe("MEAL_UPDATED.user-1")

        assert notifier.subscriber_count("MEAL_UPDATED.user-1") == 2
        assert notifier.topics() == ["MEAL_UPDATED.user-1"]

    def test_empty_topic_rejected(self, notifier: InMemoryChangeNotifier) -> None:
        with pytest.raises(ValueError):
            notifier.subscribe("")


class TestPublish:
    """Test publish delivery."""

    @pytest.mark.asyncio
    async def test_no_subscribers(self, notifier: InMemoryChangeNotifier) -> None:
        """Test publishing to an empty topic returns 0 and is not replayed."""
        assert await notifier.publish("MEAL_UPDATED.user-1", "first") == 0

        late = notifier.subscribe("MEAL_UPDATED.user-1")

        assert late.pending() == 0

    @pytest.mark.asyncio
    async def test_every_subscriber_gets_payload(self, notifier: InMemoryChangeNotifier) -> None:
        first = notifier.subscribe("MEAL_UPDATED.user-1")
        second = notifier.subscribe("MEAL_UPDATED.user-1")

        assert await notifier.publish("MEAL_UPDATED.user-1", "payload") == 2

        assert await first.__anext__() == "payload"
        assert await second.__anext__() == "payload"

    @pytest.mark.asyncio
    async def test_topics_isolated(self, notifier: InMemoryChangeNotifier) -> None:
        mine = notifier.subscribe("MEAL_UPDATED.user-1")

        await notifier.publish("MEAL_UPDATED.user-2", "other")
        await notifier.publish("INGREDIENT_UPDATED.user-1", "other kind")

        assert mine.pending() == 0

    @pytest.mark.asyncio
    async def test_fifo_order(self, notifier: InMemoryChangeNotifier) -> None:
        subscription = notifier.subscribe("t")

        for n in range(5):
            await notifier.publish("t", n)

        received = [await subscription.__anext__() for _ in range(5)]
        assert received == [0, 1, 2, 3, 4]

    @pytest.mark.asyncio
    async def test_waiting_consumer_woken(self, notifier: InMemoryChangeNotifier) -> None:
        subscription = notifier.subscribe("t")
        waiter = asyncio.create_task(subscription.__anext__())
        await asyncio.sleep(0)

        await notifier.publish("t", "hello")

        assert await asyncio.wait_for(waiter, timeout=1) == "hello"


class TestClose:
    """Test subscription teardown."""

    @pytest.mark.asyncio
    async def test_close_detaches_and_drops_queue(self, notifier: InMemoryChangeNotifier) -> None:
        subscription = notifier.subscribe("t")
        await notifier.publish("t", "queued")

        subscription.close()
        subscription.close()

        assert subscription.closed
        assert notifier.subscriber_count("t") == 0
        assert notifier.topics() == []
        assert [p async for p in subscription] == []
        assert await notifier.publish("t", "after") == 0

    @pytest.mark.asyncio
    async def test_close_wakes_blocked_consumer(self, notifier: InMemoryChangeNotifier) -> None:
        subscription = notifier.subscribe("t")

        async def consume() -> list:
            return [p async for p in subscription]

        consumer = asyncio.create_task(consume())
        await asyncio.sleep(0)
        subscription.close()

        assert await asyncio.wait_for(consumer, timeout=1) == []

    @pytest.mark.asyncio
    async def test_async_with(self, notifier: InMemoryChangeNotifier) -> None:
        async with notifier.subscribe("t") as subscription:
            assert notifier.subscriber_count("t") == 1

        assert subscription.closed
        assert notifier.subscriber_count("t") == 0

    def test_clear(self, notifier: InMemoryChangeNotifier) -> None:
        first = notifier.subscribe("a")
        second = notifier.subscribe("b")

        notifier.clear()

        assert first.closed and second.closed
        assert notifier.topics() == []


class TestSingleton:
    """Test the process-wide notifier accessors."""

    def test_get_and_reset(self) -> None:
        reset_change_notifier()
        notifier = get_change_notifier()

        assert get_change_notifier() is notifier

        reset_change_notifier()
        assert get_change_notifier() is not notifier
        reset_change_notifier()
