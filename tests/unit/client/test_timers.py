"""Unit tests for Debouncer and FrameBatcher."""

import asyncio
from typing import List

import pytest

from mealsync.client.timers import Debouncer, FrameBatcher


class TestDebouncer:
    """Test trailing-edge debounce."""

    def test_negative_delay(self) -> None:
        with pytest.raises(ValueError):
            Debouncer(-1, lambda: None)

    @pytest.mark.asyncio
    async def test_burst_coalesced(self) -> None:
        """Test several triggers inside the delay produce one call."""
        calls: List[int] = []
        debouncer = Debouncer(0.02, lambda: calls.append(1))

        for _ in range(5):
            debouncer.trigger()
            await asyncio.sleep(0.005)

        assert calls == []
        await asyncio.sleep(0.1)
        assert calls == [1]
        assert not debouncer.pending

    @pytest.mark.asyncio
    async def test_cancel(self) -> None:
        calls: List[int] = []
        debouncer = Debouncer(0.01, lambda: calls.append(1))

        debouncer.trigger()
        debouncer.cancel()
        await asyncio.sleep(0.05)

        assert calls == []

    @pytest.mark.asyncio
    async def test_flush_runs_now(self) -> None:
        calls: List[int] = []

        async def callback() -> None:
            calls.append(1)

        debouncer = Debouncer(10, callback)
        debouncer.trigger()

        await debouncer.flush()

        assert calls == [1]
        assert not debouncer.pending

    @pytest.mark.asyncio
    async def test_flush_without_pending_is_noop(self) -> None:
        calls: List[int] = []
        debouncer = Debouncer(10, lambda: calls.append(1))

        await debouncer.flush()

        assert calls == []

    @pytest.mark.asyncio
    async def test_async_callback_drained(self) -> None:
        done = asyncio.Event()

        async def callback() -> None:
            await asyncio.sleep(0.01)
            done.set()

        debouncer = Debouncer(0, callback)
        debouncer.trigger()
        await asyncio.sleep(0.001)

        await debouncer.drain()

        assert done.is_set()


class TestFrameBatcher:
    """Test per-frame coalescing."""

    @pytest.mark.asyncio
    async def test_one_callback_per_frame(self) -> None:
        calls: List[int] = []
        batcher = FrameBatcher(lambda: calls.append(1), frame_interval=0.01)

        for _ in range(10):
            batcher.request()

        await asyncio.sleep(0.05)
        assert calls == [1]

        batcher.request()
        await asyncio.sleep(0.05)
        assert calls == [1, 1]
