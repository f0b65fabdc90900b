"""Event-loop timers: trailing-edge debounce and per-frame batching."""

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Optional, Set, Union

import structlog

logger = structlog.get_logger(__name__)

Callback = Callable[[], Union[None, Awaitable[None]]]


class _Timer:
    def __init__(self, delay: float, callback: Callback) -> None:
        if delay < 0:
            raise ValueError("delay must be >= 0")
        self.delay = delay
        self._callback = callback
        self._handle: Optional[asyncio.TimerHandle] = None
        self._tasks: Set["asyncio.Task[Any]"] = set()

    @property
    def pending(self) -> bool:
        """A callback is scheduled and has not fired yet."""
        return self._handle is not None

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _schedule(self) -> None:
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay, self._fire)

    def _fire(self) -> None:
        self._handle = None
        result = self._callback()
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._done)

    def _done(self, task: "asyncio.Task[Any]") -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("timer.callback_failed", error=str(task.exception()))

    async def flush(self) -> None:
        """Run a pending callback now and wait for it (no-op otherwise)."""
        if self._handle is None:
            return
        self.cancel()
        result = self._callback()
        if inspect.isawaitable(result):
            await result

    async def drain(self) -> None:
        """Wait for callbacks that already fired and are still running."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


class Debouncer(_Timer):
    """Trailing-edge debounce.

    Every ``trigger`` restarts the countdown; the callback runs once,
    ``delay`` seconds after the last trigger.

    Example:
        >>> settle = Debouncer(0.3, editor_session.settle)
        >>> settle.trigger()
        >>> settle.trigger()   # restarts the countdown, still one call
    """

    def trigger(self) -> None:
        self.cancel()
        self._schedule()


class FrameBatcher(_Timer):
    """Coalesces requests into at most one callback per frame.

    Requests made while a frame is already scheduled are absorbed.
    """

    def __init__(self, callback: Callback, frame_interval: float = 1 / 60) -> None:
        super().__init__(frame_interval, callback)

    def request(self) -> None:
        if self._handle is None:
            self._schedule()
