"""Client synchronization controller.

Keeps one client-side collection (e.g. the user's meal plans) in step with
the server. While subscribed, every delivery on the owner's topic is
examined: changes this session caused itself are discarded, anything else
triggers exactly one re-fetch of the collection and an info notification.
"""

import asyncio
import inspect
from enum import Enum
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, Protocol

import structlog

from mealsync.application.entity_service import EntityService
from mealsync.application.ownership import CallerContext
from mealsync.application.subscription_gateway import Delivery
from mealsync.client.notifications import NotificationCenter
from mealsync.client.session import ClientSession

logger = structlog.get_logger(__name__)

REMOTE_CHANGE_MESSAGE = "Data changed remotely"
REFRESH_FAILED_MESSAGE = "Could not refresh data"
STREAM_FAILED_MESSAGE = "Live updates disconnected"

Refetch = Callable[[], Awaitable[Any]]
Replace = Callable[[Any], Any]


class IEventSource(Protocol):
    """Opens the change feed of one entity kind for an owner."""

    def open(self, owner_id: str) -> AsyncIterator[Delivery]:
        ...


class GatewayEventSource:
    """Event source backed by an in-process entity service."""

    def __init__(self, service: EntityService[Any], caller: CallerContext) -> None:
        self._service = service
        self._caller = caller

    def open(self, owner_id: str) -> AsyncIterator[Delivery]:
        return self._service.subscribe(self._caller, owner_id)


class SyncState(str, Enum):
    IDLE = "idle"
    SUBSCRIBED = "subscribed"


class SyncController:
    """Echo-suppressing re-fetch loop for one collection.

    States:
        IDLE: No owner known, or stopped
        SUBSCRIBED: Listening on the owner's topic

    Example:
        >>> controller = SyncController(
        ...     session,
        ...     GatewayEventSource(plans_service, caller),
        ...     refetch=lambda: client.fetch_plans(session.owner_id),
        ...     on_replace=view.show_plans,
        ...     notifications=center,
        ... )
        >>> await controller.start()
    """

    def __init__(
        self,
        session: ClientSession,
        event_source: IEventSource,
        refetch: Refetch,
        on_replace: Replace,
        notifications: Optional[NotificationCenter] = None,
    ) -> None:
        self.session = session
        self._event_source = event_source
        self._refetch = refetch
        self._on_replace = on_replace
        self.notifications = notifications or NotificationCenter()
        self.state = SyncState.IDLE
        self.refetch_count = 0
        self._stream: Optional[AsyncIterator[Delivery]] = None
        self._task: Optional["asyncio.Task[None]"] = None

    async def start(self) -> None:
        """Subscribe for the session owner; stays IDLE while it is unknown."""
        if self.state is SyncState.SUBSCRIBED:
            return
        owner_id = self.session.owner_id
        if owner_id is None:
            logger.debug("sync.idle", reason="owner unknown")
            return

        self._stream = self._event_source.open(owner_id)
        self.state = SyncState.SUBSCRIBED
        self._task = asyncio.create_task(self._consume(self._stream))
        logger.info("sync.subscribed", owner_id=owner_id, client_id=self.session.client_id)

    async def set_owner(self, owner_id: Optional[str]) -> None:
        """Switch owner (login/logout), re-subscribing as needed."""
        if owner_id == self.session.owner_id and self.state is SyncState.SUBSCRIBED:
            return
        await self.stop()
        self.session.owner_id = owner_id
        await self.start()

    async def handle(self, delivery: Delivery) -> bool:
        """Process one delivery.

        Returns:
            True if the collection was re-fetched and replaced
        """
        if self.session.is_own(delivery.source_client_id):
            logger.debug("sync.echo_discarded", kind=delivery.kind.value)
            return False

        try:
            records = await self._refetch()
            self.refetch_count += 1
            replaced = self._on_replace(records)
            if inspect.isawaitable(replaced):
                await replaced
        except Exception as e:
            logger.error("sync.refetch_failed", error=str(e))
            self.notifications.error(REFRESH_FAILED_MESSAGE)
            return False

        self.notifications.info(REMOTE_CHANGE_MESSAGE)
        return True

    async def stop(self) -> None:
        """Unsubscribe and return to IDLE."""
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._close_stream()
        if self.state is SyncState.SUBSCRIBED:
            logger.info("sync.stopped", client_id=self.session.client_id)
        self.state = SyncState.IDLE

    async def _consume(self, stream: AsyncIterator[Delivery]) -> None:
        try:
            async for delivery in stream:
                await self.handle(delivery)
        except Exception as e:
            logger.error("sync.stream_failed", client_id=self.session.client_id, error=str(e))
            self.notifications.error(STREAM_FAILED_MESSAGE)
        finally:
            if self._stream is stream:
                self._close_stream()
                self.state = SyncState.IDLE

    def _close_stream(self) -> None:
        stream, self._stream = self._stream, None
        close = getattr(stream, "close", None)
        if close is not None:
            close()
