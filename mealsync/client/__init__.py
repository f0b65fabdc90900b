"""Client-side synchronization: session, transport, sync loop, plan editing."""

from mealsync.client.editor_session import PlanEditorSession, SaveState
from mealsync.client.notifications import Notification, NotificationCenter, Severity
from mealsync.client.session import ClientSession
from mealsync.client.sync_controller import (
    GatewayEventSource,
    IEventSource,
    SyncController,
    SyncState,
)
from mealsync.client.transport import GraphQLHttpClient, TransportError

__all__ = [
    "ClientSession",
    "GatewayEventSource",
    "GraphQLHttpClient",
    "IEventSource",
    "Notification",
    "NotificationCenter",
    "PlanEditorSession",
    "SaveState",
    "Severity",
    "SyncController",
    "SyncState",
    "TransportError",
]
