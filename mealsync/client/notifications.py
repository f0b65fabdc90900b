"""User-facing notifications (toasts) raised by client components."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional

import structlog

logger = structlog.get_logger(__name__)

RetryAction = Callable[[], Awaitable[Any]]


class Severity(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    """A message for the user, optionally with an action (e.g. Retry)."""

    message: str
    severity: Severity = Severity.INFO
    action_label: Optional[str] = None
    action: Optional[RetryAction] = None


class NotificationCenter:
    """Collects notifications and forwards them to registered listeners.

    Example:
        >>> center = NotificationCenter()
        >>> center.add_listener(toaster.show)
        >>> center.info("Data changed remotely")
    """

    def __init__(self) -> None:
        self.history: List[Notification] = []
        self._listeners: List[Callable[[Notification], None]] = []

    def add_listener(self, listener: Callable[[Notification], None]) -> None:
        self._listeners.append(listener)

    def notify(self, notification: Notification) -> Notification:
        self.history.append(notification)
        logger.info(
            "notification",
            severity=notification.severity.value,
            message=notification.message,
        )
        for listener in list(self._listeners):
            try:
                listener(notification)
            except Exception as e:
                logger.error("notification.listener_failed", error=str(e))
        return notification

    def info(self, message: str) -> Notification:
        return self.notify(Notification(message, Severity.INFO))

    def success(self, message: str) -> Notification:
        return self.notify(Notification(message, Severity.SUCCESS))

    def error(self, message: str, retry: Optional[RetryAction] = None) -> Notification:
        return self.notify(
            Notification(
                message,
                Severity.ERROR,
                action_label="Retry" if retry is not None else None,
                action=retry,
            )
        )

    def last(self) -> Optional[Notification]:
        return self.history[-1] if self.history else None
