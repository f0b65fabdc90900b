"""Change notifier adapters."""

from mealsync.infrastructure.events.in_memory_notifier import (
    InMemoryChangeNotifier,
    Subscription,
    get_change_notifier,
    reset_change_notifier,
)

__all__ = [
    "InMemoryChangeNotifier",
    "Subscription",
    "get_change_notifier",
    "reset_change_notifier",
]
