"""Ports implemented by the infrastructure layer."""

from mealsync.domain.shared.ports.auth_service import Credentials, IAuthService
from mealsync.domain.shared.ports.change_notifier import IChangeNotifier, ISubscription
from mealsync.domain.shared.ports.record_store import IRecordStore

__all__ = [
    "Credentials",
    "IAuthService",
    "IChangeNotifier",
    "IRecordStore",
    "ISubscription",
]
