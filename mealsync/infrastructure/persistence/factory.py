"""Record store factory.

Environment-based store selection.
Strategy:
- .env (runtime): REPOSITORY_BACKEND=mongodb (production persistence)
- tests: REPOSITORY_BACKEND=inmemory (fast, isolated)
- Default: inmemory (safe fallback if env vars not set)

Usage:
    from mealsync.infrastructure.persistence.factory import get_record_stores

    stores = get_record_stores()
    plans = await stores[EntityKind.MEAL_PLAN].find({"user_id": "u1"})
"""

import logging
import os
from typing import Any, Dict, Optional

from mealsync.domain.catalog.kinds import EntityKind
from mealsync.domain.shared.ports.record_store import IRecordStore
from mealsync.infrastructure.config import get_mongodb_uri
from mealsync.infrastructure.persistence.in_memory.record_store import InMemoryRecordStore

logger = logging.getLogger(__name__)

RecordStores = Dict[EntityKind, IRecordStore[Any]]


def create_record_stores(backend: Optional[str] = None) -> RecordStores:
    """Create one record store per entity kind.

    Args:
        backend: ``inmemory`` or ``mongodb``; defaults to REPOSITORY_BACKEND

    Returns:
        Mapping of entity kind to store

    Raises:
        ValueError: mongodb selected but MONGODB_URI not set, or unknown backend

    Example:
        # In .env (production):
        REPOSITORY_BACKEND=mongodb
        MONGODB_URI=mongodb://localhost:27017
    """
    mode = (backend or os.getenv("REPOSITORY_BACKEND", "inmemory")).lower()

    if mode == "mongodb":
        mongodb_uri = get_mongodb_uri()
        if not mongodb_uri:
            raise ValueError(
                "REPOSITORY_BACKEND=mongodb but MONGODB_URI not set. "
                "Set MONGODB_URI in .env or use REPOSITORY_BACKEND=inmemory"
            )

        from motor.motor_asyncio import AsyncIOMotorClient

        from mealsync.infrastructure.persistence.mongodb.record_store import MongoRecordStore

        client: AsyncIOMotorClient = AsyncIOMotorClient(mongodb_uri)
        logger.info("Using MongoDB record stores")
        return {kind: MongoRecordStore(kind, client=client) for kind in EntityKind}

    if mode != "inmemory":
        raise ValueError(f"Unknown REPOSITORY_BACKEND: {mode!r} (use inmemory or mongodb)")

    logger.info("Using in-memory record stores")
    return {kind: InMemoryRecordStore(kind) for kind in EntityKind}


# Singleton instance (lazy initialization)
_record_stores: Optional[RecordStores] = None


def get_record_stores() -> RecordStores:
    """Get singleton record stores."""
    global _record_stores
    if _record_stores is None:
        _record_stores = create_record_stores()
    return _record_stores


def reset_record_stores() -> None:
    """Reset singleton stores.

    Useful for testing to force re-creation with different env vars.
    """
    global _record_stores
    _record_stores = None
