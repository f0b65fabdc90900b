"""MongoDB persistence adapters (motor)."""

from mealsync.infrastructure.persistence.mongodb.record_store import (
    COLLECTION_NAMES,
    MongoRecordStore,
)

__all__ = ["COLLECTION_NAMES", "MongoRecordStore"]
