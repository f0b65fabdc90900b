"""In-memory persistence adapters."""

from mealsync.infrastructure.persistence.in_memory.record_store import InMemoryRecordStore

__all__ = ["InMemoryRecordStore"]
