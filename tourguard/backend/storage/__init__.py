"""storage/__init__.py"""
from .memory import InMemoryEventStore
from .redis_store import RedisEventStore
from .store import EventStore


def create_store(url: str) -> EventStore:
    """Build an EventStore from a REDIS_URL-style string ("memory://" → in-process)."""
    if url.startswith("memory://"):
        return InMemoryEventStore()
    return RedisEventStore.from_url(url)


__all__ = ["EventStore", "InMemoryEventStore", "RedisEventStore", "create_store"]
