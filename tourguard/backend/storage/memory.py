"""
storage/memory.py

Process-local EventStore with Redis-compatible semantics.

Used by the test-suite and the "development" environment. Mirrors the Redis
behaviour the security log relies on:
  - a sorted set de-duplicates by member (re-inserting updates the score)
  - ties on score are ordered lexicographically by member
  - list indices are inclusive and accept negative offsets

Thread safety: NOT thread-safe — designed for a single asyncio event loop.
"""

from __future__ import annotations

import logging

from .store import EventStore

logger = logging.getLogger(__name__)


def _slice_bounds(length: int, start: int, end: int) -> tuple[int, int]:
    """Translate Redis inclusive (start, end) into a Python slice."""
    if start < 0:
        start = max(length + start, 0)
    if end < 0:
        end = length + end
    end = min(end, length - 1)
    if start > end:
        return 0, 0
    return start, end + 1


class InMemoryEventStore(EventStore):

    def __init__(self) -> None:
        self._zsets: dict[str, dict[str, float]] = {}
        self._lists: dict[str, list[str]] = {}

    # ------------------------------------------------------------------
    # Sorted sets
    # ------------------------------------------------------------------

    async def sorted_set_insert(self, key: str, score: float, member: str) -> None:
        self._zsets.setdefault(key, {})[member] = score

    async def sorted_set_range_by_score(
        self, key: str, min_score: float, max_score: float
    ) -> list[str]:
        zset = self._zsets.get(key, {})
        matched = [
            (score, member)
            for member, score in zset.items()
            if min_score <= score <= max_score
        ]
        matched.sort()
        return [member for _, member in matched]

    async def sorted_set_delete_range_by_score(
        self, key: str, min_score: float, max_score: float
    ) -> int:
        zset = self._zsets.get(key)
        if not zset:
            return 0
        doomed = [m for m, s in zset.items() if min_score <= s <= max_score]
        for member in doomed:
            del zset[member]
        if doomed:
            logger.debug("Removed %d member(s) from %r", len(doomed), key)
        return len(doomed)

    # ------------------------------------------------------------------
    # Lists
    # ------------------------------------------------------------------

    async def list_push_front(self, key: str, member: str) -> None:
        self._lists.setdefault(key, []).insert(0, member)

    async def list_trim(self, key: str, start: int, end: int) -> None:
        items = self._lists.get(key)
        if items is None:
            return
        lo, hi = _slice_bounds(len(items), start, end)
        self._lists[key] = items[lo:hi]

    async def list_range(self, key: str, start: int, end: int) -> list[str]:
        items = self._lists.get(key, [])
        lo, hi = _slice_bounds(len(items), start, end)
        return items[lo:hi]

    # ------------------------------------------------------------------
    # Introspection (tests / debugging)
    # ------------------------------------------------------------------

    def sorted_set_size(self, key: str) -> int:
        return len(self._zsets.get(key, {}))

    def list_size(self, key: str) -> int:
        return len(self._lists.get(key, []))
