"""
storage/store.py

Async contract over an ordered key-value store.

The security log only needs two Redis-shaped primitives:
  - a sorted set (insert, range-by-score, delete-range-by-score)
  - a list (push-front, trim, range)

Scores are inclusive at both ends. float("-inf") / float("inf") select an
unbounded side. List indices follow Redis semantics: inclusive, and negative
indices count back from the tail (-1 is the last element).
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class EventStore(ABC):
    """Contract every store backend must satisfy."""

    @abstractmethod
    async def sorted_set_insert(self, key: str, score: float, member: str) -> None:
        ...

    @abstractmethod
    async def sorted_set_range_by_score(
        self, key: str, min_score: float, max_score: float
    ) -> list[str]:
        """Members with min_score <= score <= max_score, ascending by score."""
        ...

    @abstractmethod
    async def sorted_set_delete_range_by_score(
        self, key: str, min_score: float, max_score: float
    ) -> int:
        """Blind delete; returns the number of members removed."""
        ...

    @abstractmethod
    async def list_push_front(self, key: str, member: str) -> None:
        ...

    @abstractmethod
    async def list_trim(self, key: str, start: int, end: int) -> None:
        ...

    @abstractmethod
    async def list_range(self, key: str, start: int, end: int) -> list[str]:
        ...

    async def close(self) -> None:
        """Release connections. Backends without resources need not override."""
        return None

    def __repr__(self) -> str:
        return f"<{type(self).__name__}>"
