"""
In-memory TTL cache.

Each service owns its own instance; nothing here is module-level state.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

K = TypeVar("K")
V = TypeVar("V")


@dataclass
class CacheEntry(Generic[V]):
    """Cache entry with value and metadata."""

    value: V
    created_at: float
    ttl_seconds: float

    def age(self, now: float) -> float:
        return max(0.0, now - self.created_at)

    def is_expired(self, now: float) -> bool:
        return now >= self.created_at + self.ttl_seconds


class TTLCache(Generic[K, V]):
    """
    Keyed cache whose entries expire a fixed time after they were stored.

    Args:
        ttl_seconds: Lifetime of every entry.
        clock: Monotonic time source, replaceable in tests.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[K, CacheEntry[V]] = {}

    def _live_entry(self, key: K) -> CacheEntry[V] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._entries[key]
            return None
        return entry

    def get(self, key: K) -> V | None:
        """Return the cached value, or None if absent or expired."""
        entry = self._live_entry(key)
        return entry.value if entry else None

    def get_with_age(self, key: K) -> tuple[V, float] | None:
        """Return ``(value, age_seconds)`` for a live entry."""
        entry = self._live_entry(key)
        if entry is None:
            return None
        return entry.value, entry.age(self._clock())

    def set(self, key: K, value: V) -> None:
        self._entries[key] = CacheEntry(
            value=value,
            created_at=self._clock(),
            ttl_seconds=self.ttl_seconds,
        )

    def delete(self, key: K) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        """Drop every entry."""
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return self._live_entry(key) is not None  # type: ignore[arg-type]

    def __len__(self) -> int:
        return len(self._entries)
