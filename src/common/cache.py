"""TTL cache for successful registry responses."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    """A single cache entry with TTL."""

    value: T
    expires_at: float
    created_at: float = field(default_factory=time.time)

    def is_expired(self) -> bool:
        """Check if this entry has expired."""
        return time.time() > self.expires_at


class ResponseCache:
    """TTL cache for upstream JSON responses.

    Keys are built by the HTTP client from the normalized URL and the sorted
    query parameters. Only successful responses are stored; the client never
    hands error responses to ``set``.
    """

    def __init__(self, default_ttl: int = 300, max_entries: int = 1000):
        """Initialize the response cache.

        Args:
            default_ttl: Default time-to-live in seconds.
            max_entries: Entry count above which the oldest entries are evicted.
        """
        self._default_ttl = default_ttl
        self._cache: Dict[str, CacheEntry[Any]] = {}
        self._max_entries = max_entries
        self._last_cleanup = time.time()
        self._cleanup_interval = 30

    def get(self, key: str) -> Optional[Any]:
        """Get a cached value.

        Args:
            key: Cache key.

        Returns:
            The cached value or None if not found/expired.
        """
        self._maybe_cleanup()

        entry = self._cache.get(key)
        if entry is None:
            return None

        if entry.is_expired():
            del self._cache[key]
            return None

        return entry.value

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Cache a value.

        Args:
            key: Cache key.
            value: Value to cache.
            ttl: Optional TTL override in seconds. Zero or less disables caching.
        """
        effective_ttl = ttl if ttl is not None else self._default_ttl
        if effective_ttl <= 0:
            return

        self._maybe_cleanup()
        self._cache[key] = CacheEntry(value=value, expires_at=time.time() + effective_ttl)

        # Evict oldest entries if over limit
        if len(self._cache) > self._max_entries:
            self._evict_oldest(max(1, self._max_entries // 10))

    def __len__(self) -> int:
        return len(self._cache)

    def _maybe_cleanup(self) -> None:
        """Run cleanup if enough time has passed."""
        now = time.time()
        if now - self._last_cleanup > self._cleanup_interval:
            self._cleanup()
            self._last_cleanup = now

    def _cleanup(self) -> None:
        """Remove expired entries."""
        keys_to_remove = [k for k, v in self._cache.items() if v.is_expired()]
        for key in keys_to_remove:
            del self._cache[key]

    def _evict_oldest(self, count: int) -> None:
        """Evict the oldest entries."""
        sorted_keys = sorted(self._cache.keys(), key=lambda k: self._cache[k].created_at)
        for key in sorted_keys[:count]:
            del self._cache[key]
