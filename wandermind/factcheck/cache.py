"""In-memory cache for fact-check results."""

from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    """Cached result with metadata."""

    value: T
    cached_at: datetime
    ttl_seconds: int

    def is_fresh(self, now: datetime) -> bool:
        """Check if cache entry is still valid."""
        return (now - self.cached_at) < timedelta(seconds=self.ttl_seconds)


class FactCheckCache:
    """TTL cache with a size bound; the oldest entry is evicted first.

    Keys look like ``location:<name>`` or ``price:<name>``.
    """

    def __init__(
        self,
        ttl_seconds: int = 24 * 3600,
        max_entries: int = 1024,
        now_fn: Callable[[], datetime] | None = None,
    ) -> None:
        self._ttl_seconds = ttl_seconds
        self._max_entries = max_entries
        self._now = now_fn or datetime.now
        self._entries: OrderedDict[str, CacheEntry[Any]] = OrderedDict()

    @staticmethod
    def location_key(name: str) -> str:
        return f"location:{name}"

    @staticmethod
    def price_key(name: str) -> str:
        return f"price:{name}"

    def get(self, key: str) -> Any | None:
        """Get cached value if fresh, None otherwise."""
        entry = self._entries.get(key)
        if entry and entry.is_fresh(self._now()):
            return entry.value
        elif entry:
            # Expired - remove
            del self._entries[key]
        return None

    def set(self, key: str, value: Any) -> None:
        """Store value, evicting the oldest entries beyond the size bound."""
        self._entries.pop(key, None)
        self._entries[key] = CacheEntry(
            value=value, cached_at=self._now(), ttl_seconds=self._ttl_seconds
        )
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
