"""Bounded in-memory TTL cache for search responses."""

import threading
import time
from typing import Any, Iterable

from cachetools import TLRUCache

DEFAULT_MAXSIZE = 1024


def _now() -> float:
    return time.monotonic()


def _expires_at(key: str, value: tuple[Any, float], now: float) -> float:
    return now + value[1]


class SearchCache:
    """
    Search responses keyed by request parameters.

    Entries expire after their TTL and the least-soon-expiring entries are
    evicted once maxsize is reached, so memory stays bounded however many
    distinct queries arrive.
    """

    def __init__(self, default_ttl: float = 300.0, maxsize: int = DEFAULT_MAXSIZE):
        self.default_ttl = default_ttl
        self._entries: TLRUCache[str, tuple[Any, float]] = TLRUCache(
            maxsize=maxsize, ttu=_expires_at, timer=_now
        )
        # cachetools caches are not thread-safe
        self._lock = threading.Lock()

    @property
    def maxsize(self) -> int:
        return int(self._entries.maxsize)

    def set(self, key: str, data: Any, ttl: float | None = None) -> None:
        with self._lock:
            self._entries[key] = (data, ttl or self.default_ttl)

    def get(self, key: str) -> Any | None:
        """Return cached data, or None when missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
        return entry[0] if entry is not None else None

    def has(self, key: str) -> bool:
        return self.get(key) is not None

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def cleanup(self) -> int:
        """Drop expired entries. Returns how many were removed."""
        with self._lock:
            return len(self._entries.expire())

    def stats(self) -> dict[str, Any]:
        with self._lock:
            self._entries.expire()
            return {"size": len(self._entries), "keys": list(self._entries)}


def generate_cache_key(
    q: str = "",
    tags: Iterable[str] | None = None,
    status: str = "",
    page: int = 1,
    limit: int = 10,
    sort: str = "-publishedDate",
) -> str:
    """Build a cache key; tag order does not matter."""
    return ":".join(
        [
            "search",
            (q or "").lower().strip(),
            ",".join(sorted(tags or [])),
            status or "",
            str(page),
            str(limit),
            sort,
        ]
    )
