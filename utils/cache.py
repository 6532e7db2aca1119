"""Lightweight in-memory TTL cache for the explorer.

Backs three caches: settled fetch results keyed by query key, the dropdown
option lists (coarse revalidation), and the explore service's response cache.
"""

import time
import threading
from typing import Any, Callable


class TTLCache:
    """Thread-safe in-memory cache with time-to-live (TTL) expiry.

    Entries expire after ``ttl_seconds`` seconds. A maximum of ``maxsize``
    entries are retained; when the cache is full the entry closest to expiry
    is evicted.

    Keys only need to be hashable, so query-key tuples work directly:

        cache = TTLCache(maxsize=128, ttl_seconds=300)
        cache.set(("/api/events", "general", 1, ("all",)), [...])
        rows = cache.get(("/api/events", "general", 1, ("all",)))
    """

    def __init__(self, maxsize: int = 128, ttl_seconds: float = 300.0) -> None:
        """Initialise the cache.

        Args:
            maxsize: Maximum number of entries to store (default 128).
            ttl_seconds: Seconds before a cached entry expires (default 300).
        """
        if maxsize < 1:
            raise ValueError("maxsize must be at least 1")
        self._maxsize = maxsize
        self._ttl = ttl_seconds
        # Maps key -> (value, expires_at)
        self._store: dict[Any, tuple[Any, float]] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def _lookup(self, key: Any) -> tuple[bool, Any]:
        # Caller holds the lock
        entry = self._store.get(key)
        if entry is None:
            self._misses += 1
            return False, None
        value, expires_at = entry
        if time.monotonic() > expires_at:
            del self._store[key]
            self._misses += 1
            return False, None
        self._hits += 1
        return True, value

    def _insert(self, key: Any, value: Any) -> None:
        # Caller holds the lock
        expires_at = time.monotonic() + self._ttl
        if key not in self._store and len(self._store) >= self._maxsize:
            oldest_key = min(self._store, key=lambda k: self._store[k][1])
            del self._store[oldest_key]
        self._store[key] = (value, expires_at)

    def get(self, key: Any) -> Any | None:
        """Return cached value for *key*, or ``None`` if absent or expired.

        Use :meth:`lookup` when ``None`` (or an empty list) is itself a valid
        cached value.
        """
        with self._lock:
            return self._lookup(key)[1]

    def lookup(self, key: Any) -> tuple[bool, Any]:
        """Return ``(found, value)`` so falsy cached values are distinguishable."""
        with self._lock:
            return self._lookup(key)

    def set(self, key: Any, value: Any) -> None:
        """Store *value* under *key* with the configured TTL."""
        with self._lock:
            self._insert(key, value)

    def get_or_load(self, key: Any, loader: Callable[[], Any]) -> Any:
        """Return the cached value, calling *loader* and caching on a miss.

        The loader runs outside the lock; an exception from it propagates and
        nothing is cached.
        """
        found, value = self.lookup(key)
        if found:
            return value
        value = loader()
        self.set(key, value)
        return value

    def clear(self) -> None:
        """Remove all entries from the cache."""
        with self._lock:
            self._store.clear()
            self._hits = 0
            self._misses = 0

    def stats(self) -> dict[str, int]:
        """Return cache statistics.

        Returns:
            Dict with keys ``hits``, ``misses``, and ``size``.
        """
        with self._lock:
            # Purge expired entries before reporting size
            now = time.monotonic()
            expired = [k for k, (_, exp) in self._store.items() if now > exp]
            for k in expired:
                del self._store[k]
            return {
                "hits": self._hits,
                "misses": self._misses,
                "size": len(self._store),
            }

    def delete(self, key: Any) -> None:
        """Remove a single entry from the cache (no-op if not present)."""
        with self._lock:
            self._store.pop(key, None)

    def delete_where(self, predicate: Callable[[Any], bool]) -> int:
        """Remove every entry whose key satisfies *predicate*.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            doomed = [k for k in self._store if predicate(k)]
            for k in doomed:
                del self._store[k]
            return len(doomed)
