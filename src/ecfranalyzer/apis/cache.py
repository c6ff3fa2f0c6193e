"""
Response cache shared by every fetch in a sync pass.

The eCFR catalogs are requested by several steps of a pass (the title list is
needed both for the latest issue date and for the title catalog), and a
scheduler may run passes close together. ResponseCache keeps the last
successful result for each (resource, params, format) key for a fixed
time-to-live so those repeats never reach the network.

The cache is also the synchronization point for concurrent fetches. Title
workers run as asyncio tasks that all share one cache, so get_or_fetch()
holds a per-key asyncio.Lock while a miss is being filled: the first caller
performs the request, later callers for the same key wait for it and then read
the fresh entry. At most one request per key is ever in flight.

The cache is an explicit object owned by RemoteDataClient and handed to
whoever needs it; there is no module-level cache.

Python Learning Notes:
    - asyncio.Lock only coordinates tasks on one event loop, which is exactly
      the sharing model here (all workers live on the same loop)
    - Plain dict reads and writes between awaits are atomic for asyncio tasks
    - Injecting the clock makes expiry testable without sleeping
"""

import asyncio
import json
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Hashable, Optional, Tuple

CacheKey = Tuple[str, str, str]


@dataclass
class CacheEntry:
    """A cached value and the clock reading when it was stored."""

    value: Any
    stored_at: float


@dataclass
class KeyLock:
    """Per-key lock and the number of callers holding or awaiting it."""

    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class ResponseCache:
    """
    Time-to-live cache with at-most-one in-flight fill per key.

    Attributes:
        ttl_seconds (float): How long an entry stays fresh. Zero disables
            caching; concurrent requests for one key are still serialized.

    Example:
        >>> cache = ResponseCache(ttl_seconds=3600)
        >>> key = ResponseCache.make_key("/api/versioner/v1/titles.json")
        >>> data = await cache.get_or_fetch(key, lambda: fetch_titles())
    """

    def __init__(
        self,
        ttl_seconds: float = 3600.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[Hashable, CacheEntry] = {}
        self._locks: Dict[Hashable, KeyLock] = {}

    @staticmethod
    def make_key(
        resource: str,
        params: Optional[Dict[str, Any]] = None,
        response_format: str = "json",
    ) -> CacheKey:
        """
        Build a cache key from a resource, its query parameters and format.

        Parameters are serialized with sorted keys so that two dicts with the
        same contents always map to the same entry.
        """
        encoded = json.dumps(params or {}, sort_keys=True, default=str)
        return (resource, encoded, response_format)

    def get(self, key: Hashable) -> Tuple[bool, Any]:
        """
        Look up a fresh entry.

        Returns:
            Tuple[bool, Any]: (True, value) on a hit within TTL, otherwise
                (False, None). Expired entries are evicted on lookup.
        """
        entry = self._entries.get(key)
        if entry is None:
            return False, None
        if self._clock() - entry.stored_at >= self.ttl_seconds:
            del self._entries[key]
            return False, None
        return True, entry.value

    def set(self, key: Hashable, value: Any) -> None:
        if self.ttl_seconds <= 0:
            return
        self._entries[key] = CacheEntry(value=value, stored_at=self._clock())

    def invalidate(self, key: Optional[Hashable] = None) -> None:
        """Drop one entry, or every entry when key is None."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)

    async def get_or_fetch(
        self, key: Hashable, factory: Callable[[], Awaitable[Any]]
    ) -> Any:
        """
        Return the cached value for key, filling it with factory() on a miss.

        Concurrent callers for the same key serialize on a per-key lock, so
        factory() runs at most once at a time per key. If factory() raises,
        nothing is cached and the exception propagates to that caller; the
        next waiter then makes its own attempt.

        Args:
            key: A key from make_key().
            factory: Zero-argument coroutine function performing the fetch.

        Returns:
            The cached or freshly fetched value.
        """
        hit, value = self.get(key)
        if hit:
            return value

        key_lock = self._locks.setdefault(key, KeyLock())
        key_lock.users += 1
        try:
            async with key_lock.lock:
                # Another task may have filled the entry while we waited
                hit, value = self.get(key)
                if hit:
                    return value
                value = await factory()
                self.set(key, value)
                return value
        finally:
            key_lock.users -= 1
            if key_lock.users == 0:
                del self._locks[key]

    @property
    def pending_keys(self) -> int:
        """Keys with a fill in progress or callers waiting on one."""
        return len(self._locks)
