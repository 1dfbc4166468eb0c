import asyncio
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple


Clock = Callable[[], float]


@dataclass
class CacheEntry:
    value: Any
    expires_at: float


class TTLCache:
    """In-memory async TTL cache with an LRU size bound.

    Used for upstream token and chain lists, which are large and change
    slowly.
    """

    def __init__(self, default_ttl: int = 300, max_size: int = 1000, clock: Optional[Clock] = None):
        self.default_ttl = default_ttl
        self.max_size = max_size
        self._clock = clock or time.monotonic
        self._cache: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = asyncio.Lock()
        self._fetch_locks: Dict[str, asyncio.Lock] = {}

    async def get(self, key: str) -> Optional[Any]:
        async with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None

            if self._clock() >= entry.expires_at:
                del self._cache[key]
                return None

            self._cache.move_to_end(key)
            return entry.value

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        async with self._lock:
            ttl = ttl or self.default_ttl
            self._cache[key] = CacheEntry(value=value, expires_at=self._clock() + ttl)
            self._cache.move_to_end(key)

            while len(self._cache) > self.max_size:
                self._cache.popitem(last=False)

    async def get_or_fetch(
        self,
        key: str,
        fetch: Callable[[], Awaitable[Optional[Any]]],
        ttl: Optional[int] = None,
    ) -> Optional[Any]:
        """Return the cached value or run ``fetch`` once for all concurrent callers.

        A ``None`` result from ``fetch`` is returned but not cached. Exceptions
        propagate and leave the key uncached.
        """
        cached = await self.get(key)
        if cached is not None:
            return cached

        lock = self._fetch_locks.setdefault(key, asyncio.Lock())
        async with lock:
            cached = await self.get(key)
            if cached is not None:
                return cached

            value = await fetch()
            if value is not None:
                await self.set(key, value, ttl)
            return value

    def size(self) -> int:
        return len(self._cache)


@dataclass(frozen=True)
class PriceCacheEntry:
    price: Decimal
    resolved_at: float


class PriceCache:
    """Time-bounded USD unit price cache keyed by ``(chain_id, lowercase address)``.

    Entries are frozen and replaced wholesale on ``put``; staleness is checked
    at read time, so there is no eviction sweep. A plain lock guards the dict
    so the cache can be shared across event loops and worker threads.
    """

    DEFAULT_TTL_SECONDS = 300

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS, clock: Optional[Clock] = None):
        self.ttl_seconds = ttl_seconds
        self._clock = clock or time.monotonic
        self._entries: Dict[Tuple[str, str], PriceCacheEntry] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _key(chain_id: str, token_address: str) -> Tuple[str, str]:
        return (str(chain_id), token_address.lower())

    def get(self, chain_id: str, token_address: str) -> Optional[Decimal]:
        with self._lock:
            entry = self._entries.get(self._key(chain_id, token_address))
        if entry is None:
            return None
        if self._clock() - entry.resolved_at >= self.ttl_seconds:
            return None
        return entry.price

    def put(self, chain_id: str, token_address: str, price: Decimal) -> PriceCacheEntry:
        entry = PriceCacheEntry(price=price, resolved_at=self._clock())
        with self._lock:
            self._entries[self._key(chain_id, token_address)] = entry
        return entry

    def __len__(self) -> int:
        return len(self._entries)
