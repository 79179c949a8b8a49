"""
Bounded TTL cache for generated code examples.

Eviction is FIFO by insertion order: when the cache is full, the entry
inserted first is dropped. This approximates LRU without tracking recency;
a cache hit does not move an entry.
"""

import threading
import time
from collections import OrderedDict
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Generic, TypeVar

import structlog

from ..error_handling import EngineStats

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def _now_ms() -> float:
    return time.time() * 1000


def cache_key(api_name: str, path: str, method: str) -> str:
    """Join the (api, path, method) triple into a single cache key."""
    return f"{api_name}:{path}:{method.upper()}"


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    example: T
    created_at: float


class ExampleCache(Generic[T]):
    """Keyed store with a capacity bound and per-entry time to live."""

    def __init__(
        self,
        capacity: int = 100,
        ttl_ms: float = 5 * 60 * 1000,
        clock: Callable[[], float] = _now_ms,
        stats: EngineStats | None = None,
    ) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be greater than 0")
        self.capacity = capacity
        self.ttl_ms = ttl_ms
        self.clock = clock
        self.stats = stats
        self._entries: OrderedDict[str, CacheEntry[T]] = OrderedDict()
        # Held across the build so one key is never built twice concurrently.
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def keys(self) -> Iterator[str]:
        """Keys in insertion (eviction) order."""
        return iter(list(self._entries))

    def entry(self, key: str) -> CacheEntry[T] | None:
        """Return the raw entry for ``key`` without checking freshness."""
        return self._entries.get(key)

    def get_or_build(self, key: str, builder: Callable[[], T]) -> T:
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                if self.clock() - entry.created_at < self.ttl_ms:
                    self._count("cache_hits")
                    logger.debug("Example cache hit", key=key)
                    return entry.example
                del self._entries[key]
                self._count("cache_expirations")
                logger.debug("Example cache entry expired", key=key)

            self._count("cache_misses")
            example = builder()

            if len(self._entries) >= self.capacity:
                evicted, _ = self._entries.popitem(last=False)
                self._count("cache_evictions")
                logger.debug("Example cache eviction", evicted=evicted)

            self._entries[key] = CacheEntry(example=example, created_at=self.clock())
            return example

    def invalidate(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> int:
        """Remove all entries, returning how many were held."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            return count

    def _count(self, counter: str) -> None:
        if self.stats is not None:
            self.stats.incr(counter)
