"""Explicit lookup cache owned by a single batch run."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Generic, Hashable, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class AdvisoryCache(Generic[K, V]):
    """In-memory map in front of the store.

    The store is authoritative. A miss always falls through to the loader,
    so a cold or cleared cache is correct, only slower. The batch runner
    creates one per run and passes it in; nothing outlives the run.

    Invalidation: call `invalidate(key)` when the store contradicts a cached
    value, or `clear()` to drop everything. With `max_entries` set, the
    oldest entry is evicted first.
    """

    def __init__(self, name: str, max_entries: int | None = None):
        self.name = name
        self.max_entries = max_entries
        self.hits = 0
        self.misses = 0
        self._entries: dict[K, V] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def get(self, key: K) -> V | None:
        if key in self._entries:
            self.hits += 1
            return self._entries[key]
        self.misses += 1
        return None

    def put(self, key: K, value: V) -> None:
        if key not in self._entries and self.max_entries and len(self._entries) >= self.max_entries:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
        self._entries[key] = value

    def invalidate(self, key: K) -> None:
        if self._entries.pop(key, None) is not None:
            logger.debug("Invalidated %s cache entry %r", self.name, key)

    def clear(self) -> None:
        self._entries.clear()

    async def get_or_load(self, key: K, loader: Callable[[], Awaitable[V | None]]) -> V | None:
        """Return the cached value for key, loading and caching it on a miss.

        A loader result of None is returned but not cached.
        """
        if key in self._entries:
            self.hits += 1
            return self._entries[key]
        self.misses += 1
        value = await loader()
        if value is not None:
            self.put(key, value)
        return value

    def stats(self) -> dict[str, int]:
        return {"entries": len(self._entries), "hits": self.hits, "misses": self.misses}
