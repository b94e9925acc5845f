# ABOUTME: In-memory TTL cache with per-key in-flight deduplication for async fetches
# ABOUTME: Concurrent misses share one task; failures are never stored; expiry is checked lazily on read

import asyncio
import time
from collections.abc import Awaitable, Callable, Hashable
from dataclasses import dataclass
from typing import Any

from paldex_harvest.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class CacheEntry:
    value: Any
    fetched_at: float

    def is_fresh(self, now: float, ttl_seconds: float) -> bool:
        return now - self.fetched_at < ttl_seconds


def _consume_outcome(task: asyncio.Task) -> None:
    if not task.cancelled():
        task.exception()


class TTLCache:
    """Keyed cache of fetched values.

    Entries are written only after a successful fetch. While a fetch for a
    key is running, other callers asking for the same key await the same
    task instead of starting a second request. A caller that is cancelled
    does not cancel the shared task.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[Hashable, CacheEntry] = {}
        self._in_flight: dict[Hashable, asyncio.Task] = {}

    def get(self, key: Hashable, ttl_seconds: float) -> Any | None:
        """Return the cached value if it is still fresh, else None."""
        entry = self._entries.get(key)
        if entry is None or not entry.is_fresh(self._clock(), ttl_seconds):
            return None
        return entry.value

    def entry(self, key: Hashable) -> CacheEntry | None:
        return self._entries.get(key)

    async def get_or_fetch(
        self,
        key: Hashable,
        ttl_seconds: float,
        fetcher: Callable[[], Awaitable[Any]],
        *,
        force: bool = False,
    ) -> Any:
        """Return a fresh cached value or run ``fetcher`` once for the key.

        Args:
            key: Cache key
            ttl_seconds: Maximum age of a usable entry
            fetcher: Zero-argument coroutine function producing the value
            force: Skip the freshness check and fetch again

        Returns:
            The cached or freshly fetched value

        Raises:
            Whatever ``fetcher`` raises; nothing is cached in that case
        """
        if not force:
            entry = self._entries.get(key)
            if entry is not None and entry.is_fresh(self._clock(), ttl_seconds):
                logger.debug("Cache hit", key=str(key))
                return entry.value

        task = self._in_flight.get(key)
        if task is None:
            logger.debug("Cache miss", key=str(key), forced=force)
            task = asyncio.ensure_future(self._run(key, fetcher))
            self._in_flight[key] = task
            # Mark the outcome as retrieved even if every waiter was cancelled
            task.add_done_callback(_consume_outcome)
        else:
            logger.debug("Joining in-flight fetch", key=str(key))

        return await asyncio.shield(task)

    async def _run(self, key: Hashable, fetcher: Callable[[], Awaitable[Any]]) -> Any:
        try:
            value = await fetcher()
            self._entries[key] = CacheEntry(value=value, fetched_at=self._clock())
            return value
        finally:
            self._in_flight.pop(key, None)

    def invalidate(self, key: Hashable) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
