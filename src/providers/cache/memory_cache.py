"""In-memory cache provider using cachetools.TLRUCache.

Simple, fast cache suitable for development and single-process deployments.
Can be swapped for Redis or another backend via the ICacheProvider interface.

Entries live under ``(namespace, key)`` tuples and carry their own TTL, so
a search page (1 hour) and an album listing (24 hours) can share one store.
Expiry is enforced three ways that coexist safely:

- reads drop expired entries before looking up (lazy eviction);
- writes let ``TLRUCache`` drop expired entries before inserting;
- an optional background task calls :meth:`MemoryCacheProvider.sweep`
  at a fixed interval so idle entries do not linger.

Removing an entry that another path already removed is a no-op.
"""

from __future__ import annotations

import asyncio
import contextlib
import math
import time
from dataclasses import dataclass
from typing import Any, Callable

import structlog
from cachetools import TLRUCache

from src.interfaces.cache_provider import ICacheProvider

logger = structlog.get_logger(logger_name=__name__)


@dataclass(frozen=True)
class CacheEntry:
    """A stored value plus the bookkeeping needed to expire it."""

    namespace: str
    key: str
    value: Any
    created_at: float
    ttl: float

    @property
    def expires_at(self) -> float:
        return self.created_at + self.ttl


def _entry_expiry(_key: tuple[str, str], entry: CacheEntry, _now: float) -> float:
    """``TLRUCache`` time-to-use callback: each entry expires on its own clock.

    TLRUCache drops an item once ``now >= ttu``; the entry must stay readable
    at exactly ``created_at + ttl``, so the bound is nudged one ulp past it.
    """
    return math.nextafter(entry.expires_at, math.inf)


class MemoryCacheProvider(ICacheProvider):
    """In-memory namespaced TTL cache backed by ``cachetools.TLRUCache``.

    Parameters
    ----------
    max_size:
        Maximum number of entries before the least-recently-used entry
        is evicted.
    ttl:
        Default time-to-live in seconds for namespaces without their own
        default.
    namespace_ttls:
        Optional per-namespace default TTLs, e.g.
        ``{"search": 3600, "album": 86400}``.
    clock:
        Monotonic time source in seconds.  Tests inject a fake clock to
        advance virtual time.
    """

    def __init__(
        self,
        max_size: int = 1000,
        ttl: float = 3600.0,
        namespace_ttls: dict[str, float] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._default_ttl = ttl
        self._namespace_ttls = dict(namespace_ttls or {})
        self._clock = clock
        self._store: TLRUCache[tuple[str, str], CacheEntry] = TLRUCache(
            maxsize=max_size, ttu=_entry_expiry, timer=clock
        )
        self._sweeper: asyncio.Task | None = None

    # ------------------------------------------------------------------
    # ICacheProvider implementation
    # ------------------------------------------------------------------

    async def get(self, namespace: str, key: str) -> Any | None:
        """Retrieve the cached value, or ``None`` if missing/expired."""
        try:
            self._store.expire()
            entry = self._store.get((namespace, key))
        except Exception as exc:
            logger.warning("cache_get_failed", namespace=namespace, key=key, error=str(exc))
            return None

        if entry is None:
            logger.debug("cache_miss", namespace=namespace, key=key)
            return None
        logger.debug("cache_hit", namespace=namespace, key=key)
        return entry.value

    async def set(
        self, namespace: str, key: str, value: Any, ttl: float | None = None
    ) -> None:
        """Store *value* under ``(namespace, key)``, replacing any previous entry."""
        effective_ttl = self.ttl_for(namespace) if ttl is None else ttl
        entry = CacheEntry(
            namespace=namespace,
            key=key,
            value=value,
            created_at=self._clock(),
            ttl=effective_ttl,
        )
        try:
            # Drop the old entry first so a negative TTL (which TLRUCache
            # refuses to store) still removes a stale value.
            self._store.pop((namespace, key), None)
            self._store[(namespace, key)] = entry
        except Exception as exc:
            logger.warning("cache_set_failed", namespace=namespace, key=key, error=str(exc))
            return
        logger.debug("cache_set", namespace=namespace, key=key, ttl=effective_ttl)

    async def delete(self, namespace: str, key: str) -> None:
        """Remove ``(namespace, key)`` from the cache (no-op if absent)."""
        try:
            self._store.pop((namespace, key), None)
        except Exception as exc:
            logger.warning("cache_delete_failed", namespace=namespace, key=key, error=str(exc))
            return
        logger.debug("cache_delete", namespace=namespace, key=key)

    async def clear(self, namespace: str | None = None) -> None:
        """Remove every entry in *namespace*, or the whole cache."""
        try:
            if namespace is None:
                self._store.clear()
            else:
                self._store.expire()
                doomed = [k for k in list(self._store.keys()) if k[0] == namespace]
                for cache_key in doomed:
                    self._store.pop(cache_key, None)
        except Exception as exc:
            logger.warning("cache_clear_failed", namespace=namespace, error=str(exc))
            return
        logger.info("cache_clear", namespace=namespace or "*")

    async def exists(self, namespace: str, key: str) -> bool:
        """Return ``True`` if ``(namespace, key)`` is present and not expired."""
        try:
            return (namespace, key) in self._store
        except Exception as exc:
            logger.warning("cache_exists_failed", namespace=namespace, key=key, error=str(exc))
            return False

    # ------------------------------------------------------------------
    # Eviction
    # ------------------------------------------------------------------

    def ttl_for(self, namespace: str) -> float:
        """Default TTL in seconds for *namespace*."""
        return self._namespace_ttls.get(namespace, self._default_ttl)

    def sweep(self) -> int:
        """Physically remove every expired entry; return how many were removed."""
        try:
            # expire() hands back the (key, value) pairs it dropped.
            removed = len(list(self._store.expire()))
        except Exception as exc:
            logger.error("cache_sweep_failed", error=str(exc))
            return 0

        if removed:
            logger.info("cache_sweep", removed=removed, remaining=len(self._store))
        return removed

    def start_sweeper(self, interval: float = 3600.0) -> asyncio.Task:
        """Schedule :meth:`sweep` every *interval* seconds on the running loop."""
        if self._sweeper is not None and not self._sweeper.done():
            return self._sweeper
        self._sweeper = asyncio.create_task(self._sweep_loop(interval), name="cache-sweeper")
        logger.info("cache_sweeper_started", interval=interval)
        return self._sweeper

    async def stop_sweeper(self) -> None:
        """Cancel the background sweep task, if running."""
        task, self._sweeper = self._sweeper, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("cache_sweeper_stopped")

    async def _sweep_loop(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            self.sweep()

    def __len__(self) -> int:
        return len(self._store)
