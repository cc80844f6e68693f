"""Abstract base class for cache service providers.

Defines the contract for the namespaced key-value cache used in front of
every upstream catalog call (search pages, album details, artist releases).
Implementations may use an in-memory store, SQLite, Redis, or any other
backend; the cache backend can be swapped without touching business logic.

Namespaces partition the keyspace ("search", "album", "artist") so that one
partition can be cleared in bulk without touching the others.

Implementations must fail open: a storage fault is logged and degrades to a
miss (``get``) or a no-op (``set``/``delete``/``clear``).  A stale or missing
cache entry is always preferable to a failed search.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class ICacheProvider(ABC):
    """Contract for namespaced key-value cache services.

    All operations are async to allow for network-backed stores (e.g. Redis)
    without blocking the event loop.
    """

    @abstractmethod
    async def get(self, namespace: str, key: str) -> Any | None:
        """Retrieve the value stored under ``(namespace, key)``.

        Parameters
        ----------
        namespace:
            Logical partition of the keyspace.
        key:
            The cache key to look up.

        Returns
        -------
        Any or None
            The cached value if present and not expired; ``None`` otherwise.
            Expired entries found on read are removed.
        """

    @abstractmethod
    async def set(
        self, namespace: str, key: str, value: Any, ttl: float | None = None
    ) -> None:
        """Store *value* under ``(namespace, key)``, resetting its clock.

        Parameters
        ----------
        namespace:
            Logical partition of the keyspace.
        key:
            The cache key.
        value:
            The value to store.  Any existing entry is fully overwritten.
        ttl:
            Time-to-live in seconds.  ``None`` uses the provider's default
            for *namespace*.
        """

    @abstractmethod
    async def delete(self, namespace: str, key: str) -> None:
        """Remove the entry stored under ``(namespace, key)``.

        This is a no-op if the key does not exist.
        """

    @abstractmethod
    async def clear(self, namespace: str | None = None) -> None:
        """Remove every entry in *namespace*, or every entry if ``None``."""

    @abstractmethod
    async def exists(self, namespace: str, key: str) -> bool:
        """Return ``True`` if ``(namespace, key)`` is present and not expired."""
