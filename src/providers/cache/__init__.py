"""Cache providers.

In-memory TTL cache used to avoid redundant upstream calls: repeated
searches for the same query, re-opened albums and re-browsed artist
discographies are answered from memory until their namespace TTL lapses.

MemoryCacheProvider is fast but not shared across processes.  For
multi-worker deployments, swap in a Redis adapter implementing
ICacheProvider without changing any business logic.
"""

from src.providers.cache.memory_cache import CacheEntry, MemoryCacheProvider

__all__ = ["CacheEntry", "MemoryCacheProvider"]
