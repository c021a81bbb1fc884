"""
Caching Module
==============

Key-addressed cache used to persist resolved autowiring metadata.

Usage:
    from autowired.caching import Cache, MemoryStorage

    cache = Cache(MemoryStorage(), "autowired.properties")
    cache.save(key, value, dependencies={Cache.FILES: [path]})
"""

from .cache import Cache
from .storage import (
    CacheEntry,
    CacheStats,
    CacheStorage,
    FileStorage,
    MemoryStorage,
    file_mtime,
)

__all__ = [
    "Cache",
    "CacheEntry",
    "CacheStats",
    "CacheStorage",
    "FileStorage",
    "MemoryStorage",
    "file_mtime",
]
