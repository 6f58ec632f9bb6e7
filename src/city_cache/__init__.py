"""
City context cache.

Persists resolved cities (coordinates, display name, time zone, aliases)
in a JSON document shared across processes, guarded by an advisory lock
and written with atomic renames.
"""

from city_cache.errors import (
    CacheError,
    CacheInvariantError,
    CacheIOError,
    CorruptDocument,
    LockTimeout,
)
from city_cache.resolution import find_entry, is_stale, normalize_city_key
from city_cache.store import CACHE_TTL, CacheLookup, CacheStore, cache_file_path
from city_cache.types import CacheDocument, CacheEntry

__all__ = [
    # Data model
    "CacheDocument",
    "CacheEntry",
    # Store
    "CACHE_TTL",
    "CacheLookup",
    "CacheStore",
    "cache_file_path",
    # Resolution
    "find_entry",
    "is_stale",
    "normalize_city_key",
    # Errors
    "CacheError",
    "CacheInvariantError",
    "CacheIOError",
    "CorruptDocument",
    "LockTimeout",
]
