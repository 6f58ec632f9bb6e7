"""
City name resolution against a cache document.

Lookup order:
1. Exact match on the normalized key (O(1), the common round-trip case)
2. Linear scan: each entry's canonical name, then each of its aliases

All comparisons use normalize_city_key (trim + str.lower), so matching is
insensitive to surrounding whitespace and case. str.lower is not a full
Unicode case fold; scripts without case are compared as-is.
"""

from datetime import datetime, timedelta

from city_cache.errors import CacheInvariantError
from city_cache.types import CacheDocument, CacheEntry, normalize_city_key

__all__ = ["find_entry", "is_stale", "normalize_city_key"]


def find_entry(doc: CacheDocument, query: str) -> CacheEntry | None:
    """
    Find the entry for a free-text city name.

    Returns:
        The first matching entry, or None if nothing matches

    Raises:
        CacheInvariantError: If the key lookup hits an entry stored under the wrong key
    """
    key = normalize_city_key(query)

    entry = doc.entries.get(key)
    if entry is not None:
        if entry.normalized != key:
            raise CacheInvariantError(
                f"Entry {entry.city!r} has normalized key {entry.normalized!r} but is stored under {key!r}"
            )
        return entry

    for entry in doc.entries.values():
        if normalize_city_key(entry.city) == key:
            return entry
        for alias in entry.aliases:
            if normalize_city_key(alias) == key:
                return entry

    return None


def is_stale(entry: CacheEntry, now: datetime, ttl: timedelta) -> bool:
    """An entry is stale when its age exceeds ttl, or its timestamp is unknown."""
    if entry.updated_at is None:
        return True
    return now - entry.updated_at > ttl
