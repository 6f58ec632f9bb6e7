"""
Formatting utilities for cache management tooling.

All functions are UI-agnostic and return plain strings or dicts.
"""

from city_cache.types import CacheDocument, format_timestamp

SEPARATOR = "-" * 60


def list_cached_cities(doc: CacheDocument) -> list[dict]:
    """
    Summarize cached cities, sorted by normalized key.

    Returns:
        One dict per entry with city, display_name, lat, lon, timezone_id and aliases
    """
    return [
        {
            "city": entry.city,
            "display_name": entry.display_name,
            "lat": entry.lat,
            "lon": entry.lon,
            "timezone_id": entry.timezone_id,
            "aliases": list(entry.aliases),
        }
        for _, entry in sorted(doc.entries.items())
    ]


def format_cache_listing(doc: CacheDocument) -> str:
    """
    Format the cache contents for display.

    Example output:
        Cached cities:
        ------------------------------------------------------------
        City: 北京
          Display name: 北京市, 中国
          Coordinates:  39.9042, 116.4074
          Time zone:    Asia/Shanghai
          Aliases:      北京, Beijing, Peking
          Updated at:   2026-10-16T08:00:00+00:00
        ------------------------------------------------------------
    """
    if not doc.entries:
        return "No cities in the cache."

    lines = ["Cached cities:", SEPARATOR]
    for _, entry in sorted(doc.entries.items()):
        lines.append(f"City: {entry.city}")
        lines.append(f"  Display name: {entry.display_name}")
        lines.append(f"  Coordinates:  {entry.lat:.4f}, {entry.lon:.4f}")
        lines.append(f"  Time zone:    {entry.timezone_id}")
        if entry.aliases:
            lines.append(f"  Aliases:      {', '.join(entry.aliases)}")
        updated = format_timestamp(entry.updated_at) if entry.updated_at else "unknown"
        lines.append(f"  Updated at:   {updated}")
        lines.append(SEPARATOR)

    return "\n".join(lines)
