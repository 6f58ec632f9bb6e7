"""
Geocoding service for resolving city names to coordinates.

Uses a local lookup table from config.py for common cities, so the
prepare-city workflow can run without a network geocoder.
Implements caching to avoid repeated string parsing.
"""

from typing import TypedDict

from common.config import BUILTIN_ALIASES, CITY_DIRECTORY
from common.logging_config import get_logger

logger = get_logger("common_geocoding")


class Place(TypedDict):
    """A geocoded place."""

    latitude: float
    longitude: float
    display_name: str


class GeocodingError(Exception):
    """Raised when a city name cannot be turned into coordinates."""


# Alias -> directory key, built once from the built-in aliases
_ALIAS_INDEX: dict[str, str] = {
    alias.strip().lower(): key for key, aliases in BUILTIN_ALIASES.items() for alias in aliases
}

# Module-level cache for runtime lookups
_geocode_cache: dict[str, Place | None] = {}


def geocode(location: str) -> Place | None:
    """
    Resolve a city name to coordinates and a display name.

    Uses the local CITY_DIRECTORY lookup table from config. Built-in
    aliases (e.g. "北京", "Peking") resolve to their directory city.
    Caches results to avoid repeated string parsing.

    Args:
        location: City name to resolve

    Returns:
        Place dict, or None if the city is not in the lookup table
    """
    if not location:
        return None

    # Normalize the location string for lookup
    normalized = location.strip().lower()

    # Check cache first
    if normalized in _geocode_cache:
        return _geocode_cache[normalized]

    key = normalized if normalized in CITY_DIRECTORY else _ALIAS_INDEX.get(normalized)
    row = CITY_DIRECTORY.get(key) if key else None

    if row is not None:
        lat, lon, display_name, _ = row
        result: Place = {"latitude": lat, "longitude": lon, "display_name": display_name}
        _geocode_cache[normalized] = result
        return result

    # Cache the miss as well to avoid repeated lookups
    logger.debug(f"No local geocoding entry for {location!r}")
    _geocode_cache[normalized] = None
    return None


def clear_cache() -> None:
    """Clear the geocode cache."""
    _geocode_cache.clear()


class LocalGeocoder:
    """Geocoder collaborator backed by the local city directory."""

    def geocode(self, name: str) -> Place:
        if not name or not name.strip():
            raise GeocodingError("City name must not be empty")
        place = geocode(name)
        if place is None:
            raise GeocodingError(f"City not found: {name}")
        return place
