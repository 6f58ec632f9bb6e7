"""
Timezone resolution for geocoded coordinates.

Coordinates are mapped to an IANA zone ID by reusing the zone of the
nearest city in the local directory (within TIMEZONE_MATCH_RADIUS_KM).
Zone IDs are loaded with zoneinfo.
"""

from datetime import tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import numpy as np

from common.config import CITY_DIRECTORY, TIMEZONE_MATCH_RADIUS_KM
from common.logging_config import get_logger

logger = get_logger("common_timezones")


class TimezoneLookupError(Exception):
    """Raised when coordinates or a zone ID cannot be resolved to a time zone."""


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate the great-circle distance between two points in kilometers."""
    R = 6371  # Earth's radius in kilometers

    lat1_rad = np.radians(lat1)
    lat2_rad = np.radians(lat2)
    delta_lat = np.radians(lat2 - lat1)
    delta_lon = np.radians(lon2 - lon1)

    a = np.sin(delta_lat / 2) ** 2 + np.cos(lat1_rad) * np.cos(lat2_rad) * np.sin(delta_lon / 2) ** 2
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))

    return float(R * c)


def lookup_timezone(lat: float, lon: float, radius_km: float = TIMEZONE_MATCH_RADIUS_KM) -> str:
    """
    Return the IANA zone ID for a coordinate pair.

    Raises:
        TimezoneLookupError: If no directory city lies within radius_km
    """
    best_zone = None
    best_distance = float("inf")
    for city_lat, city_lon, _, zone_id in CITY_DIRECTORY.values():
        dist = haversine_distance(lat, lon, city_lat, city_lon)
        if dist < best_distance:
            best_zone, best_distance = zone_id, dist

    if best_zone is None or best_distance > radius_km:
        raise TimezoneLookupError(f"Cannot map coordinates ({lat:.6f}, {lon:.6f}) to a time zone ID")

    logger.debug(f"({lat:.4f}, {lon:.4f}) -> {best_zone} ({best_distance:.0f}km from nearest city)")
    return best_zone


def load_timezone(tz_id: str) -> tzinfo:
    """Load an IANA zone ID, raising TimezoneLookupError for unknown zones."""
    try:
        return ZoneInfo(tz_id)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise TimezoneLookupError(f"Unknown time zone {tz_id!r}") from e


class LocalTimezoneResolver:
    """Timezone resolver collaborator backed by the local city directory."""

    def lookup(self, lat: float, lon: float) -> str:
        return lookup_timezone(lat, lon)

    def load(self, tz_id: str) -> tzinfo:
        return load_timezone(tz_id)
