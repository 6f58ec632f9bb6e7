"""
City Resolver

Turns a user-supplied city name into a CityContext:
1. Cache lookup (key, canonical name or alias)
2. Fresh hit -> use cached coordinates and time zone, no network
3. Miss or stale hit -> geocode, resolve time zone, upsert + save the cache

Offline mode never calls the collaborators: a miss or a stale hit is an error.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Protocol

from city_cache.errors import CacheError
from city_cache.store import CacheStore
from city_cache.types import CacheEntry
from common.geocoding import GeocodingError, Place
from common.logging_config import get_logger
from common.timezones import TimezoneLookupError

logger = get_logger("city_resolver_core")


class Geocoder(Protocol):
    def geocode(self, name: str) -> Place: ...


class TimezoneResolver(Protocol):
    def lookup(self, lat: float, lon: float) -> str: ...

    def load(self, tz_id: str) -> tzinfo: ...


class CityResolutionError(Exception):
    """Base class for failures of the prepare-city workflow."""


class EmptyCityName(CityResolutionError):
    """No city name was given."""


class OfflineCacheMiss(CityResolutionError):
    """Offline mode and the city is not in the cache."""


class StaleCacheEntry(CityResolutionError):
    """Offline mode and the cached entry is older than the TTL."""


@dataclass
class CityContext:
    """A resolved city with its zone and the current local time."""

    city: str
    display_name: str
    lat: float
    lon: float
    timezone_id: str
    tz: tzinfo
    now: datetime
    from_cache: bool = False


def _context_from_entry(entry: CacheEntry, timezones: TimezoneResolver, now: datetime) -> CityContext:
    try:
        tz = timezones.load(entry.timezone_id)
    except TimezoneLookupError as e:
        raise CityResolutionError(f"Failed to load cached time zone ({entry.timezone_id}): {e}") from e

    return CityContext(
        city=entry.city,
        display_name=entry.display_name,
        lat=entry.lat,
        lon=entry.lon,
        timezone_id=entry.timezone_id,
        tz=tz,
        now=now.astimezone(tz),
        from_cache=True,
    )


def _log_context(query: str, ctx: CityContext) -> None:
    source = "cache" if ctx.from_cache else "geocoder"
    logger.info(f"City input: {query}")
    logger.info(f"Resolved ({source}): {ctx.display_name}")
    logger.info(f"Coordinates: {ctx.lat:.4f}, {ctx.lon:.4f}")
    logger.info(f"Time zone: {ctx.timezone_id}")
    logger.info(f"Local time: {ctx.now:%Y-%m-%d %H:%M:%S}")


def prepare_city(
    city: str,
    store: CacheStore,
    geocoder: Geocoder,
    timezones: TimezoneResolver,
    offline: bool = False,
    clock: Callable[[], datetime] | None = None,
) -> CityContext:
    """
    Resolve a city name through the cache, falling back to the collaborators.

    Args:
        city: Free-text city name (any case, surrounding whitespace ignored)
        store: Cache store shared with other workflows
        geocoder: Name -> coordinates collaborator
        timezones: Coordinates -> zone ID and zone ID -> tzinfo collaborator
        offline: Only use the cache; never call the collaborators
        clock: Source of the current time (defaults to the store's clock)

    Returns:
        CityContext for the city

    Raises:
        EmptyCityName: If city is blank
        OfflineCacheMiss: Offline and not cached
        StaleCacheEntry: Offline and the cached entry is stale
        CityResolutionError: Geocoding, time zone or cache save failure
    """
    if not city or not city.strip():
        raise EmptyCityName("No city name given")

    now = (clock or store.clock)()
    doc = store.load()

    hit = store.lookup(city, doc, now=now)
    if hit is not None:
        if not hit.stale:
            ctx = _context_from_entry(hit.entry, timezones, now)
            _log_context(city, ctx)
            return ctx
        if offline:
            raise StaleCacheEntry(f"Offline mode: cached entry for [{city}] is stale, refresh it while online")
        logger.info(f"Cached entry for {city!r} is stale, refreshing")
    elif offline:
        raise OfflineCacheMiss(f"Offline mode: [{city}] is not cached, run once while online first")

    try:
        place = geocoder.geocode(city)
    except GeocodingError as e:
        raise CityResolutionError(f"Failed to geocode city: {e}") from e

    lat, lon = place["latitude"], place["longitude"]
    try:
        tz_id = timezones.lookup(lat, lon)
        tz = timezones.load(tz_id)
    except TimezoneLookupError as e:
        raise CityResolutionError(f"Failed to resolve time zone: {e}") from e

    ctx = CityContext(
        city=city,
        display_name=place["display_name"],
        lat=lat,
        lon=lon,
        timezone_id=tz_id,
        tz=tz,
        now=now.astimezone(tz),
    )
    _log_context(city, ctx)

    entry = CacheEntry.build(city, place["display_name"], lat, lon, tz_id, now)
    try:
        store.upsert(entry)
    except CacheError as e:
        raise CityResolutionError(f"Failed to save cache: {e}") from e

    return ctx
