"""Tests for the prepare-city workflow."""

import os
from datetime import timedelta

import pytest
from conftest import T0, make_beijing

from city_cache.file_lock import acquire
from city_cache.types import CacheDocument, CacheEntry
from city_resolver.core import (
    CityResolutionError,
    EmptyCityName,
    OfflineCacheMiss,
    StaleCacheEntry,
    prepare_city,
)
from common.geocoding import GeocodingError, LocalGeocoder, Place
from common.timezones import LocalTimezoneResolver, TimezoneLookupError, load_timezone


class FakeGeocoder:
    """Geocoder that records calls and returns a fixed place."""

    def __init__(self, place: Place | None = None):
        self.place = place or {"latitude": 39.9042, "longitude": 116.4074, "display_name": "北京市, 中国"}
        self.calls: list[str] = []

    def geocode(self, name: str) -> Place:
        self.calls.append(name)
        if self.place is None:
            raise GeocodingError(f"City not found: {name}")
        return self.place


class FailingGeocoder:
    def geocode(self, name: str) -> Place:
        raise GeocodingError(f"City not found: {name}")


class FakeTimezones:
    """Timezone resolver with a fixed zone ID."""

    def __init__(self, tz_id: str = "Asia/Shanghai", lookup_error: bool = False):
        self.tz_id = tz_id
        self.lookup_error = lookup_error
        self.lookups = 0

    def lookup(self, lat: float, lon: float) -> str:
        self.lookups += 1
        if self.lookup_error:
            raise TimezoneLookupError("no zone here")
        return self.tz_id

    def load(self, tz_id: str):
        return load_timezone(tz_id)


class TestValidation:
    """Tests for input validation."""

    @pytest.mark.parametrize("city", ["", "   "])
    def test_empty_city(self, store, city):
        with pytest.raises(EmptyCityName):
            prepare_city(city, store, FakeGeocoder(), FakeTimezones())


class TestOnline:
    """Tests for online resolution."""

    def test_miss_geocodes_and_saves(self, store):
        geocoder = FakeGeocoder()
        ctx = prepare_city("Beijing", store, geocoder, FakeTimezones())

        assert geocoder.calls == ["Beijing"]
        assert ctx.from_cache is False
        assert ctx.city == "Beijing"
        assert ctx.timezone_id == "Asia/Shanghai"
        assert ctx.now == T0
        assert ctx.now.utcoffset() == timedelta(hours=8)

        entry = store.load().entries["beijing"]
        assert entry.display_name == "北京市, 中国"
        assert entry.updated_at == T0
        assert set(entry.aliases) == {"Beijing", "北京", "Peking"}

    def test_fresh_hit_skips_collaborators(self, store):
        store.upsert(make_beijing())
        geocoder = FakeGeocoder()
        timezones = FakeTimezones()

        ctx = prepare_city("  PEKING ", store, geocoder, timezones)

        assert ctx.from_cache is True
        assert ctx.city == "北京"
        assert geocoder.calls == []
        assert timezones.lookups == 0

    def test_stale_hit_refreshes(self, store, clock):
        store.upsert(make_beijing())
        clock.advance(timedelta(days=101))
        geocoder = FakeGeocoder()

        ctx = prepare_city("beijing", store, geocoder, FakeTimezones())

        assert ctx.from_cache is False
        assert geocoder.calls == ["beijing"]
        assert store.load().entries["beijing"].updated_at == clock()

    def test_second_call_uses_cache(self, store):
        geocoder = FakeGeocoder()
        prepare_city("Beijing", store, geocoder, FakeTimezones())
        ctx = prepare_city("北京", store, geocoder, FakeTimezones())

        assert ctx.from_cache is True
        assert geocoder.calls == ["Beijing"]

    def test_geocoding_failure(self, store):
        with pytest.raises(CityResolutionError, match="geocode"):
            prepare_city("Atlantis", store, FailingGeocoder(), FakeTimezones())
        assert len(store.load()) == 0

    def test_timezone_lookup_failure(self, store):
        with pytest.raises(CityResolutionError, match="time zone"):
            prepare_city("Beijing", store, FakeGeocoder(), FakeTimezones(lookup_error=True))

    def test_invalid_zone_id(self, store):
        with pytest.raises(CityResolutionError):
            prepare_city("Beijing", store, FakeGeocoder(), FakeTimezones(tz_id="Mars/Base"))
        assert len(store.load()) == 0

    def test_invalid_cached_zone(self, store):
        broken = CacheEntry(
            city="Beijing",
            normalized="beijing",
            display_name="Beijing",
            lat=39.9,
            lon=116.4,
            timezone_id="Invalid/Zone",
            updated_at=T0,
        )
        store.upsert(broken)
        with pytest.raises(CityResolutionError, match="cached time zone"):
            prepare_city("Beijing", store, FakeGeocoder(), FakeTimezones())

    def test_save_failure_surfaces(self, store, cache_path):
        os.makedirs(os.path.dirname(cache_path))
        release = acquire(store.lock_path)
        try:
            with pytest.raises(CityResolutionError, match="save cache"):
                prepare_city("Beijing", store, FakeGeocoder(), FakeTimezones())
        finally:
            release()

    def test_local_collaborators(self, store):
        ctx = prepare_city("Tokyo", store, LocalGeocoder(), LocalTimezoneResolver())
        assert ctx.timezone_id == "Asia/Tokyo"
        assert ctx.display_name == "東京都, 日本"
        assert store.resolve("tokyo") is not None


class TestOffline:
    """Tests for offline mode."""

    def test_miss(self, store):
        geocoder = FakeGeocoder()
        with pytest.raises(OfflineCacheMiss):
            prepare_city("Beijing", store, geocoder, FakeTimezones(), offline=True)
        assert geocoder.calls == []

    def test_fresh_hit(self, store):
        store.upsert(make_beijing())
        ctx = prepare_city("Peking", store, FakeGeocoder(), FakeTimezones(), offline=True)
        assert ctx.from_cache is True

    def test_stale_hit(self, store, clock):
        store.upsert(make_beijing())
        clock.advance(timedelta(days=101))
        geocoder = FakeGeocoder()
        with pytest.raises(StaleCacheEntry):
            prepare_city("Peking", store, geocoder, FakeTimezones(), offline=True)
        assert geocoder.calls == []

    def test_unknown_timestamp_is_stale(self, store, cache_path):
        doc = CacheDocument()
        doc.upsert(make_beijing(updated_at=None))
        store.save(doc)
        with pytest.raises(StaleCacheEntry):
            prepare_city("beijing", store, FakeGeocoder(), FakeTimezones(), offline=True)

    def test_explicit_clock(self, store):
        store.upsert(make_beijing())
        later = T0 + timedelta(days=150)
        with pytest.raises(StaleCacheEntry):
            prepare_city("beijing", store, FakeGeocoder(), FakeTimezones(), offline=True, clock=lambda: later)
