"""Shared pytest fixtures and utilities for all tests."""

from datetime import datetime, timedelta, timezone

import pytest

from city_cache.store import CacheStore
from city_cache.types import CacheDocument, CacheEntry

T0 = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FixedClock:
    """Controllable clock for TTL tests."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


def make_beijing(updated_at: datetime = T0) -> CacheEntry:
    return CacheEntry(
        city="北京",
        normalized="beijing",
        display_name="北京市, 中国",
        lat=39.9042,
        lon=116.4074,
        timezone_id="Asia/Shanghai",
        aliases=["Beijing", "Peking"],
        updated_at=updated_at,
    )


def make_new_york(updated_at: datetime = T0) -> CacheEntry:
    return CacheEntry(
        city="New York",
        normalized="new york",
        display_name="New York, United States",
        lat=40.7128,
        lon=-74.0060,
        timezone_id="America/New_York",
        aliases=["NYC", "Big Apple"],
        updated_at=updated_at,
    )


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def cache_path(tmp_path) -> str:
    return str(tmp_path / "cache" / "cities.json")


@pytest.fixture
def store(cache_path, clock) -> CacheStore:
    return CacheStore(path=cache_path, clock=clock, lock_timeout=0.5)


@pytest.fixture
def sample_doc() -> CacheDocument:
    doc = CacheDocument()
    doc.upsert(make_beijing())
    doc.upsert(make_new_york())
    return doc
