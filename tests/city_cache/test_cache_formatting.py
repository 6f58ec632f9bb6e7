"""Tests for city_cache.formatting module."""

from conftest import make_new_york

from city_cache.formatting import format_cache_listing, list_cached_cities
from city_cache.types import CacheDocument


class TestFormatCacheListing:
    """Tests for format_cache_listing."""

    def test_empty_cache(self):
        assert format_cache_listing(CacheDocument()) == "No cities in the cache."

    def test_lists_every_entry(self, sample_doc):
        result = format_cache_listing(sample_doc)
        assert "City: 北京" in result
        assert "City: New York" in result
        assert "Asia/Shanghai" in result
        assert "39.9042, 116.4074" in result
        assert "北京, Beijing, Peking" in result

    def test_sorted_by_key(self, sample_doc):
        result = format_cache_listing(sample_doc)
        assert result.index("City: 北京") < result.index("City: New York")

    def test_unknown_timestamp(self):
        doc = CacheDocument()
        doc.upsert(make_new_york(updated_at=None))
        assert "Updated at:   unknown" in format_cache_listing(doc)


class TestListCachedCities:
    """Tests for list_cached_cities."""

    def test_empty(self):
        assert list_cached_cities(CacheDocument()) == []

    def test_summaries(self, sample_doc):
        cities = list_cached_cities(sample_doc)
        assert [c["city"] for c in cities] == ["北京", "New York"]
        assert cities[1]["timezone_id"] == "America/New_York"
        assert "NYC" in cities[1]["aliases"]
