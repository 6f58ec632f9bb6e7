"""
Data model for the city cache.

A CacheDocument maps normalized city keys to CacheEntry records and is
persisted as a single JSON document:

    {"entries": {"<key>": {"city": ..., "normalized": ..., "display_name": ...,
                           "lat": ..., "lon": ..., "timezone_id": ...,
                           "aliases": [...], "updated_at": "<RFC3339>"}}}
"""

from dataclasses import dataclass, field
from datetime import datetime

from city_cache.errors import CacheInvariantError, CorruptDocument
from common.config import BUILTIN_ALIASES


def normalize_city_key(city: str) -> str:
    """Normalize a city name to its cache key: trimmed and lowercased."""
    return city.strip().lower()


def format_timestamp(value: datetime) -> str:
    """Format an aware datetime as an RFC 3339 string."""
    return value.isoformat()


def parse_timestamp(value: object) -> datetime | None:
    """Parse an RFC 3339 string; None for missing, unparsable or offset-less values."""
    if not isinstance(value, str) or not value:
        return None
    text = value[:-1] + "+00:00" if value.endswith(("Z", "z")) else value
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return None
    return parsed


def _dedupe(values: list[str]) -> list[str]:
    seen: set[str] = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


@dataclass
class CacheEntry:
    """One resolved city, stored under its normalized key."""

    city: str
    normalized: str
    display_name: str
    lat: float
    lon: float
    timezone_id: str
    aliases: list[str] = field(default_factory=list)
    # None when the persisted timestamp is missing or unparsable
    updated_at: datetime | None = None

    def __post_init__(self):
        if not -90.0 <= self.lat <= 90.0:
            raise ValueError(f"Latitude out of range: {self.lat}")
        if not -180.0 <= self.lon <= 180.0:
            raise ValueError(f"Longitude out of range: {self.lon}")
        if self.updated_at is not None and self.updated_at.tzinfo is None:
            raise ValueError("updated_at must be timezone-aware")
        self.aliases = _dedupe([self.city, *self.aliases])

    @classmethod
    def build(
        cls,
        city: str,
        display_name: str,
        lat: float,
        lon: float,
        timezone_id: str,
        now: datetime,
    ) -> "CacheEntry":
        """Build a fresh entry for a city just resolved by the geocoder."""
        key = normalize_city_key(city)
        return cls(
            city=city,
            normalized=key,
            display_name=display_name,
            lat=lat,
            lon=lon,
            timezone_id=timezone_id,
            aliases=[city, *BUILTIN_ALIASES.get(key, [])],
            updated_at=now,
        )

    def to_dict(self) -> dict:
        return {
            "city": self.city,
            "normalized": self.normalized,
            "display_name": self.display_name,
            "lat": self.lat,
            "lon": self.lon,
            "timezone_id": self.timezone_id,
            "aliases": list(self.aliases),
            "updated_at": format_timestamp(self.updated_at) if self.updated_at else "",
        }

    @classmethod
    def from_dict(cls, data: object) -> "CacheEntry":
        """
        Build an entry from its persisted form.

        Raises:
            CorruptDocument: If a field is missing or has the wrong type
        """
        if not isinstance(data, dict):
            raise CorruptDocument(f"Entry must be an object, got {type(data).__name__}")

        for name in ("city", "normalized", "timezone_id"):
            if not isinstance(data.get(name), str):
                raise CorruptDocument(f"Entry field {name!r} must be a string")
        for name in ("lat", "lon"):
            value = data.get(name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise CorruptDocument(f"Entry field {name!r} must be a number")

        display_name = data.get("display_name", "")
        aliases = data.get("aliases") or []
        if not isinstance(display_name, str):
            raise CorruptDocument("Entry field 'display_name' must be a string")
        if not isinstance(aliases, list) or not all(isinstance(a, str) for a in aliases):
            raise CorruptDocument("Entry field 'aliases' must be a list of strings")

        try:
            return cls(
                city=data["city"],
                normalized=data["normalized"],
                display_name=display_name,
                lat=float(data["lat"]),
                lon=float(data["lon"]),
                timezone_id=data["timezone_id"],
                aliases=aliases,
                updated_at=parse_timestamp(data.get("updated_at")),
            )
        except (ValueError, OverflowError) as e:
            raise CorruptDocument(str(e)) from e


@dataclass
class CacheDocument:
    """The whole persisted cache, replaced as one unit on every save."""

    entries: dict[str, CacheEntry] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.entries)

    def validate(self) -> None:
        """
        Check that every entry is stored under its own normalized key.

        Raises:
            CacheInvariantError: On the first mismatching entry
        """
        for key, entry in self.entries.items():
            if entry.normalized != key:
                raise CacheInvariantError(
                    f"Entry {entry.city!r} has normalized key {entry.normalized!r} but is stored under {key!r}"
                )

    def upsert(self, entry: CacheEntry) -> None:
        """Store an entry under its normalized key, replacing any previous one."""
        self.entries[entry.normalized] = entry

    def to_dict(self) -> dict:
        return {"entries": {key: entry.to_dict() for key, entry in self.entries.items()}}

    @classmethod
    def from_dict(cls, data: object) -> "CacheDocument":
        """
        Build a document from parsed JSON.

        A missing or null "entries" field yields an empty document.

        Raises:
            CorruptDocument: If the shape is wrong or an entry is stored under the wrong key
        """
        if not isinstance(data, dict):
            raise CorruptDocument(f"Cache document must be an object, got {type(data).__name__}")

        raw_entries = data.get("entries")
        if raw_entries is None:
            return cls()
        if not isinstance(raw_entries, dict):
            raise CorruptDocument("Cache field 'entries' must be an object")

        doc = cls(entries={key: CacheEntry.from_dict(value) for key, value in raw_entries.items()})
        try:
            doc.validate()
        except CacheInvariantError as e:
            raise CorruptDocument(str(e)) from e
        return doc
