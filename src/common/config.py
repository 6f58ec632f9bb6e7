"""
Centralized configuration for the city context cache.
All tunable constants and settings are defined here.
"""

# Cache file location
# Resolved against the user's home directory; CACHE_PATH_ENV overrides it
CACHE_FILE_NAME: str = ".esunmoon-cache.json"
CACHE_PATH_ENV: str = "CITY_CACHE_PATH"

# Entries older than this are stale for offline use
CACHE_TTL_DAYS: int = 100

# Write lock
LOCK_TIMEOUT_SECONDS: float = 5.0
LOCK_POLL_INTERVAL_SECONDS: float = 0.1

# Temp files written next to the cache before the atomic rename
TEMP_FILE_PREFIX: str = ".city-cache-"
TEMP_FILE_SUFFIX: str = ".tmp"

# Known alternate names, keyed by normalized city key
BUILTIN_ALIASES: dict[str, list[str]] = {
    "beijing": ["北京", "Beijing", "Peking"],
    "shanghai": ["上海", "Shanghai"],
    "guangzhou": ["广州", "Guangzhou", "Canton"],
}

# Geocoding - Local lookup table used when no network geocoder is wired in
# normalized name -> (latitude, longitude, display name, IANA time zone)
CITY_DIRECTORY: dict[str, tuple[float, float, str, str]] = {
    "beijing": (39.9042, 116.4074, "北京市, 中国", "Asia/Shanghai"),
    "shanghai": (31.2304, 121.4737, "上海市, 中国", "Asia/Shanghai"),
    "guangzhou": (23.1291, 113.2644, "广州市, 广东省, 中国", "Asia/Shanghai"),
    "tokyo": (35.6762, 139.6503, "東京都, 日本", "Asia/Tokyo"),
    "new york": (40.7128, -74.0060, "New York, United States", "America/New_York"),
    "london": (51.5074, -0.1278, "London, United Kingdom", "Europe/London"),
    "paris": (48.8566, 2.3522, "Paris, France", "Europe/Paris"),
    "berlin": (52.5200, 13.4050, "Berlin, Deutschland", "Europe/Berlin"),
    "rome": (41.9028, 12.4964, "Roma, Italia", "Europe/Rome"),
    "sydney": (-33.8688, 151.2093, "Sydney, Australia", "Australia/Sydney"),
    "reykjavik": (64.1466, -21.9426, "Reykjavík, Ísland", "Atlantic/Reykjavik"),
    "tromso": (69.6492, 18.9553, "Tromsø, Norge", "Europe/Oslo"),
}

# Maximum distance from a directory city for its time zone to be reused
TIMEZONE_MATCH_RADIUS_KM: float = 300.0
