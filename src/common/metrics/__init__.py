"""OpenTelemetry metrics for city cache observability."""

from common.metrics.instruments import (
    cache_load_failures,
    cache_lock_wait,
    cache_lookups,
    cache_saves,
)

__all__ = [
    "cache_load_failures",
    "cache_lock_wait",
    "cache_lookups",
    "cache_saves",
]
