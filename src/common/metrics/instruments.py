"""
OpenTelemetry metrics for city cache observability.

Exports cache lookup outcomes, load failures, save outcomes and lock wait
times via OTLP to an OpenTelemetry Collector.

The exporter is only installed when OTEL_EXPORTER_OTLP_ENDPOINT is set.
Without it the API's no-op meter provider absorbs every measurement.
Metrics are fire-and-forget: if the collector is down, the tool continues normally.
"""

import os

from opentelemetry import metrics

from common.logging_config import get_logger

logger = get_logger("common_metrics")

OTEL_ENDPOINT = os.environ.get("OTEL_EXPORTER_OTLP_ENDPOINT")

if OTEL_ENDPOINT:
    try:
        from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
        from opentelemetry.sdk.metrics import MeterProvider
        from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
        from opentelemetry.sdk.resources import Resource

        _resource = Resource.create({"service.name": "city-context-cache"})
        _exporter = OTLPMetricExporter(endpoint=OTEL_ENDPOINT, insecure=True)
        _reader = PeriodicExportingMetricReader(_exporter, export_interval_millis=5000)
        _provider = MeterProvider(resource=_resource, metric_readers=[_reader])
        metrics.set_meter_provider(_provider)
        logger.info(f"OpenTelemetry metrics enabled, exporting to {OTEL_ENDPOINT}")
    except Exception as e:
        logger.warning(f"OpenTelemetry setup failed (metrics disabled): {e}")

# Create meter and instruments
_meter = metrics.get_meter("city_cache", version="1.0.0")

cache_lookups = _meter.create_counter(
    name="city_cache.lookups",
    description="Cache lookups by result (hit, miss, stale)",
    unit="lookups",
)

cache_load_failures = _meter.create_counter(
    name="city_cache.load_failures",
    description="Cache loads that degraded to an empty document",
    unit="loads",
)

cache_saves = _meter.create_counter(
    name="city_cache.saves",
    description="Cache saves by outcome",
    unit="saves",
)

cache_lock_wait = _meter.create_histogram(
    name="city_cache.lock_wait",
    description="Time spent waiting for the cache write lock (ms)",
    unit="ms",
)
