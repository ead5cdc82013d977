"""
Monitoring and observability for Speedometer.

Provides Prometheus metrics for tracking collection and normalization of
speed-test logs.

Usage:
    from speedometer.monitoring import track_collector_operation, write_metrics_file

    with track_collector_operation("gcs", "download"):
        data = await collector.download(obj)

    write_metrics_file(Path("speedometer.prom"))
"""

from speedometer.monitoring.metrics import (
    COLLECTOR_BYTES,
    COLLECTOR_LATENCY,
    COLLECTOR_OPERATIONS,
    RECORDS_EXPORTED,
    RECORDS_PROCESSED,
    record_download,
    record_export,
    record_normalization,
    track_collector_operation,
    write_metrics_file,
)

__all__ = [
    # Prometheus metrics
    "COLLECTOR_BYTES",
    "COLLECTOR_LATENCY",
    "COLLECTOR_OPERATIONS",
    "RECORDS_EXPORTED",
    "RECORDS_PROCESSED",
    # Context managers
    "track_collector_operation",
    # Helper functions
    "record_download",
    "record_export",
    "record_normalization",
    "write_metrics_file",
]
