"""
Prometheus metrics for Speedometer batch runs.

Provides standardized metrics for monitoring collection and normalization.
A batch run is short-lived, so the registry is written to a textfile at the
end of the run instead of being served.

Usage:
    from speedometer.monitoring.metrics import track_collector_operation

    with track_collector_operation("gcs", "download"):
        data = await collector.download(obj)

    # Or manually
    RECORDS_PROCESSED.labels(outcome="converted").inc()
"""

import time
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Histogram,
    write_to_textfile,
)


# =============================================================================
# Metric Definitions
# =============================================================================

# Normalization metrics
RECORDS_PROCESSED = Counter(
    "speedometer_records_processed_total",
    "Log files processed by the normalization pipeline",
    ["outcome"],
)

# Collector metrics
COLLECTOR_OPERATIONS = Counter(
    "speedometer_collector_operations_total",
    "Total collector operations",
    ["collector", "operation", "status"],
)

COLLECTOR_LATENCY = Histogram(
    "speedometer_collector_latency_seconds",
    "Latency of collector operations",
    ["collector", "operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
)

COLLECTOR_BYTES = Counter(
    "speedometer_collector_bytes_total",
    "Bytes downloaded by collectors",
    ["collector"],
)

# Export metrics
RECORDS_EXPORTED = Counter(
    "speedometer_records_exported_total",
    "Canonical records written to the CSV export",
)


# =============================================================================
# Tracking Context Managers
# =============================================================================


@contextmanager
def track_collector_operation(
    collector: str,
    operation: str,
) -> Generator[None, None, None]:
    """
    Context manager to track collector operations.

    Usage:
        with track_collector_operation("gcs", "list_objects"):
            objects = await collector.list_objects()
    """
    start_time = time.perf_counter()
    status = "success"
    try:
        yield
    except Exception:
        status = "error"
        raise
    finally:
        duration = time.perf_counter() - start_time
        COLLECTOR_OPERATIONS.labels(
            collector=collector,
            operation=operation,
            status=status,
        ).inc()
        COLLECTOR_LATENCY.labels(
            collector=collector,
            operation=operation,
        ).observe(duration)


def record_normalization(outcome: str) -> None:
    """
    Record the outcome of normalizing one log file.

    Args:
        outcome: "converted", "decode_error" or "conversion_error"
    """
    RECORDS_PROCESSED.labels(outcome=outcome).inc()


def record_download(collector: str, size: int) -> None:
    """Record bytes downloaded by a collector."""
    COLLECTOR_BYTES.labels(collector=collector).inc(size)


def record_export(count: int) -> None:
    """Record canonical records written to the export."""
    RECORDS_EXPORTED.inc(count)


# =============================================================================
# Textfile Export
# =============================================================================


def write_metrics_file(path: Path, registry: CollectorRegistry = REGISTRY) -> None:
    """
    Write the registry in Prometheus text format.

    The file is written atomically, so a node-exporter textfile collector
    never reads a partial file.
    """
    write_to_textfile(str(path), registry)
