"""
Log Sources and Normalization.

This module contains collectors for gathering speed-test log files:

- gcs: Google Cloud Storage bucket listing and download
- local: Log files stored in a local directory tree
- normalization: Decoding and canonicalization of the collected files

Collectors follow a common interface with async methods:
- list_objects(): List the log files available from the source
- download(): Fetch the raw bytes of one log file
- collect(): Download every listed file concurrently

Example:
    from speedometer.collectors import CollectorType, get_collector
    from speedometer.collectors.normalization import NormalizationPipeline

    async with get_collector(CollectorType.GCS, {"bucket": "my-logs"}) as collector:
        items = await collector.collect()
    batch = NormalizationPipeline().normalize_batch(items)
"""

from speedometer.collectors.base import BaseCollector, LogObject
from speedometer.collectors.registry import (
    CollectorType,
    get_collector,
    get_collector_for_settings,
    list_collectors,
    register_collector,
)
from speedometer.collectors.gcs import GcsCollector
from speedometer.collectors.local import LocalDirectoryCollector

__all__ = [
    "BaseCollector",
    "LogObject",
    "CollectorType",
    "get_collector",
    "get_collector_for_settings",
    "list_collectors",
    "register_collector",
    "GcsCollector",
    "LocalDirectoryCollector",
]
