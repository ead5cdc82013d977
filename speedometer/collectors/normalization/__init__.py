"""Normalization infrastructure for speed-test logs.

Provides the record schemas, the schema decoder, the canonicalizer and the
pipeline tying them together for batches of log files.
"""

from speedometer.collectors.normalization.schema import (
    Bandwidth,
    BandwidthUnit,
    FIELD_KEYS,
    LogRecord,
    RawLogRecord,
)
from speedometer.collectors.normalization.decoder import decode
from speedometer.collectors.normalization.canonicalizer import (
    KILOBIT_SCALING_UNIT_TABLE,
    UNIT_TABLE,
    canonicalize,
    resolve_bandwidth,
)
from speedometer.collectors.normalization.pipeline import (
    BatchResult,
    NormalizationPipeline,
    NormalizationResult,
    log_dropped_record,
)

__all__ = [
    "Bandwidth",
    "BandwidthUnit",
    "FIELD_KEYS",
    "LogRecord",
    "RawLogRecord",
    "decode",
    "KILOBIT_SCALING_UNIT_TABLE",
    "UNIT_TABLE",
    "canonicalize",
    "resolve_bandwidth",
    "BatchResult",
    "NormalizationPipeline",
    "NormalizationResult",
    "log_dropped_record",
]
