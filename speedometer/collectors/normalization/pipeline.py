"""Normalization pipeline for speed-test log files.

Runs each raw buffer through the schema decoder and the canonicalizer and
collects the outcome per file, so a malformed file is reported and dropped
instead of aborting the batch.
"""

from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

import structlog

from speedometer.collectors.normalization.canonicalizer import (
    KILOBIT_SCALING_UNIT_TABLE,
    UNIT_TABLE,
    canonicalize,
)
from speedometer.collectors.normalization.decoder import decode
from speedometer.collectors.normalization.schema import LogRecord, RawLogRecord
from speedometer.core.exceptions import ConversionError, DecodeError, RecordError
from speedometer.monitoring.metrics import record_normalization

logger = structlog.get_logger(__name__)

DiagnosticSink = Callable[[RecordError], None]


def log_dropped_record(error: RecordError) -> None:
    """Default diagnostic sink: emit one warning per dropped log file."""
    logger.warning(
        "record_dropped",
        source=error.source,
        error_type=type(error).__name__,
        error=error.message,
    )


@dataclass(frozen=True)
class NormalizationResult:
    """Outcome of normalizing one log file: a record or an error, never both."""

    source: Optional[str]
    record: Optional[LogRecord] = None
    error: Optional[RecordError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class BatchResult:
    """Canonical records and per-file failures of a batch."""

    records: list[LogRecord] = field(default_factory=list)
    failures: list[RecordError] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.records) + len(self.failures)

    @property
    def dropped(self) -> int:
        return len(self.failures)


class NormalizationPipeline:
    """Pipeline normalizing raw log buffers into canonical LogRecords.

    Holds configuration only. Every buffer is processed independently, so one
    pipeline can be shared freely between callers.

    Example:
        pipeline = NormalizationPipeline()
        batch = pipeline.normalize_batch([("ndt7-device.jsonl", data)])
        for record in batch.records:
            ...
    """

    def __init__(
        self,
        kilobit_scaling: bool = False,
        fail_fast: bool = False,
        sink: Optional[DiagnosticSink] = log_dropped_record,
    ):
        """Initialize the normalization pipeline.

        Args:
            kilobit_scaling: Resolve "Kbit/s" to kilobits instead of bits.
            fail_fast: Raise the first per-file error from normalize_batch
                instead of dropping the file.
            sink: Callable receiving every dropped file's error. None disables it.
        """
        self.unit_table = KILOBIT_SCALING_UNIT_TABLE if kilobit_scaling else UNIT_TABLE
        self.fail_fast = fail_fast
        self._sink = sink

    def decode(self, buffer: bytes, source: Optional[str] = None) -> RawLogRecord:
        """Decode a raw buffer. Raises DecodeError on failure."""
        return decode(buffer, source)

    def canonicalize(self, raw: RawLogRecord, source: Optional[str] = None) -> LogRecord:
        """Convert a decoded record. Raises ConversionError on failure."""
        return canonicalize(raw, source, self.unit_table)

    def parse(self, buffer: bytes, source: Optional[str] = None) -> LogRecord:
        """Decode and convert a raw buffer in one step.

        Raises:
            DecodeError: If the buffer cannot be decoded.
            ConversionError: If the decoded record cannot be converted.
        """
        return self.canonicalize(self.decode(buffer, source), source)

    def normalize(self, buffer: bytes, source: Optional[str] = None) -> NormalizationResult:
        """Normalize a raw buffer, returning the outcome instead of raising.

        Args:
            buffer: Raw bytes of one log file.
            source: Name of the file the buffer came from.

        Returns:
            NormalizationResult holding either the record or the error.
        """
        try:
            record = self.parse(buffer, source)
        except DecodeError as e:
            record_normalization("decode_error")
            return NormalizationResult(source=source, error=e)
        except ConversionError as e:
            record_normalization("conversion_error")
            return NormalizationResult(source=source, error=e)

        record_normalization("converted")
        return NormalizationResult(source=source, record=record)

    def normalize_batch(self, items: Iterable[tuple[str, bytes]]) -> BatchResult:
        """Normalize a batch of (source, buffer) pairs.

        Files that fail to decode or convert are reported to the diagnostic
        sink and left out of the records.

        Raises:
            RecordError: For the first failing file, only when fail_fast is set.
        """
        batch = BatchResult()
        for source, buffer in items:
            result = self.normalize(buffer, source)
            if result.ok:
                batch.records.append(result.record)
                continue

            if self.fail_fast:
                raise result.error
            if self._sink is not None:
                self._sink(result.error)
            batch.failures.append(result.error)

        logger.info(
            "batch_normalized",
            total=batch.total,
            converted=len(batch.records),
            dropped=batch.dropped,
        )
        return batch
