"""CSV export of canonical speed-test records.

Rows follow LogRecord.HEADERS. Rates are written in bits per second,
timestamps in ISO-8601 without offset, and missing coordinates as empty cells.
"""

import csv
from pathlib import Path
from typing import Any, Iterable, TextIO

import structlog

from speedometer.collectors.normalization.schema import LogRecord
from speedometer.core.exceptions import ExportError
from speedometer.monitoring.metrics import record_export

logger = structlog.get_logger(__name__)


def record_to_row(record: LogRecord) -> list[Any]:
    """Serialize a record to a CSV row in header order."""
    data = record.model_dump(mode="json")
    return ["" if data[column] is None else data[column] for column in LogRecord.HEADERS]


def write_records(records: Iterable[LogRecord], stream: TextIO) -> int:
    """Write the header and one row per record to an open text stream.

    Returns:
        Number of records written.
    """
    writer = csv.writer(stream)
    writer.writerow(LogRecord.HEADERS)
    count = 0
    for record in records:
        writer.writerow(record_to_row(record))
        count += 1
    return count


def export_csv(records: Iterable[LogRecord], path: Path) -> int:
    """Write records to a CSV file, replacing any existing file.

    Args:
        records: Canonical records to export.
        path: Destination file.

    Returns:
        Number of records written.

    Raises:
        ExportError: If the file cannot be written.
    """
    try:
        with open(path, "w", newline="", encoding="utf-8") as f:
            count = write_records(records, f)
    except OSError as e:
        logger.error("export_failed", path=str(path), error=str(e))
        raise ExportError(str(path), str(e)) from e

    record_export(count)
    logger.info("export_written", path=str(path), records=count)
    return count
