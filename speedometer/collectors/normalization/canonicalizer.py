"""Canonicalizer transformers.

Provides the unit table and the conversion from RawLogRecord to the canonical
LogRecord, resolving the producers' unit strings into Bandwidth values.
"""

from types import MappingProxyType
from typing import Mapping

from speedometer.collectors.normalization.schema import (
    Bandwidth,
    BandwidthUnit,
    LogRecord,
    RawLogRecord,
)
from speedometer.core.exceptions import ConversionError

# Unit strings as reported by the producers. "Kbit/s" resolves to plain bits,
# which leaves kilobit values unscaled. KILOBIT_SCALING_UNIT_TABLE scales
# them by 1024.
UNIT_TABLE: Mapping[str, BandwidthUnit] = MappingProxyType(
    {
        "Bit/s": BandwidthUnit.BITS,
        "Kbit/s": BandwidthUnit.BITS,
        "Mbit/s": BandwidthUnit.MEGABITS,
        "Gbit/s": BandwidthUnit.GIGABITS,
        "Tbit/s": BandwidthUnit.TERABITS,
    }
)

KILOBIT_SCALING_UNIT_TABLE: Mapping[str, BandwidthUnit] = MappingProxyType(
    {**UNIT_TABLE, "Kbit/s": BandwidthUnit.KILOBITS}
)


def resolve_bandwidth(
    value: float,
    unit: str,
    unit_table: Mapping[str, BandwidthUnit] = UNIT_TABLE,
) -> Bandwidth:
    """Tag a reported rate with its unit.

    Args:
        value: Rate magnitude as reported.
        unit: Unit string as reported, matched exactly (e.g. "Mbit/s").
        unit_table: Mapping of unit strings to units.

    Returns:
        Bandwidth for the value.

    Raises:
        ValueError: If the unit string is not in the table.
    """
    try:
        resolved = unit_table[unit]
    except KeyError:
        raise ValueError(f"Unrecognized bandwidth unit: {unit!r}") from None
    return Bandwidth(unit=resolved, value=value)


def canonicalize(
    raw: RawLogRecord,
    source: str | None = None,
    unit_table: Mapping[str, BandwidthUnit] = UNIT_TABLE,
) -> LogRecord:
    """Transform a RawLogRecord to the canonical LogRecord.

    Args:
        raw: Decoded record.
        source: Name of the file the record came from, used in error reports.
        unit_table: Mapping of unit strings to units.

    Returns:
        Canonical LogRecord.

    Raises:
        ConversionError: If the download or upload unit is unrecognized.
            The error carries the raw record.
    """
    try:
        download = resolve_bandwidth(raw.download_value, raw.download_unit, unit_table)
        upload = resolve_bandwidth(raw.upload_value, raw.upload_unit, unit_table)
    except ValueError as e:
        raise ConversionError(raw, str(e), source=source) from e

    return LogRecord(
        device_name=raw.device_name,
        timestamp=raw.timestamp,
        test_name=raw.test_name,
        download=download,
        upload=upload,
        ping=raw.ping,
        client_ip=raw.client_ip,
        client_lat=raw.client_lat,
        client_lon=raw.client_lon,
    )
