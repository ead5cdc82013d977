"""Unit tests for the record schemas."""

from datetime import datetime

import pytest
from pydantic import ValidationError

from speedometer.collectors.normalization import Bandwidth, BandwidthUnit, LogRecord


@pytest.fixture
def record() -> LogRecord:
    return LogRecord(
        device_name="devicename",
        timestamp=datetime(2023, 3, 8, 14, 41, 6, 591377),
        test_name="ndt7",
        download=Bandwidth(unit=BandwidthUnit.MEGABITS, value=2.0),
        upload=Bandwidth(unit=BandwidthUnit.BITS, value=512.0),
        ping=9.5,
        client_ip="192.0.2.1",
        client_lat="51.5",
    )


class TestBandwidth:
    """Tests for the Bandwidth value type."""

    @pytest.mark.parametrize(
        "unit,scale",
        [
            (BandwidthUnit.BITS, 0),
            (BandwidthUnit.KILOBITS, 1),
            (BandwidthUnit.MEGABITS, 2),
            (BandwidthUnit.GIGABITS, 3),
            (BandwidthUnit.TERABITS, 4),
        ],
    )
    def test_binary_scaling(self, unit, scale):
        """Each unit step is a factor of 1024."""
        assert unit.scale == scale
        assert Bandwidth(unit=unit, value=3.0).bits == 3.0 * 1024**scale

    def test_immutable(self):
        """Bandwidth values cannot be modified."""
        bandwidth = Bandwidth(unit=BandwidthUnit.BITS, value=1.0)

        with pytest.raises(ValidationError):
            bandwidth.value = 2.0


class TestLogRecord:
    """Tests for the canonical LogRecord."""

    def test_rates_serialize_as_bits(self, record):
        """Dumped rates are plain bit counts; the unit tag is dropped."""
        data = record.model_dump()

        assert data["download"] == 2.0 * 1024**2
        assert data["upload"] == 512.0

    def test_json_dump(self, record):
        """JSON dumps use ISO timestamps without offset."""
        data = record.model_dump(mode="json")

        assert data["timestamp"] == "2023-03-08T14:41:06.591377"
        assert data["client_lat"] == "51.5"
        assert data["client_lon"] is None

    def test_headers_match_fields(self):
        """HEADERS lists every field in export order."""
        assert LogRecord.HEADERS == tuple(LogRecord.model_fields)

    def test_immutable(self, record):
        """Canonical records cannot be modified after conversion."""
        with pytest.raises(ValidationError):
            record.ping = 1.0
