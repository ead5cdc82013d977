"""Schemas for speed-test log records.

Provides the Bandwidth value type, the schema-tolerant RawLogRecord decoded
straight from a producer's JSON, and the canonical LogRecord every producer
shape converges to.
"""

from datetime import datetime
from enum import Enum
from typing import ClassVar

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    NaiveDatetime,
    field_serializer,
)


class BandwidthUnit(Enum):
    """Data-rate units, binary scaled (x1024 per step)."""

    BITS = "bits"
    KILOBITS = "kilobits"
    MEGABITS = "megabits"
    GIGABITS = "gigabits"
    TERABITS = "terabits"

    @property
    def scale(self) -> int:
        """Power of 1024 separating this unit from bits."""
        return _UNIT_SCALE[self]


_UNIT_SCALE = {
    BandwidthUnit.BITS: 0,
    BandwidthUnit.KILOBITS: 1,
    BandwidthUnit.MEGABITS: 2,
    BandwidthUnit.GIGABITS: 3,
    BandwidthUnit.TERABITS: 4,
}


class Bandwidth(BaseModel):
    """A data rate tagged with the unit it was reported in.

    The tag only matters until the rate is serialized: every consumer past
    the canonicalizer reads `bits`.
    """

    model_config = ConfigDict(frozen=True)

    unit: BandwidthUnit
    value: float

    @property
    def bits(self) -> float:
        """Rate in bits per second."""
        return self.value * 1024.0 ** self.unit.scale


# Accepted JSON keys per field, in priority order. The first key present in
# the payload wins.
FIELD_KEYS: dict[str, tuple[str, ...]] = {
    "device_name": ("MurakamiLocation",),
    "timestamp": ("TestStartTime",),
    "test_name": ("TestName", "test_name"),
    "download_value": ("DownloadValue", "download_value"),
    "download_unit": ("DownloadUnit", "download_unit"),
    "upload_value": ("UploadValue", "upload_value"),
    "upload_unit": ("UploadUnit", "upload_unit"),
    "ping": ("Ping", "MinRTTValue", "ping"),
    "client_ip": ("ClientIP", "ClientIp", "client_ip"),
    "client_lat": ("ClientLat", "client_lat"),
    "client_lon": ("ClientLon", "client_lon"),
}


def _keys(field_name: str) -> AliasChoices:
    return AliasChoices(*FIELD_KEYS[field_name])


class RawLogRecord(BaseModel):
    """Log record as written by one of the known producers.

    JSON types are matched strictly: a string where a number is expected is
    a decode failure, not a coercion. NaN and Infinity are rejected. Unknown
    keys are ignored. Timestamps must be naive; fractional seconds beyond
    microsecond precision are truncated.
    """

    model_config = ConfigDict(
        strict=True, extra="ignore", frozen=True, allow_inf_nan=False
    )

    device_name: str = Field(..., validation_alias=_keys("device_name"))
    timestamp: NaiveDatetime = Field(..., validation_alias=_keys("timestamp"))
    test_name: str = Field(..., validation_alias=_keys("test_name"))
    download_value: float = Field(..., validation_alias=_keys("download_value"))
    download_unit: str = Field(..., validation_alias=_keys("download_unit"))
    upload_value: float = Field(..., validation_alias=_keys("upload_value"))
    upload_unit: str = Field(..., validation_alias=_keys("upload_unit"))
    # 64-bit, producers report ping as a 32-bit float
    ping: float = Field(..., validation_alias=_keys("ping"))
    client_ip: str = Field(..., validation_alias=_keys("client_ip"))
    client_lat: str | None = Field(None, validation_alias=_keys("client_lat"))
    client_lon: str | None = Field(None, validation_alias=_keys("client_lon"))


class LogRecord(BaseModel):
    """Canonical speed-test record.

    Built by `canonicalize()` from a RawLogRecord. Bandwidth fields serialize
    to plain bits-per-second numbers.
    """

    model_config = ConfigDict(frozen=True)

    HEADERS: ClassVar[tuple[str, ...]] = (
        "device_name",
        "timestamp",
        "test_name",
        "download",
        "upload",
        "ping",
        "client_ip",
        "client_lat",
        "client_lon",
    )

    device_name: str
    timestamp: datetime
    test_name: str
    download: Bandwidth
    upload: Bandwidth
    ping: float
    client_ip: str
    client_lat: str | None = None
    client_lon: str | None = None

    @field_serializer("download", "upload")
    def serialize_bandwidth(self, bandwidth: Bandwidth) -> float:
        return bandwidth.bits
