"""Schema decoder for raw speed-test log files.

Turns one downloaded buffer into a RawLogRecord. Field aliasing between the
NDT5, NDT7 and speedtest-cli producer shapes is declared on the schema itself.
"""

from pydantic import ValidationError

from speedometer.collectors.normalization.schema import RawLogRecord
from speedometer.core.exceptions import DecodeError


def decode(buffer: bytes, source: str | None = None) -> RawLogRecord:
    """Decode a raw log buffer into a RawLogRecord.

    Args:
        buffer: Raw bytes of a single log file, expected to hold one JSON object.
        source: Name of the file the buffer came from, used in error reports.

    Returns:
        Decoded RawLogRecord.

    Raises:
        DecodeError: If the buffer is not valid JSON, is not an object, misses
            a required field or holds a field of the wrong JSON type.
    """
    try:
        return RawLogRecord.model_validate_json(buffer)
    except ValidationError as e:
        raise DecodeError(source, e.errors(include_url=False, include_input=False)) from e
    except ValueError as e:
        raise DecodeError(source, [{"loc": (), "msg": str(e), "type": "value_error"}]) from e
