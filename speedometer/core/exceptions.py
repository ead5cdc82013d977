"""
Core exception hierarchy for Speedometer.

Provides standardized exception types with categorization so callers can
decide whether a failure is worth another attempt.
All components should use these exceptions instead of generic Exception.
"""

from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from speedometer.collectors.normalization.schema import RawLogRecord


# =============================================================================
# Base Exceptions
# =============================================================================


class SpeedometerError(Exception):
    """Base exception for all Speedometer errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class RetryableError(SpeedometerError):
    """
    Transient errors that may succeed on a later run.

    Examples: Rate limits, timeouts, temporary network issues.
    """

    pass


class PermanentError(SpeedometerError):
    """
    Errors that won't be fixed by trying again.

    Examples: Malformed log files, missing credentials, unknown buckets.
    """

    pass


# =============================================================================
# Record Errors
# =============================================================================


class RecordError(PermanentError):
    """Base exception for failures tied to a single log file."""

    def __init__(
        self,
        source: Optional[str],
        message: str,
        details: Optional[dict[str, Any]] = None,
    ):
        self.source = source
        prefix = f"[{source}] " if source else ""
        super().__init__(f"{prefix}{message}", details)


class DecodeError(RecordError):
    """Raised when a buffer is not a valid log record.

    Covers malformed JSON, a payload that is not an object, missing required
    fields and fields of the wrong JSON type.
    """

    def __init__(
        self,
        source: Optional[str],
        errors: list[dict[str, Any]],
    ):
        self.errors = errors
        summary = "; ".join(
            f"{'.'.join(str(part) for part in error.get('loc', ())) or '<root>'}: {error.get('msg')}"
            for error in errors
        )
        super().__init__(
            source,
            f"Failed to decode log record: {summary}",
            {"error_count": len(errors)},
        )


class ConversionError(RecordError):
    """Raised when a decoded record cannot be converted to a LogRecord.

    Carries the offending raw record for diagnostics.
    """

    def __init__(
        self,
        raw: "RawLogRecord",
        message: str,
        source: Optional[str] = None,
    ):
        self.raw = raw
        super().__init__(
            source,
            f"Failed to convert {raw!r} to LogRecord: {message}",
            {
                "download_unit": raw.download_unit,
                "upload_unit": raw.upload_unit,
            },
        )


# =============================================================================
# Collector Errors
# =============================================================================


class CollectorError(SpeedometerError):
    """Base exception for collector errors."""

    def __init__(
        self,
        collector_type: str,
        message: str,
        details: Optional[dict[str, Any]] = None,
    ):
        self.collector_type = collector_type
        super().__init__(f"[{collector_type}] {message}", details)


class CollectorRateLimitError(CollectorError, RetryableError):
    """Raised when a collector hits rate limits."""

    pass


class CollectorTimeoutError(CollectorError, RetryableError):
    """Raised when a collector operation times out."""

    pass


class CollectorAuthError(CollectorError, PermanentError):
    """Raised when collector authentication fails."""

    pass


class CollectorNotFoundError(CollectorError, PermanentError):
    """Raised when requested bucket, object or directory is not found."""

    pass


class CollectorUnavailableError(CollectorError, RetryableError):
    """Raised when the storage service is temporarily unavailable."""

    pass


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(PermanentError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        self.config_key = config_key
        details = {"config_key": config_key} if config_key else None
        super().__init__(message, details)


# =============================================================================
# Export Errors
# =============================================================================


class ExportError(PermanentError):
    """Raised when the CSV export cannot be written."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"Failed to write {path}: {message}", {"path": path})
