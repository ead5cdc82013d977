"""
Core infrastructure modules for Speedometer.

Provides common utilities used across the application:
- exceptions: Standardized exception hierarchy
"""

from speedometer.core.exceptions import (
    SpeedometerError,
    RetryableError,
    PermanentError,
    RecordError,
    DecodeError,
    ConversionError,
    CollectorError,
    CollectorRateLimitError,
    CollectorTimeoutError,
    CollectorAuthError,
    CollectorNotFoundError,
    CollectorUnavailableError,
    ConfigurationError,
    ExportError,
)

__all__ = [
    "SpeedometerError",
    "RetryableError",
    "PermanentError",
    # Per-record errors
    "RecordError",
    "DecodeError",
    "ConversionError",
    # Collector errors
    "CollectorError",
    "CollectorRateLimitError",
    "CollectorTimeoutError",
    "CollectorAuthError",
    "CollectorNotFoundError",
    "CollectorUnavailableError",
    # Configuration / export
    "ConfigurationError",
    "ExportError",
]
