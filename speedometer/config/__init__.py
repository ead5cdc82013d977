"""
Configuration Management.

This module provides centralized configuration using Pydantic Settings.

Configuration sources (in order of precedence):
1. Command-line arguments (applied by the entry point)
2. Environment variables (prefix SPEEDOMETER_)
3. .env file
4. Default values

Example:
    from speedometer.config import Settings

    settings = Settings(bucket="my-bucket")
    bucket = settings.bucket
"""

from speedometer.config.settings import DEFAULT_BUCKET, Settings

__all__ = [
    "DEFAULT_BUCKET",
    "Settings",
]
