"""
Application Settings.

Centralized configuration using Pydantic Settings with environment variable loading.
Every setting has a default, so the tool runs without any environment set up;
command-line arguments override individual values at startup.

Credentials:
    The service account file or access token is handed to the bucket collector
    explicitly. The process environment is only ever read, never written.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BUCKET = "better-broadband-monitoring-logs"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SPEEDOMETER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Log source
    # -------------------------------------------------------------------------
    source: Literal["gcs", "local"] = Field(
        default="gcs",
        description="Where to read speed-test logs from",
    )
    bucket: str = Field(
        default=DEFAULT_BUCKET,
        description="Google Cloud Storage bucket holding the logs",
    )
    local_dir: Path | None = Field(
        default=None,
        description="Directory of log files, used when source is 'local'",
    )

    # -------------------------------------------------------------------------
    # Google Cloud Storage credentials
    # -------------------------------------------------------------------------
    auth_file: Path | None = Field(
        default=None,
        description="Service account JSON file used to authorize bucket access",
    )
    access_token: SecretStr | None = Field(
        default=None,
        description="OAuth2 bearer token used instead of a service account file",
    )

    # -------------------------------------------------------------------------
    # Collection
    # -------------------------------------------------------------------------
    max_concurrent_downloads: int = Field(
        default=16,
        ge=1,
        description="Maximum number of objects downloaded at the same time",
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for a single storage request in seconds",
    )

    # -------------------------------------------------------------------------
    # Normalization
    # -------------------------------------------------------------------------
    kilobit_scaling: bool = Field(
        default=False,
        description="Scale 'Kbit/s' values by 1024 instead of reading them as bits",
    )
    fail_fast: bool = Field(
        default=False,
        description="Abort on the first malformed log file instead of skipping it",
    )

    # -------------------------------------------------------------------------
    # Output
    # -------------------------------------------------------------------------
    output: Path = Field(
        default=Path("output.csv"),
        description="CSV file the canonical records are written to",
    )
    metrics_file: Path | None = Field(
        default=None,
        description="Optional Prometheus textfile written after the run",
    )

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: Literal["json", "console"] = Field(
        default="json",
        description="Log renderer: machine-readable JSON or human-friendly console",
    )

    @model_validator(mode="after")
    def validate_source_settings(self) -> "Settings":
        """Validate that the selected source is fully configured."""
        errors = []

        if self.source == "local" and self.local_dir is None:
            errors.append("local_dir must be set when source is 'local'")

        if self.auth_file is not None and self.access_token is not None:
            errors.append("auth_file and access_token are mutually exclusive")

        if errors:
            raise ValueError(f"Configuration errors: {'; '.join(errors)}")

        return self

