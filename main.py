"""
Speedometer - Main Entry Point

Downloads broadband speed-test logs, normalizes them and writes a CSV export.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

import structlog
from pydantic import ValidationError

from speedometer import __version__
from speedometer.collectors import get_collector_for_settings
from speedometer.collectors.normalization import BatchResult, NormalizationPipeline
from speedometer.config import Settings
from speedometer.core.exceptions import ConfigurationError, SpeedometerError
from speedometer.delivery import export_csv
from speedometer.monitoring import write_metrics_file

logger = structlog.get_logger(__name__)


def configure_logging(log_level: str = "INFO", log_format: str = "json") -> None:
    """Configure structured logging to stderr.

    Args:
        log_level: Standard logging level name.
        log_format: "json" for one JSON object per line, "console" for humans.
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(message)s",
        stream=sys.stderr,
        force=True,
    )

    processors: list[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if log_format == "console":
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser.

    Every option defaults to None so that unset options fall back to the
    environment and then to the settings defaults.
    """
    parser = argparse.ArgumentParser(
        prog="speedometer",
        description="Export broadband speed-test logs as a single CSV file.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--source",
        choices=["gcs", "local"],
        help="Read logs from a Cloud Storage bucket or a local directory",
    )
    parser.add_argument("-b", "--bucket", metavar="BUCKET", help="Bucket holding the logs")
    parser.add_argument(
        "-d", "--local-dir", type=Path, metavar="DIR", help="Directory holding the logs"
    )
    parser.add_argument(
        "-f",
        "--auth-file",
        type=Path,
        metavar="SERVICE-ACCOUNT.JSON",
        help="Service account key used to read the bucket",
    )
    parser.add_argument(
        "-o", "--output", type=Path, metavar="OUTPUT.CSV", help="CSV file to write"
    )
    parser.add_argument(
        "--fail-fast",
        action="store_true",
        default=None,
        help="Abort on the first malformed log file",
    )
    parser.add_argument(
        "--kilobit-scaling",
        action="store_true",
        default=None,
        help="Scale 'Kbit/s' values by 1024 instead of reading them as bits",
    )
    parser.add_argument(
        "--metrics-file",
        type=Path,
        metavar="PATH",
        help="Write Prometheus metrics to this textfile after the run",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level",
    )
    parser.add_argument(
        "--log-format", choices=["json", "console"], help="Log output format"
    )
    return parser


def load_settings(args: argparse.Namespace) -> Settings:
    """Merge command-line arguments over environment settings.

    Raises:
        ValidationError: If the merged settings are invalid.
    """
    overrides = {key: value for key, value in vars(args).items() if value is not None}
    if "local_dir" in overrides and "source" not in overrides:
        overrides["source"] = "local"
    return Settings(**overrides)


async def run(settings: Settings) -> BatchResult:
    """Collect, normalize and export one batch of logs.

    Args:
        settings: Application settings.

    Returns:
        BatchResult of the normalization step.

    Raises:
        SpeedometerError: On collector, configuration or export failures, and on
            the first malformed log file when fail_fast is set.
    """
    pipeline = NormalizationPipeline(
        kilobit_scaling=settings.kilobit_scaling,
        fail_fast=settings.fail_fast,
    )

    try:
        collector = get_collector_for_settings(settings)
    except ValueError as e:
        raise ConfigurationError(str(e), config_key="source") from e

    async with collector:
        items = await collector.collect()

    batch = pipeline.normalize_batch(items)
    export_csv(batch.records, settings.output)
    return batch


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the command-line tool."""
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(args)
    except ValidationError as e:
        print(f"speedometer: invalid configuration\n{e}", file=sys.stderr)
        return 2

    configure_logging(settings.log_level, settings.log_format)
    logger.info(
        "starting_speedometer",
        version=__version__,
        source=settings.source,
        output=str(settings.output),
    )

    exit_code = 0
    try:
        batch = asyncio.run(run(settings))
    except SpeedometerError as e:
        logger.error("run_failed", error=str(e), error_type=type(e).__name__)
        exit_code = 1
    else:
        logger.info(
            "run_finished",
            exported=len(batch.records),
            dropped=batch.dropped,
        )
    finally:
        if settings.metrics_file is not None:
            write_metrics_file(settings.metrics_file)

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
