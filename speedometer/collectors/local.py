"""Local directory collector for speed-test log files.

Reads log files from a directory tree, e.g. a bucket synced with gsutil or
the output folder of a Murakami device.
"""

import asyncio
from pathlib import Path
from typing import Any

import structlog

from speedometer.collectors.base import BaseCollector, LogObject
from speedometer.collectors.registry import CollectorType, register_collector
from speedometer.core.exceptions import CollectorError, CollectorNotFoundError
from speedometer.monitoring.metrics import record_download, track_collector_operation

logger = structlog.get_logger(__name__)


@register_collector(CollectorType.LOCAL)
class LocalDirectoryCollector(BaseCollector):
    """Collector for log files stored on disk.

    Config options:
        directory: Root directory to read (required)
        pattern: Glob pattern matched recursively (default "*")
        max_concurrency: Simultaneous reads (default 16)

    Object names are POSIX paths relative to the directory.
    """

    collector_type = "local"

    def __init__(self, config: dict[str, Any]):
        super().__init__(config)
        directory = config.get("directory")
        if not directory:
            raise ValueError("LocalDirectoryCollector requires a directory")
        self.directory = Path(directory)
        self.pattern: str = config.get("pattern", "*")

    async def list_objects(self) -> list[LogObject]:
        """List files under the directory, sorted by relative path."""
        if not self.directory.is_dir():
            raise CollectorNotFoundError(
                "local",
                f"Directory not found: {self.directory}",
                {"directory": str(self.directory)},
            )

        with track_collector_operation(self.collector_type, "list_objects"):
            objects = [
                LogObject(
                    name=path.relative_to(self.directory).as_posix(),
                    size=path.stat().st_size,
                )
                for path in sorted(self.directory.rglob(self.pattern))
                if path.is_file()
            ]

        logger.info("local_objects_listed", directory=str(self.directory), count=len(objects))
        return objects

    async def download(self, obj: LogObject) -> bytes:
        """Read one file's contents."""
        path = self.directory / obj.name
        loop = asyncio.get_event_loop()

        with track_collector_operation(self.collector_type, "download"):
            try:
                data = await loop.run_in_executor(None, path.read_bytes)
            except FileNotFoundError as e:
                raise CollectorNotFoundError(
                    "local", f"File not found: {obj.name}", {"path": str(path)}
                ) from e
            except OSError as e:
                raise CollectorError(
                    "local", f"Failed to read {obj.name}: {e}", {"path": str(path)}
                ) from e

        record_download(self.collector_type, len(data))
        return data
