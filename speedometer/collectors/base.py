"""Base collector interface for all log collectors.

All collectors should extend BaseCollector and implement the required methods.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class LogObject:
    """A log file available from a collector."""

    name: str
    size: int


class BaseCollector(ABC):
    """Abstract base class for all log collectors.

    Provides the common download fan-out. Concrete collectors implement
    listing and fetching for their storage.
    """

    collector_type: str = "base"

    def __init__(self, config: dict[str, Any]):
        """Initialize collector with configuration.

        Args:
            config: Configuration dictionary with collector-specific settings.
                max_concurrency bounds simultaneous downloads (default 16).
        """
        self.config = config
        self.max_concurrency = int(config.get("max_concurrency", 16))
        if self.max_concurrency < 1:
            raise ValueError("max_concurrency must be positive")

    async def __aenter__(self) -> "BaseCollector":
        """Enter async context manager."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context manager."""
        await self.close()

    async def close(self) -> None:
        """Release any resources held by the collector."""

    @abstractmethod
    async def list_objects(self) -> list[LogObject]:
        """List the log files available from the source.

        Returns:
            LogObjects in the order the source reports them.
        """
        ...

    @abstractmethod
    async def download(self, obj: LogObject) -> bytes:
        """Fetch the raw contents of one log file.

        Args:
            obj: Object returned by list_objects().

        Returns:
            Raw file contents.
        """
        ...

    async def collect(self) -> list[tuple[str, bytes]]:
        """Download every listed log file concurrently.

        Any download failure aborts the collection.

        Returns:
            List of (object name, raw bytes) pairs in listing order.
        """
        objects = await self.list_objects()
        total_size = sum(obj.size for obj in objects)
        semaphore = asyncio.Semaphore(self.max_concurrency)
        downloaded = 0

        logger.info(
            "collection_started",
            collector=self.collector_type,
            objects=len(objects),
            total_bytes=total_size,
        )

        async def fetch(obj: LogObject) -> tuple[str, bytes]:
            nonlocal downloaded
            async with semaphore:
                data = await self.download(obj)
            downloaded += obj.size
            logger.debug(
                "download_progress",
                collector=self.collector_type,
                name=obj.name,
                downloaded_bytes=downloaded,
                total_bytes=total_size,
            )
            return obj.name, data

        tasks = [asyncio.ensure_future(fetch(obj)) for obj in objects]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            # Siblings must not outlive the collector's client.
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        logger.info(
            "collection_finished",
            collector=self.collector_type,
            objects=len(results),
        )
        return list(results)
