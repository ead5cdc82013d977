"""Collector registry for runtime collector selection.

Provides decorator-based registration of log sources and factory functions
building a collector from a type or from the application settings.
"""

from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from speedometer.collectors.base import BaseCollector
    from speedometer.config.settings import Settings


class CollectorType(Enum):
    """Supported log sources."""

    GCS = "gcs"
    LOCAL = "local"


_collectors: dict[CollectorType, type["BaseCollector"]] = {}


def register_collector(collector_type: CollectorType):
    """Decorator to register a collector class.

    Args:
        collector_type: The CollectorType enum value for this collector.

    Returns:
        Decorator function that registers the class.

    Example:
        @register_collector(CollectorType.LOCAL)
        class LocalDirectoryCollector(BaseCollector):
            ...
    """

    def decorator(cls: type["BaseCollector"]):
        _collectors[collector_type] = cls
        return cls

    return decorator


def get_collector(collector_type: CollectorType, config: dict[str, Any]) -> "BaseCollector":
    """Factory function to get a collector instance.

    Args:
        collector_type: The type of collector to instantiate.
        config: Configuration dictionary for the collector.

    Returns:
        Instantiated collector.

    Raises:
        ValueError: If the collector type is not registered.
    """
    if collector_type not in _collectors:
        raise ValueError(f"Unknown collector type: {collector_type}")
    return _collectors[collector_type](config)


def get_collector_for_settings(settings: "Settings") -> "BaseCollector":
    """Build the collector selected by the settings.

    Credentials are passed to the collector explicitly.

    Args:
        settings: Application settings.

    Returns:
        Instantiated collector for settings.source.
    """
    collector_type = CollectorType(settings.source)
    config: dict[str, Any] = {"max_concurrency": settings.max_concurrent_downloads}

    if collector_type is CollectorType.LOCAL:
        config["directory"] = settings.local_dir
    else:
        config.update(
            bucket=settings.bucket,
            auth_file=settings.auth_file,
            access_token=(
                settings.access_token.get_secret_value()
                if settings.access_token
                else None
            ),
            timeout=settings.request_timeout_seconds,
        )

    return get_collector(collector_type, config)


def list_collectors() -> list[CollectorType]:
    """List all registered collector types.

    Returns:
        List of registered CollectorType values.
    """
    return list(_collectors.keys())
