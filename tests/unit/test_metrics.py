"""Unit tests for Prometheus metrics helpers."""

import pytest
from prometheus_client import REGISTRY, CollectorRegistry, Counter

from speedometer.monitoring import (
    record_download,
    track_collector_operation,
    write_metrics_file,
)


def sample(name: str, labels: dict) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


class TestTrackCollectorOperation:
    """Tests for the collector operation context manager."""

    def test_success(self):
        """Successful operations are counted as success."""
        labels = {"collector": "test", "operation": "list_objects", "status": "success"}
        before = sample("speedometer_collector_operations_total", labels)

        with track_collector_operation("test", "list_objects"):
            pass

        assert sample("speedometer_collector_operations_total", labels) == before + 1

    def test_error(self):
        """Failing operations are counted as error and re-raised."""
        labels = {"collector": "test", "operation": "download", "status": "error"}
        before = sample("speedometer_collector_operations_total", labels)

        with pytest.raises(RuntimeError):
            with track_collector_operation("test", "download"):
                raise RuntimeError("boom")

        assert sample("speedometer_collector_operations_total", labels) == before + 1

    def test_latency_observed(self):
        """Every operation records a latency observation."""
        labels = {"collector": "test", "operation": "timed"}
        before = sample("speedometer_collector_latency_seconds_count", labels)

        with track_collector_operation("test", "timed"):
            pass

        assert sample("speedometer_collector_latency_seconds_count", labels) == before + 1


class TestHelpers:
    """Tests for counters and textfile output."""

    def test_record_download(self):
        """Downloaded bytes are summed per collector."""
        before = sample("speedometer_collector_bytes_total", {"collector": "test"})

        record_download("test", 128)

        assert sample("speedometer_collector_bytes_total", {"collector": "test"}) == before + 128

    def test_write_metrics_file(self, tmp_path):
        """A registry is written in Prometheus text format."""
        registry = CollectorRegistry()
        counter = Counter("example_total", "Example counter", registry=registry)
        counter.inc(3)
        path = tmp_path / "metrics.prom"

        write_metrics_file(path, registry)

        assert "example_total 3.0" in path.read_text()
