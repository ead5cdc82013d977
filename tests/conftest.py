"""
Pytest Configuration and Shared Fixtures.

This module provides common fixtures for all tests:

- fixtures_dir: Directory of sample producer log files
- producer_logs: Raw bytes of one sample log per producer shape
- raw_payload: Minimal well-formed log payload as a dict
- make_buffer: Serialize a payload dict to a raw log buffer
"""

import json
from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures" / "logs"

PRODUCER_FILES = {
    "ndt5": "ndt5-devicename-etc.jsonl",
    "ndt7": "ndt7-devicename2-etc.jsonl",
    "speedtest-cli-single-stream": "speedtest-cli-single-stream-devicename3-etc.jsonl",
    "speedtest-cli-multi-stream": "speedtest-cli-multi-stream-devicename4-etc.jsonl",
}


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the directory holding the sample producer logs."""
    return FIXTURES_DIR


@pytest.fixture
def producer_logs() -> dict[str, bytes]:
    """Return raw sample logs keyed by expected test name."""
    return {
        test_name: (FIXTURES_DIR / filename).read_bytes()
        for test_name, filename in PRODUCER_FILES.items()
    }


@pytest.fixture
def raw_payload() -> dict:
    """Return a minimal well-formed speed-test log payload."""
    return {
        "MurakamiLocation": "test-device",
        "TestStartTime": "2023-03-08T14:41:06.591377",
        "TestName": "ndt7",
        "DownloadValue": 5.0,
        "DownloadUnit": "Mbit/s",
        "UploadValue": 1.0,
        "UploadUnit": "Gbit/s",
        "MinRTTValue": 12.5,
        "ClientIP": "192.0.2.10",
    }


@pytest.fixture
def make_buffer():
    """Return a helper serializing a payload dict to raw bytes."""

    def _make(payload: dict) -> bytes:
        return json.dumps(payload).encode("utf-8")

    return _make
