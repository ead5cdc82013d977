"""Unit tests for log collectors.

Cloud Storage requests are served by httpx.MockTransport.
"""

import asyncio
import json

import httpx
import pytest
from unittest.mock import patch

from speedometer.collectors import (
    BaseCollector,
    CollectorType,
    GcsCollector,
    LocalDirectoryCollector,
    LogObject,
    get_collector,
    get_collector_for_settings,
    list_collectors,
)
from speedometer.collectors.gcs import load_service_account_token
from speedometer.config import Settings
from speedometer.core.exceptions import (
    CollectorAuthError,
    CollectorError,
    CollectorNotFoundError,
    CollectorRateLimitError,
    CollectorTimeoutError,
    CollectorUnavailableError,
    RetryableError,
)


class FakeBucket:
    """In-memory bucket answering Cloud Storage JSON API requests."""

    def __init__(self, objects: dict[str, bytes], page_size: int = 2):
        self.objects = objects
        self.page_size = page_size
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        prefix = "/storage/v1/b/logs-bucket/o"
        path = request.url.path

        if path == prefix:
            names = sorted(self.objects)
            start = int(request.url.params.get("pageToken", "0"))
            page = names[start : start + self.page_size]
            body = {"items": [{"name": n, "size": str(len(self.objects[n]))} for n in page]}
            if start + self.page_size < len(names):
                body["nextPageToken"] = str(start + self.page_size)
            return httpx.Response(200, json=body)

        name = path[len(prefix) + 1 :]
        if request.url.params.get("alt") == "media" and name in self.objects:
            return httpx.Response(200, content=self.objects[name])
        return httpx.Response(404, json={"error": {"code": 404, "message": "No such object"}})


def gcs_collector(handler, **config) -> GcsCollector:
    return GcsCollector(
        {"bucket": "logs-bucket", "transport": httpx.MockTransport(handler), **config}
    )


class TestRegistry:
    """Tests for collector registration and factories."""

    def test_registered_types(self):
        """Both log sources are registered."""
        assert set(list_collectors()) == {CollectorType.GCS, CollectorType.LOCAL}

    def test_get_collector(self, tmp_path):
        """get_collector builds the registered class."""
        collector = get_collector(CollectorType.LOCAL, {"directory": tmp_path})

        assert isinstance(collector, LocalDirectoryCollector)

    def test_for_local_settings(self, tmp_path):
        """Local settings build a directory collector."""
        settings = Settings(
            _env_file=None,
            source="local",
            local_dir=tmp_path,
            max_concurrent_downloads=3,
        )

        collector = get_collector_for_settings(settings)

        assert isinstance(collector, LocalDirectoryCollector)
        assert collector.directory == tmp_path
        assert collector.max_concurrency == 3

    def test_for_gcs_settings(self):
        """GCS settings pass bucket and credentials explicitly."""
        settings = Settings(_env_file=None, bucket="my-bucket", access_token="abc")

        collector = get_collector_for_settings(settings)

        assert isinstance(collector, GcsCollector)
        assert collector.bucket == "my-bucket"
        assert collector._access_token == "abc"


class TestLocalDirectoryCollector:
    """Tests for reading logs from disk."""

    @pytest.fixture
    def log_dir(self, tmp_path):
        (tmp_path / "2023" / "03").mkdir(parents=True)
        (tmp_path / "2023" / "03" / "b.jsonl").write_bytes(b'{"b": 1}')
        (tmp_path / "a.jsonl").write_bytes(b'{"a": 1}')
        return tmp_path

    @pytest.mark.asyncio
    async def test_list_objects(self, log_dir):
        """Files are listed recursively by relative path."""
        collector = LocalDirectoryCollector({"directory": log_dir})

        objects = await collector.list_objects()

        assert objects == [
            LogObject(name="2023/03/b.jsonl", size=8),
            LogObject(name="a.jsonl", size=8),
        ]

    @pytest.mark.asyncio
    async def test_collect(self, log_dir):
        """collect() returns (name, bytes) pairs in listing order."""
        async with LocalDirectoryCollector({"directory": log_dir}) as collector:
            items = await collector.collect()

        assert items == [("2023/03/b.jsonl", b'{"b": 1}'), ("a.jsonl", b'{"a": 1}')]

    @pytest.mark.asyncio
    async def test_pattern(self, log_dir):
        """The glob pattern filters files."""
        (log_dir / "notes.txt").write_text("ignore me")
        collector = LocalDirectoryCollector({"directory": log_dir, "pattern": "*.jsonl"})

        names = [obj.name for obj in await collector.list_objects()]

        assert "notes.txt" not in names
        assert len(names) == 2

    @pytest.mark.asyncio
    async def test_missing_directory(self, tmp_path):
        """A missing directory raises CollectorNotFoundError."""
        collector = LocalDirectoryCollector({"directory": tmp_path / "missing"})

        with pytest.raises(CollectorNotFoundError):
            await collector.list_objects()

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path):
        """Downloading a vanished file raises CollectorNotFoundError."""
        collector = LocalDirectoryCollector({"directory": tmp_path})

        with pytest.raises(CollectorNotFoundError):
            await collector.download(LogObject(name="gone.jsonl", size=0))

    def test_requires_directory(self):
        """A directory must be configured."""
        with pytest.raises(ValueError):
            LocalDirectoryCollector({})

    def test_invalid_concurrency(self, tmp_path):
        """max_concurrency must be positive."""
        with pytest.raises(ValueError):
            LocalDirectoryCollector({"directory": tmp_path, "max_concurrency": 0})


class TestGcsCollector:
    """Tests for the Cloud Storage collector."""

    @pytest.fixture
    def bucket(self, producer_logs):
        return FakeBucket({f"{name}.jsonl": data for name, data in producer_logs.items()})

    @pytest.mark.asyncio
    async def test_list_objects_paginates(self, bucket):
        """Listing follows nextPageToken until exhausted."""
        async with gcs_collector(bucket) as collector:
            objects = await collector.list_objects()

        assert [obj.name for obj in objects] == sorted(bucket.objects)
        assert objects[0].size == len(bucket.objects[objects[0].name])
        list_requests = [r for r in bucket.requests if "alt" not in r.url.params]
        assert len(list_requests) == 2

    @pytest.mark.asyncio
    async def test_collect(self, bucket):
        """collect() downloads every object."""
        async with gcs_collector(bucket, max_concurrency=2) as collector:
            items = await collector.collect()

        assert dict(items) == bucket.objects

    @pytest.mark.asyncio
    async def test_access_token_header(self, bucket):
        """An access token is sent as a bearer token."""
        async with gcs_collector(bucket, access_token="token-123") as collector:
            await collector.list_objects()

        assert bucket.requests[0].headers["Authorization"] == "Bearer token-123"

    @pytest.mark.asyncio
    async def test_anonymous(self, bucket):
        """Without credentials no Authorization header is sent."""
        async with gcs_collector(bucket) as collector:
            await collector.list_objects()

        assert "Authorization" not in bucket.requests[0].headers

    @pytest.mark.asyncio
    async def test_service_account_file(self, bucket, tmp_path):
        """A service account file is exchanged for a bearer token."""
        key_file = tmp_path / "key.json"

        with patch(
            "speedometer.collectors.gcs.load_service_account_token",
            return_value="sa-token",
        ) as mock_load:
            async with gcs_collector(bucket, auth_file=key_file) as collector:
                await collector.list_objects()

        mock_load.assert_called_once_with(key_file)
        assert bucket.requests[0].headers["Authorization"] == "Bearer sa-token"

    @pytest.mark.asyncio
    async def test_object_name_is_encoded(self):
        """Object names are percent-encoded as a single path segment."""
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, content=b"{}")

        async with gcs_collector(handler) as collector:
            data = await collector.download(LogObject(name="2023/ndt7.jsonl", size=2))

        assert data == b"{}"
        assert b"/o/2023%2Fndt7.jsonl" in seen[0].url.raw_path
        assert seen[0].url.params["alt"] == "media"

    @pytest.mark.parametrize(
        "status,error_type",
        [
            (401, CollectorAuthError),
            (403, CollectorAuthError),
            (404, CollectorNotFoundError),
            (429, CollectorRateLimitError),
            (503, CollectorUnavailableError),
            (400, CollectorError),
        ],
    )
    @pytest.mark.asyncio
    async def test_error_mapping(self, status, error_type):
        """HTTP failures map to collector errors."""

        def handler(request):
            return httpx.Response(status, json={"error": {"message": "nope"}})

        async with gcs_collector(handler) as collector:
            with pytest.raises(error_type):
                await collector.list_objects()

    @pytest.mark.asyncio
    async def test_timeout(self):
        """Timeouts raise a retryable CollectorTimeoutError."""

        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        async with gcs_collector(handler) as collector:
            with pytest.raises(CollectorTimeoutError) as excinfo:
                await collector.list_objects()

        assert isinstance(excinfo.value, RetryableError)

    @pytest.mark.asyncio
    async def test_download_failure_aborts_collect(self, bucket):
        """A failed download aborts the whole collection."""
        original = bucket.__call__

        def handler(request):
            if request.url.params.get("alt") == "media" and request.url.path.endswith("ndt7.jsonl"):
                return httpx.Response(500)
            return original(request)

        async with gcs_collector(handler) as collector:
            with pytest.raises(CollectorUnavailableError):
                await collector.collect()

    def test_requires_bucket(self):
        """A bucket must be configured."""
        with pytest.raises(ValueError):
            GcsCollector({"bucket": ""})

    def test_credentials_mutually_exclusive(self, tmp_path):
        """auth_file and access_token cannot be combined."""
        with pytest.raises(ValueError):
            GcsCollector(
                {"bucket": "b", "auth_file": tmp_path / "k.json", "access_token": "t"}
            )


class TestServiceAccountToken:
    """Tests for exchanging service account files."""

    def test_missing_file(self, tmp_path):
        """A missing key file raises CollectorAuthError."""
        with pytest.raises(CollectorAuthError):
            load_service_account_token(tmp_path / "missing.json")

    def test_malformed_file(self, tmp_path):
        """A key file without the required fields raises CollectorAuthError."""
        key_file = tmp_path / "key.json"
        key_file.write_text(json.dumps({"type": "service_account"}))

        with pytest.raises(CollectorAuthError):
            load_service_account_token(key_file)


class StubCollector(BaseCollector):
    """Collector whose "bad" object fails while the others are still downloading."""

    collector_type = "stub"

    def __init__(self, names: list[str]):
        super().__init__({"max_concurrency": len(names)})
        self.names = names
        self.finished: list[str] = []

    async def list_objects(self) -> list[LogObject]:
        return [LogObject(name=name, size=1) for name in self.names]

    async def download(self, obj: LogObject) -> bytes:
        if obj.name == "bad":
            raise CollectorUnavailableError("stub", "download failed")
        await asyncio.sleep(0.2)
        self.finished.append(obj.name)
        return b"{}"


class TestCollectFailure:
    """Tests for the failure path of collect()."""

    @pytest.mark.asyncio
    async def test_failure_cancels_pending_downloads(self):
        """Downloads still in flight are cancelled when one fails."""
        collector = StubCollector(["bad", "ok0", "ok1", "ok2"])

        with pytest.raises(CollectorUnavailableError):
            await collector.collect()

        pending = [
            task
            for task in asyncio.all_tasks()
            if task is not asyncio.current_task() and not task.done()
        ]
        assert pending == []
        await asyncio.sleep(0.3)
        assert collector.finished == []


class TestGcsMalformedListing:
    """Tests for listing pages the collector cannot read."""

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(200, content=b"<html>not json</html>"),
            httpx.Response(200, json={"items": [{"size": "3"}]}),
            httpx.Response(200, json={"items": [{"name": "a.jsonl", "size": "big"}]}),
            httpx.Response(200, json=["a.jsonl"]),
        ],
        ids=["not-json", "missing-name", "bad-size", "not-an-object"],
    )
    @pytest.mark.asyncio
    async def test_malformed_listing(self, response):
        """Unreadable listings raise CollectorError."""

        def handler(request):
            return response

        async with gcs_collector(handler) as collector:
            with pytest.raises(CollectorError, match="Malformed object listing"):
                await collector.list_objects()
