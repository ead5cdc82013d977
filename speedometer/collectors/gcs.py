"""Google Cloud Storage collector for speed-test log files.

This module lists and downloads log objects from a bucket through the
Cloud Storage JSON API.

API Reference: https://cloud.google.com/storage/docs/json_api/v1/objects
"""

import asyncio
from pathlib import Path
from typing import Any, Optional
from urllib.parse import quote

import httpx
import structlog
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from speedometer.collectors.base import BaseCollector, LogObject
from speedometer.collectors.registry import CollectorType, register_collector
from speedometer.core.exceptions import (
    CollectorAuthError,
    CollectorError,
    CollectorNotFoundError,
    CollectorRateLimitError,
    CollectorTimeoutError,
    CollectorUnavailableError,
)
from speedometer.monitoring.metrics import record_download, track_collector_operation

logger = structlog.get_logger(__name__)


# =============================================================================
# Constants
# =============================================================================

GCS_API_BASE = "https://storage.googleapis.com/storage/v1"

READ_ONLY_SCOPE = "https://www.googleapis.com/auth/devstorage.read_only"

# Only the fields the collector uses are requested when listing
LIST_FIELDS = "items(name,size),nextPageToken"


def load_service_account_token(auth_file: Path) -> str:
    """Exchange a service account key file for an OAuth2 access token.

    Blocking: performs a token request over the network.

    Raises:
        CollectorAuthError: If the file is unreadable or the exchange fails.
    """
    try:
        credentials = service_account.Credentials.from_service_account_file(
            str(auth_file),
            scopes=[READ_ONLY_SCOPE],
        )
        credentials.refresh(Request())
    except (OSError, ValueError, GoogleAuthError) as e:
        raise CollectorAuthError(
            "gcs",
            f"Could not authorize with service account file: {e}",
            {"auth_file": str(auth_file)},
        ) from e
    return credentials.token


# =============================================================================
# Google Cloud Storage Collector
# =============================================================================


@register_collector(CollectorType.GCS)
class GcsCollector(BaseCollector):
    """Async collector for log objects in a Cloud Storage bucket.

    Config options:
        bucket: Bucket name (required)
        auth_file: Service account JSON file, exchanged for a token on first use
        access_token: OAuth2 bearer token, used as-is
        timeout: Request timeout in seconds (default 30)
        max_concurrency: Simultaneous downloads (default 16)
        transport: Optional httpx transport, mainly for tests

    Without credentials the bucket is accessed anonymously, which works for
    public buckets only.

    Example:
        async with GcsCollector({"bucket": "my-logs", "auth_file": key_path}) as collector:
            items = await collector.collect()
    """

    collector_type = "gcs"

    def __init__(self, config: dict[str, Any]):
        """Initialize the collector.

        Args:
            config: Configuration dictionary, see class docstring.

        Raises:
            ValueError: If no bucket is configured or both credential kinds are.
        """
        super().__init__(config)
        self.bucket: str = config.get("bucket") or ""
        if not self.bucket:
            raise ValueError("GcsCollector requires a bucket")

        auth_file = config.get("auth_file")
        self._auth_file: Optional[Path] = Path(auth_file) if auth_file else None
        self._access_token: Optional[str] = config.get("access_token")
        if self._auth_file and self._access_token:
            raise ValueError("auth_file and access_token are mutually exclusive")

        self._timeout = float(config.get("timeout", 30.0))
        self._transport: Optional[httpx.AsyncBaseTransport] = config.get("transport")
        self._client: Optional[httpx.AsyncClient] = None
        self._client_lock = asyncio.Lock()

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _resolve_token(self) -> Optional[str]:
        """Return the bearer token, exchanging the service account file if needed."""
        if self._access_token or self._auth_file is None:
            return self._access_token

        loop = asyncio.get_event_loop()
        self._access_token = await loop.run_in_executor(
            None, load_service_account_token, self._auth_file
        )
        logger.info("gcs_authorized", auth_file=str(self._auth_file))
        return self._access_token

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure HTTP client is initialized."""
        async with self._client_lock:
            if self._client is None:
                headers = {}
                token = await self._resolve_token()
                if token:
                    headers["Authorization"] = f"Bearer {token}"
                self._client = httpx.AsyncClient(
                    base_url=GCS_API_BASE,
                    timeout=httpx.Timeout(self._timeout),
                    headers=headers,
                    transport=self._transport,
                )
        return self._client

    def _object_path(self, name: Optional[str] = None) -> str:
        path = f"/b/{quote(self.bucket, safe='')}/o"
        if name is not None:
            path = f"{path}/{quote(name, safe='')}"
        return path

    async def _request(self, path: str, params: dict[str, str]) -> httpx.Response:
        """Make a GET request and map failures to collector errors.

        Args:
            path: API path relative to GCS_API_BASE.
            params: Query parameters.

        Returns:
            Successful response.

        Raises:
            CollectorRateLimitError: When rate limited.
            CollectorAuthError: On authentication or permission failure.
            CollectorNotFoundError: When bucket or object does not exist.
            CollectorUnavailableError: On server-side errors.
            CollectorTimeoutError: When the request times out.
            CollectorError: On other API errors.
        """
        client = await self._ensure_client()
        details = {"bucket": self.bucket, "path": path}

        try:
            response = await client.get(path, params=params)
        except httpx.TimeoutException as e:
            logger.error("gcs_timeout", error=str(e), **details)
            raise CollectorTimeoutError("gcs", f"Request timeout: {e}", details) from e
        except httpx.RequestError as e:
            logger.error("gcs_request_error", error=str(e), **details)
            raise CollectorError(
                "gcs",
                f"Request failed: {e}",
                {**details, "original_error": str(e)},
            ) from e

        if response.status_code == 429:
            logger.warning("gcs_rate_limited", **details)
            raise CollectorRateLimitError("gcs", "Rate limited by Cloud Storage", details)
        elif response.status_code in (401, 403):
            raise CollectorAuthError(
                "gcs",
                f"Not authorized to read bucket {self.bucket}",
                {**details, "status_code": response.status_code},
            )
        elif response.status_code == 404:
            raise CollectorNotFoundError("gcs", f"Resource not found: {path}", details)
        elif response.status_code >= 500:
            raise CollectorUnavailableError(
                "gcs",
                f"Cloud Storage unavailable ({response.status_code})",
                {**details, "status_code": response.status_code},
            )
        elif response.status_code >= 400:
            error_msg = _error_message(response)
            logger.error(
                "gcs_api_error",
                status_code=response.status_code,
                error=error_msg,
                **details,
            )
            raise CollectorError(
                "gcs",
                f"API error {response.status_code}: {error_msg}",
                {**details, "status_code": response.status_code},
            )

        return response

    # -------------------------------------------------------------------------
    # Public API Methods
    # -------------------------------------------------------------------------

    async def list_objects(self) -> list[LogObject]:
        """List every object in the bucket, following pagination.

        Returns:
            LogObjects in the order the API lists them (lexicographic by name).
        """
        objects: list[LogObject] = []
        page_token: Optional[str] = None

        with track_collector_operation(self.collector_type, "list_objects"):
            while True:
                params = {"fields": LIST_FIELDS}
                if page_token:
                    params["pageToken"] = page_token

                response = await self._request(self._object_path(), params)
                try:
                    payload = response.json()
                    items = [
                        LogObject(name=item["name"], size=int(item.get("size", 0)))
                        for item in payload.get("items", [])
                    ]
                    page_token = payload.get("nextPageToken")
                except (ValueError, KeyError, TypeError, AttributeError) as e:
                    logger.error("gcs_malformed_listing", bucket=self.bucket, error=str(e))
                    raise CollectorError(
                        "gcs",
                        f"Malformed object listing: {e!r}",
                        {"bucket": self.bucket},
                    ) from e
                objects.extend(items)

                if not page_token:
                    break

        logger.info("gcs_objects_listed", bucket=self.bucket, count=len(objects))
        return objects

    async def download(self, obj: LogObject) -> bytes:
        """Download the contents of one object.

        Args:
            obj: Object returned by list_objects().

        Returns:
            Raw object contents.
        """
        with track_collector_operation(self.collector_type, "download"):
            response = await self._request(self._object_path(obj.name), {"alt": "media"})

        record_download(self.collector_type, len(response.content))
        return response.content


def _error_message(response: httpx.Response) -> str:
    """Extract the error message from a JSON API error body."""
    try:
        return response.json().get("error", {}).get("message", "Unknown error")
    except ValueError:
        return response.text or "Unknown error"
