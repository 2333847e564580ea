"""Provider interface and the shared HTTP request executor."""

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, NamedTuple

import httpx

from forge_release.models.release import (
    AssetConfig,
    AssetInfo,
    MalformedResponseError,
    ReleaseConfig,
    ReleaseResult,
)

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30.0
UPLOAD_TIMEOUT = 300.0

__all__ = [
    "ApiError",
    "ApiResponse",
    "AssetError",
    "MalformedResponseError",
    "NotFoundError",
    "Provider",
]


class ApiError(Exception):
    """Non-success HTTP status from the API."""

    def __init__(self, status: int, reason: str, body: str):
        self.status = status
        self.reason = reason
        self.body = body
        super().__init__(f"HTTP {status} {reason}: {body}")


class NotFoundError(ApiError):
    """The API answered 404."""

    pass


class AssetError(Exception):
    """A local asset cannot be uploaded."""

    pass


class ApiResponse(NamedTuple):
    data: Any
    status: int


class Provider(ABC):
    """Release operations against one platform's REST API.

    Subclasses set `accept` (and optionally `extra_headers`) and
    implement the release lifecycle in their own dialect. Use as a
    context manager so the HTTP client gets closed.
    """

    accept = "application/json"
    extra_headers: dict[str, str] = {}

    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        *,
        skip_certificate_check: bool = False,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.token = token
        self.owner = owner
        self.repo = repo
        self.sleep = sleep
        self.client = httpx.Client(
            headers={
                "Authorization": f"token {token}",
                "Accept": self.accept,
                **self.extra_headers,
            },
            verify=not skip_certificate_check,
            timeout=REQUEST_TIMEOUT,
            follow_redirects=True,
            transport=transport,
        )

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def close(self) -> None:
        self.client.close()

    def request(
        self,
        method: str,
        url: str,
        *,
        json: Any = None,
        content: bytes | None = None,
        files: dict | None = None,
        params: dict | None = None,
        headers: dict[str, str] | None = None,
        timeout: float = REQUEST_TIMEOUT,
    ) -> ApiResponse:
        """Make an authenticated request and decode the JSON answer.

        Raises:
            NotFoundError: on HTTP 404
            ApiError: on any other non-success status
            MalformedResponseError: when a non-empty body is not JSON
        """
        request_headers = dict(headers or {})
        if json is not None:
            request_headers.setdefault("Content-Type", "application/json")

        logger.debug("%s %s", method, url)
        response = self.client.request(
            method,
            url,
            json=json,
            content=content,
            files=files,
            params=params,
            headers=request_headers,
            timeout=timeout,
        )
        logger.debug("%s %s -> %d %s", method, url, response.status_code, response.reason_phrase)

        if not response.is_success:
            body = response.text or response.reason_phrase
            logger.debug("Error response: %s", body[:500])
            error_cls = NotFoundError if response.status_code == 404 else ApiError
            raise error_cls(response.status_code, response.reason_phrase, body)

        if response.status_code == 204 or not response.content:
            return ApiResponse({}, response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponseError(
                f"Failed to parse JSON response from {method} {url}: {e}"
            ) from e

        return ApiResponse(data, response.status_code)

    def read_asset(self, asset: AssetConfig) -> bytes:
        """Read an asset file, checking it is a regular file first."""
        if not asset.path.exists():
            raise AssetError(f"Asset file not found: {asset.path}")
        if not asset.path.is_file():
            raise AssetError(f"Asset path is not a file: {asset.path}")
        return asset.path.read_bytes()

    @abstractmethod
    def create_release(self, config: ReleaseConfig) -> ReleaseResult:
        """Create a new release."""

    @abstractmethod
    def update_release(self, release_id: str, config: ReleaseConfig) -> ReleaseResult:
        """Update an existing release, sending only the fields that are set."""

    @abstractmethod
    def get_release_by_tag(self, tag: str) -> ReleaseResult | None:
        """Get a release by tag, None when there is none."""

    @abstractmethod
    def upload_asset(self, release_id: str, upload_url: str, asset: AssetConfig) -> str:
        """Upload an asset and return its download URL."""

    @abstractmethod
    def delete_asset(self, asset_id: str) -> None:
        """Delete an asset from its release."""

    @abstractmethod
    def list_assets(self, release_id: str) -> list[AssetInfo]:
        """List assets attached to a release."""

    @abstractmethod
    def create_tag(self, tag: str, commit: str, message: str | None = None) -> None:
        """Create a tag pointing at `commit`, leaving an existing tag as is."""

    @abstractmethod
    def generate_release_notes(self, tag: str, previous_tag: str | None = None) -> str:
        """Generate release notes for `tag`."""
