"""GitHub HTTP client with error translation.

Synchronous HTTP client for the GitHub REST API. Non-2xx responses are
translated into gho error kinds. Rate limits are reported to the caller,
never waited out: a CLI should not silently block a human for minutes.
Only transport failures (timeouts, dropped connections) are retried.
"""

import logging
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Optional

import httpx
from pydantic import BaseModel

from gho import __version__
from gho.errors import (
    AuthenticationFailed,
    NetworkError,
    NotFound,
    RateLimited,
    UnexpectedApiError,
)

logger = logging.getLogger(__name__)


class RateLimitInfo(BaseModel):
    """GitHub API rate limit information from response headers."""

    limit: int
    remaining: int
    reset: datetime
    used: int
    resource: str = "core"

    @classmethod
    def from_headers(cls, headers: httpx.Headers) -> Optional["RateLimitInfo"]:
        """Extract rate limit info from response headers.

        Args:
            headers: HTTP response headers.

        Returns:
            RateLimitInfo if headers present, None otherwise.
        """
        if "x-ratelimit-limit" not in headers:
            return None

        reset_timestamp = int(headers.get("x-ratelimit-reset", "0"))
        reset_dt = datetime.fromtimestamp(reset_timestamp, tz=UTC)

        return cls(
            limit=int(headers.get("x-ratelimit-limit", "0")),
            remaining=int(headers.get("x-ratelimit-remaining", "0")),
            reset=reset_dt,
            used=int(headers.get("x-ratelimit-used", "0")),
            resource=headers.get("x-ratelimit-resource", "core"),
        )


@dataclass
class GitHubResponse:
    """Successful GitHub API response with parsed data and metadata."""

    status_code: int
    data: Any
    headers: httpx.Headers
    rate_limit: RateLimitInfo | None = None


@dataclass
class HTTPRateLimitState:
    """Tracks rate limit state across requests made by one client."""

    last_rate_limit: RateLimitInfo | None = None
    requests_made: int = 0

    LOW_WATERMARK = 50

    def update(self, rate_limit: RateLimitInfo | None) -> None:
        """Update state with new rate limit info.

        Args:
            rate_limit: Latest rate limit info from response.
        """
        self.requests_made += 1
        if rate_limit:
            self.last_rate_limit = rate_limit

            if 0 < rate_limit.remaining <= self.LOW_WATERMARK:
                logger.warning(
                    "GitHub rate limit nearly exhausted: %d of %d left, resets %s",
                    rate_limit.remaining,
                    rate_limit.limit,
                    rate_limit.reset.isoformat(),
                )


def _retry_after_seconds(response: httpx.Response) -> int | None:
    """Parse the retry-after header, if present."""
    value = response.headers.get("retry-after")
    if value is None:
        return None
    try:
        return max(int(value), 0)
    except ValueError:
        return None


def _is_rate_limited(response: httpx.Response) -> bool:
    """Check whether a 403/429 response is a (primary or secondary) rate limit."""
    if response.status_code == 429:
        return True
    if response.status_code != 403:
        return False
    if "retry-after" in response.headers:
        return True
    if response.headers.get("x-ratelimit-remaining") == "0":
        return True
    return "rate limit" in response.text.lower()


def raise_for_status(response: httpx.Response) -> None:
    """Translate a non-2xx response into a gho error.

    Args:
        response: HTTP response.

    Raises:
        RateLimited: 429, or 403 with rate limit markers.
        AuthenticationFailed: 401, or 403 without rate limit markers.
        NotFound: 404.
        UnexpectedApiError: Any other non-2xx status.
    """
    status = response.status_code
    if 200 <= status < 300:
        return

    if status in (403, 429) and _is_rate_limited(response):
        rate_limit = RateLimitInfo.from_headers(response.headers)
        retry_after = _retry_after_seconds(response)
        reset_at = rate_limit.reset if rate_limit else None
        if retry_after is None and reset_at is not None:
            retry_after = max(int((reset_at - datetime.now(UTC)).total_seconds()) + 1, 0)
        logger.warning("Rate limited by GitHub on %s", response.request.url.path)
        raise RateLimited(retry_after=retry_after, reset_at=reset_at)

    if status in (401, 403):
        raise AuthenticationFailed(status, _error_message(response))

    if status == 404:
        raise NotFound(response.request.url.path)

    logger.error("Unexpected status %d for %s", status, response.request.url.path)
    raise UnexpectedApiError(status, response.text)


def _error_message(response: httpx.Response) -> str:
    """Pull the ``message`` field out of an error body, if it is JSON."""
    try:
        body = response.json()
    except ValueError:
        return ""
    if isinstance(body, dict):
        return str(body.get("message", ""))
    return ""


class GitHubClient:
    """HTTP client for the GitHub API.

    Features:
    - Bearer token authentication
    - Error translation to gho error kinds
    - Retry with exponential backoff on transport failures only
    - Rate limit tracking from response headers
    """

    BASE_URL = "https://api.github.com"
    DEFAULT_TIMEOUT = 30.0
    DEFAULT_MAX_RETRIES = 2
    INITIAL_BACKOFF = 1.0
    BACKOFF_MULTIPLIER = 2.0

    def __init__(
        self,
        token: str,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_url: str = BASE_URL,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize GitHub HTTP client.

        Args:
            token: GitHub token sent as a bearer token.
            timeout: Request timeout in seconds.
            max_retries: Maximum retries for transport failures.
            base_url: Base URL for GitHub API.
            transport: Optional httpx transport, mainly for tests.
        """
        self._token = token
        self._timeout = timeout
        self._max_retries = max_retries
        self._base_url = base_url.rstrip("/")
        self._transport = transport

        self._client: httpx.Client | None = None
        self._rate_limit_state = HTTPRateLimitState()

    @property
    def rate_limit_state(self) -> HTTPRateLimitState:
        """Get current rate limit state."""
        return self._rate_limit_state

    def _get_headers(self) -> dict[str, str]:
        """Get headers for API requests."""
        return {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": f"gho/{__version__}",
            "Authorization": f"Bearer {self._token}",
        }

    def _ensure_client(self) -> httpx.Client:
        """Ensure the underlying httpx client is initialized."""
        if self._client is None:
            self._client = httpx.Client(
                base_url=self._base_url,
                timeout=self._timeout,
                headers=self._get_headers(),
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send a request, retrying transport failures with backoff.

        Raises:
            NetworkError: If the request keeps failing at the transport level.
        """
        client = self._ensure_client()
        retry_count = 0

        while True:
            logger.debug("%s %s (attempt %d)", method, path, retry_count + 1)
            try:
                return client.request(method, path, **kwargs)
            except httpx.TransportError as e:
                if retry_count >= self._max_retries:
                    msg = f"Request to {path} failed after {retry_count + 1} attempts: {e}"
                    raise NetworkError(msg) from e

                wait_seconds = self.INITIAL_BACKOFF * (self.BACKOFF_MULTIPLIER**retry_count)
                logger.warning(
                    "Transport error for %s %s: %s. Retrying in %.1fs",
                    method,
                    path,
                    e,
                    wait_seconds,
                )
                time.sleep(wait_seconds)
                retry_count += 1

    def request(self, method: str, path: str, **kwargs: Any) -> GitHubResponse:
        """Make an HTTP request to the GitHub API.

        Args:
            method: HTTP method.
            path: API path (e.g. "/user") or absolute URL (pagination links).
            **kwargs: Additional arguments passed to httpx (params, etc.).

        Returns:
            GitHubResponse with parsed JSON data.

        Raises:
            AuthenticationFailed, NotFound, RateLimited, UnexpectedApiError,
            NetworkError: See raise_for_status and _send.
        """
        response = self._send(method, path, **kwargs)

        rate_limit = RateLimitInfo.from_headers(response.headers)
        self._rate_limit_state.update(rate_limit)

        raise_for_status(response)

        data = None
        if response.content:
            try:
                data = response.json()
            except ValueError as e:
                raise UnexpectedApiError(response.status_code, response.text) from e

        return GitHubResponse(
            status_code=response.status_code,
            data=data,
            headers=response.headers,
            rate_limit=rate_limit,
        )

    def get(self, path: str, **kwargs: Any) -> GitHubResponse:
        """Make a GET request."""
        return self.request("GET", path, **kwargs)

    def close(self) -> None:
        """Close the HTTP client and release connections."""
        if self._client:
            self._client.close()
            self._client = None

    def __enter__(self) -> "GitHubClient":
        self._ensure_client()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
