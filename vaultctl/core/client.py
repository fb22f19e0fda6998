"""HTTP client for the Vault REST API.

Provides retry logic and token-based authentication.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any

import httpx

from vaultctl.core.exceptions import (
    AuthenticationError,
    NetworkError,
    ResourceNotFoundError,
    RetryExhaustedError,
    ServerUnreachableError,
    VersionMismatchError,
)
from vaultctl.core.validation import validate_server_url

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

DEFAULT_TIMEOUT = 30
DEFAULT_MAX_RETRIES = 3
RETRY_BACKOFF_BASE = 2
RETRYABLE_STATUS_CODES = {502, 503, 504}
API_VERSION_SUPPORTED = "1"


# =============================================================================
# VaultClient
# =============================================================================


@dataclass
class VaultClient:
    """HTTP client for the Vault REST API with retry.

    Safe to share between threads; the underlying httpx client is created
    once on first use.
    """

    base_url: str
    username: str | None = None
    password: str | None = None
    token: str | None = None
    timeout: int = DEFAULT_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    verify_ssl: bool = True
    _client: httpx.Client | None = field(init=False, default=None, repr=False)
    _lock: threading.Lock = field(init=False, default_factory=threading.Lock, repr=False)

    def __post_init__(self) -> None:
        """Validate and normalize URL."""
        self.base_url = validate_server_url(self.base_url)

    # =========================================================================
    # Client Management
    # =========================================================================

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client."""
        with self._lock:
            if self._client is None:
                self._client = httpx.Client(
                    base_url=self.base_url,
                    timeout=self.timeout,
                    verify=self.verify_ssl,
                    follow_redirects=True,
                )
            return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        with self._lock:
            if self._client is not None:
                self._client.close()
                self._client = None

    def __enter__(self) -> VaultClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    # =========================================================================
    # Authentication
    # =========================================================================

    @property
    def is_authenticated(self) -> bool:
        """Check if client has an API token."""
        return self.token is not None

    def authenticate(self) -> str:
        """Exchange username/password for an API token.

        Returns:
            API token.

        Raises:
            AuthenticationError: If authentication fails.
        """
        if not self.username or not self.password:
            raise AuthenticationError(self.base_url, "Username and password required")

        client = self._get_client()

        try:
            resp = client.post(
                "/api/token-auth/",
                json={"username": self.username, "password": self.password},
            )
        except httpx.ConnectError as e:
            raise ServerUnreachableError(self.base_url) from e
        except httpx.TimeoutException as e:
            raise NetworkError(self.base_url, f"Timeout: {e}") from e

        if resp.status_code != 200:
            raise AuthenticationError(self.base_url, f"HTTP {resp.status_code}")

        try:
            token = resp.json().get("token")
        except ValueError:
            token = None
        if not token:
            raise AuthenticationError(self.base_url, "Invalid credentials")

        self.token = token
        return token

    # =========================================================================
    # HTTP Methods
    # =========================================================================

    def _get_headers(self, headers: dict[str, str] | None) -> dict[str, str]:
        merged = dict(headers or {})
        if self.token:
            merged["Authorization"] = f"Token {self.token}"
        return merged

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any | None = None,
        data: Any | None = None,
        files: Any | None = None,
        headers: dict[str, str] | None = None,
        timeout: int | None = None,
    ) -> httpx.Response:
        """Execute HTTP request with retry logic.

        Request bodies must be re-sendable (bytes, dicts), since a transient
        failure sends the same request again.

        Raises:
            AuthenticationError: If authentication fails.
            ResourceNotFoundError: On HTTP 404.
            RetryExhaustedError: If all retries fail.
        """
        client = self._get_client()
        request_headers = self._get_headers(headers)
        request_timeout = timeout or self.timeout
        last_error: Exception | None = None

        for attempt in range(self.max_retries + 1):
            try:
                resp = client.request(
                    method,
                    path,
                    params=params,
                    json=json,
                    data=data,
                    files=files,
                    headers=request_headers,
                    timeout=request_timeout,
                )

                if resp.status_code in (401, 403):
                    raise AuthenticationError(
                        self.base_url,
                        "Token expired or permission denied",
                    )

                if resp.status_code == 404:
                    raise ResourceNotFoundError("resource", path)

                if resp.status_code in RETRYABLE_STATUS_CODES:
                    last_error = NetworkError(self.base_url, f"HTTP {resp.status_code}")
                else:
                    resp.raise_for_status()
                    return resp

            except httpx.ConnectError:
                last_error = ServerUnreachableError(self.base_url)
            except httpx.TimeoutException:
                last_error = NetworkError(self.base_url, f"Timeout after {request_timeout}s")

            if attempt < self.max_retries:
                delay = RETRY_BACKOFF_BASE ** (attempt + 1)
                logger.warning(
                    "%s %s: %s on attempt %d/%d, retrying in %ds",
                    method,
                    path,
                    last_error,
                    attempt + 1,
                    self.max_retries + 1,
                    delay,
                )
                time.sleep(delay)

        raise RetryExhaustedError(f"{method} {path}", self.max_retries + 1, last_error)

    def get(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: int | None = None,
    ) -> httpx.Response:
        """GET request."""
        return self._request("GET", path, params=params, headers=headers, timeout=timeout)

    def post(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any | None = None,
        data: Any | None = None,
        files: Any | None = None,
        headers: dict[str, str] | None = None,
        timeout: int | None = None,
    ) -> httpx.Response:
        """POST request."""
        return self._request(
            "POST",
            path,
            params=params,
            json=json,
            data=data,
            files=files,
            headers=headers,
            timeout=timeout,
        )

    # =========================================================================
    # Convenience Methods
    # =========================================================================

    def get_json(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """GET request returning JSON."""
        resp = self.get(path, params=params)
        return resp.json()

    def version(self) -> str:
        """Return the API version reported by the server, or "" if unknown."""
        try:
            data = self.get_json("/api/version")
        except ResourceNotFoundError:
            return ""
        if isinstance(data, dict):
            return str(data.get("version", ""))
        return str(data or "").strip()

    def check_version(self) -> None:
        """Fail if the server reports an unsupported API version.

        Raises:
            VersionMismatchError: On mismatch.
        """
        server_version = self.version()
        if server_version and server_version != API_VERSION_SUPPORTED:
            raise VersionMismatchError(server_version, API_VERSION_SUPPORTED)

    def ping(self) -> dict[str, Any]:
        """Check server connectivity and get version info."""
        start = time.time()
        version = self.version()
        latency = int((time.time() - start) * 1000)

        return {
            "url": self.base_url,
            "status": "ok",
            "version": version or "unknown",
            "latency_ms": latency,
        }
