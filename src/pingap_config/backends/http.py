"""Admin API backend using httpx."""

from __future__ import annotations

import contextlib
import time
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from typing import Any, cast
from urllib.parse import quote

import httpx

from pingap_config._version import __version__
from pingap_config.backends.retry import retry_async
from pingap_config.config import StoreConfig
from pingap_config.exceptions import (
    AuthenticationError,
    AuthorizationError,
    BackendError,
    ConnectionError,
    NotFoundError,
    RateLimitError,
    RejectedError,
    ServerError,
    TimeoutError,
)
from pingap_config.utils.logging import _redact, logger

API_PREFIX = "/api"


def _parse_retry_after(value: str | None) -> float | None:
    """Seconds to wait from a Retry-After header: delta-seconds or an HTTP-date."""
    if not value:
        return None
    try:
        return max(float(value), 0.0)
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=UTC)
    return max((when - datetime.now(UTC)).total_seconds(), 0.0)


def _raise_for_status(response: httpx.Response) -> None:
    """Map HTTP status codes to pingap-config exceptions with actionable suggestions."""
    if response.is_success:
        return
    body: dict[str, Any] | None = None
    with contextlib.suppress(Exception):
        body = response.json()
    request_id: str | None = response.headers.get("X-Request-ID")
    msg = f"HTTP {response.status_code}"
    if isinstance(body, dict) and "message" in body:
        msg = str(body["message"])
    elif isinstance(body, dict) and "detail" in body:
        msg = str(body["detail"])
    if response.status_code == 401:
        raise AuthenticationError(
            msg,
            status_code=401,
            response_body=body,
            request_id=request_id,
            suggestion="Set PINGAP_ADMIN_AUTHORIZATION or pass authorization= to StoreConfig",
        )
    if response.status_code == 403:
        raise AuthorizationError(
            msg,
            status_code=403,
            response_body=body,
            request_id=request_id,
            suggestion="The admin credential is not allowed to change this section",
        )
    if response.status_code == 404:
        raise NotFoundError(
            msg,
            status_code=404,
            response_body=body,
            request_id=request_id,
            suggestion="Check the admin address and that the section exists",
        )
    if response.status_code in (400, 422):
        raise RejectedError(
            msg,
            status_code=response.status_code,
            response_body=body,
            request_id=request_id,
            suggestion="The patch was not applied; fix the values and submit again",
        )
    if response.status_code == 429:
        retry_after = _parse_retry_after(response.headers.get("Retry-After"))
        raise RateLimitError(
            msg,
            status_code=429,
            response_body=body,
            retry_after=retry_after,
            request_id=request_id,
            suggestion="Reduce request frequency or wait for Retry-After",
        )
    if response.status_code >= 500:
        raise ServerError(
            msg,
            status_code=response.status_code,
            response_body=body,
            request_id=request_id,
            suggestion="Server error; retry later or check the pingap logs",
        )
    raise BackendError(
        msg,
        status_code=response.status_code,
        response_body=body,
        request_id=request_id,
    )


class HTTPBackend:
    """Reads and patches the configuration through the pingap admin API.

    ``GET /api/configs`` returns the whole document and
    ``POST /api/configs/{namespace}/{category}`` merges a patch into one section.
    """

    def __init__(
        self,
        config: StoreConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config or StoreConfig()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _build_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": f"pingap-config/{__version__}",
        }
        if self._config.authorization:
            headers["Authorization"] = self._config.authorization
        return headers

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            if self._config.authorization:
                logger.debug(
                    "Connecting to %s with authorization %s",
                    self._config.base_url,
                    _redact(self._config.authorization),
                )
            self._client = httpx.AsyncClient(
                base_url=self._config.base_url,
                timeout=self._config.timeout,
                verify=self._config.verify_ssl,
                headers=self._build_headers(),
                http2=True,
                transport=self._transport,
                limits=httpx.Limits(
                    max_connections=10,
                    max_keepalive_connections=5,
                    keepalive_expiry=30.0,
                ),
            )
        return self._client

    async def _do_request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
    ) -> Any:
        url = API_PREFIX + path
        start = time.perf_counter()
        try:
            response = await self.client.request(method=method, url=url, json=json)
            _raise_for_status(response)
            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.debug(
                "%s %s → %s (%.0fms)",
                method,
                url,
                response.status_code,
                elapsed_ms,
            )
            if not response.content:
                return None
            try:
                return response.json()
            except ValueError as e:
                raise BackendError(f"Invalid JSON from {url}: {e}") from e
        except httpx.TimeoutException as e:
            raise TimeoutError(f"Request timed out after {self._config.timeout}s: {e}") from e
        except httpx.TransportError as e:
            raise ConnectionError(f"Failed to connect to {self._config.base_url}: {e}") from e

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
    ) -> Any:
        """Execute an HTTP request with retry and error handling."""
        return await retry_async(self._config, self._do_request, method, path, json=json)

    async def fetch(self) -> dict[str, Any]:
        data = await self.request("GET", "/configs")
        if not isinstance(data, dict):
            raise BackendError("Admin API returned a non-object configuration document")
        return cast("dict[str, Any]", data)

    async def save(self, namespace: str, category: str, patch: dict[str, Any]) -> None:
        path = f"/configs/{quote(namespace, safe='')}/{quote(category, safe='')}"
        await self.request("POST", path, json=patch)

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
