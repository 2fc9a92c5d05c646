"""Tests for the admin API backend (mocked httpx)."""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from email.utils import format_datetime
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from pingap_config import BASIC_SCHEMA, ConfigStore, EditCycle
from pingap_config.backends.http import API_PREFIX, HTTPBackend, _parse_retry_after
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


def _mock_response(status_code: int, body: dict | None = None, headers: dict | None = None):
    response = MagicMock()
    response.is_success = 200 <= status_code < 300
    response.status_code = status_code
    response.json.return_value = body or {}
    response.content = json.dumps(body or {}).encode()
    response.headers = headers or {}
    return response


def _backend_with(config: StoreConfig, response) -> HTTPBackend:
    backend = HTTPBackend(config)
    mock_client = MagicMock()
    mock_client.is_closed = False
    mock_client.request = AsyncMock(return_value=response)
    backend._client = mock_client
    return backend


def test_build_headers_includes_authorization(store_config: StoreConfig) -> None:
    headers = HTTPBackend(store_config)._build_headers()
    assert headers["Authorization"] == "Basic YWRtaW46c2VjcmV0"
    assert headers["User-Agent"].startswith("pingap-config/")


def test_build_headers_without_authorization() -> None:
    headers = HTTPBackend(StoreConfig(base_url="http://localhost:3018"))._build_headers()
    assert "Authorization" not in headers


@pytest.mark.asyncio
async def test_fetch_uses_api_prefix(store_config: StoreConfig) -> None:
    backend = _backend_with(store_config, _mock_response(200, {"basic": {"threads": 1}}))
    assert await backend.fetch() == {"basic": {"threads": 1}}
    call_kwargs = backend._client.request.call_args[1]
    assert call_kwargs["method"] == "GET"
    assert call_kwargs["url"] == API_PREFIX + "/configs"


@pytest.mark.asyncio
async def test_save_posts_patch_to_section(store_config: StoreConfig) -> None:
    backend = _backend_with(store_config, _mock_response(200))
    await backend.save("pingap", "basic", {"work_stealing": None})
    call_kwargs = backend._client.request.call_args[1]
    assert call_kwargs["method"] == "POST"
    assert call_kwargs["url"] == "/api/configs/pingap/basic"
    assert call_kwargs["json"] == {"work_stealing": None}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status", "exc_type"),
    [
        (400, RejectedError),
        (401, AuthenticationError),
        (403, AuthorizationError),
        (404, NotFoundError),
        (422, RejectedError),
        (429, RateLimitError),
        (500, ServerError),
        (503, ServerError),
        (418, BackendError),
    ],
)
async def test_status_codes_map_to_exceptions(
    store_config: StoreConfig, status: int, exc_type: type
) -> None:
    backend = _backend_with(store_config, _mock_response(status, {"message": "nope"}))
    with pytest.raises(exc_type) as exc_info:
        await backend.save("pingap", "basic", {"threads": 1})
    assert exc_info.value.status_code == status
    assert "nope" in str(exc_info.value)


@pytest.mark.asyncio
async def test_rate_limit_reads_retry_after(store_config: StoreConfig) -> None:
    backend = _backend_with(store_config, _mock_response(429, {}, {"Retry-After": "2"}))
    with pytest.raises(RateLimitError) as exc_info:
        await backend.fetch()
    assert exc_info.value.retry_after == 2.0


@pytest.mark.asyncio
async def test_timeout_maps_to_timeout_error(store_config: StoreConfig) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    backend = HTTPBackend(store_config, transport=httpx.MockTransport(handler))
    with pytest.raises(TimeoutError):
        await backend.fetch()
    await backend.close()


@pytest.mark.asyncio
async def test_connect_error_maps_to_connection_error(store_config: StoreConfig) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    backend = HTTPBackend(store_config, transport=httpx.MockTransport(handler))
    with pytest.raises(ConnectionError, match="mock-pingap"):
        await backend.fetch()
    await backend.close()


@pytest.mark.asyncio
async def test_retries_server_errors_then_succeeds() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) < 2:
            return httpx.Response(503, json={"message": "busy"})
        return httpx.Response(200, json={"basic": {}})

    config = StoreConfig(base_url="http://mock-pingap:3018", max_retries=2, retry_delay=0.0)
    backend = HTTPBackend(config, transport=httpx.MockTransport(handler))
    assert await backend.fetch() == {"basic": {}}
    assert len(calls) == 2
    await backend.close()


@pytest.mark.asyncio
async def test_store_round_trip_over_http() -> None:
    """Load, patch and verify that only the patched keys are sent."""
    persisted = {"basic": {"threads": 1, "log_level": "info"}, "upstreams": {}}
    posted: list[tuple[str, dict]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            assert request.headers["Authorization"] == "Bearer t"
            return httpx.Response(200, json=persisted)
        body = json.loads(request.content)
        posted.append((request.url.path, body))
        return httpx.Response(204)

    config = StoreConfig(base_url="http://mock-pingap:3018", authorization="Bearer t")
    async with ConfigStore(HTTPBackend(config, transport=httpx.MockTransport(handler))) as store:
        await store.load()
        await store.update("pingap", "basic", {"threads": 4})
        assert store.section("pingap", "basic") == {"threads": 4, "log_level": "info"}
    assert posted == [("/api/configs/pingap/basic", {"threads": 4})]


@pytest.mark.asyncio
async def test_non_object_document_is_backend_error(store_config: StoreConfig) -> None:
    backend = HTTPBackend(
        store_config, transport=httpx.MockTransport(lambda r: httpx.Response(200, json=[1, 2]))
    )
    with pytest.raises(BackendError, match="non-object"):
        await backend.fetch()
    await backend.close()


@pytest.mark.asyncio
async def test_close_closes_client(store_config: StoreConfig) -> None:
    backend = HTTPBackend(store_config)
    mock_client = MagicMock()
    mock_client.is_closed = False
    mock_client.aclose = AsyncMock()
    backend._client = mock_client
    await backend.close()
    mock_client.aclose.assert_called_once()


@pytest.mark.asyncio
async def test_rate_limit_with_http_date_retry_after(store_config: StoreConfig) -> None:
    """Retry-After may be an HTTP-date; a past date means retry now."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            429,
            json={"message": "slow down"},
            headers={"Retry-After": "Wed, 21 Oct 2015 07:28:00 GMT"},
        )

    backend = HTTPBackend(store_config, transport=httpx.MockTransport(handler))
    with pytest.raises(RateLimitError) as exc_info:
        await backend.fetch()
    assert exc_info.value.retry_after == 0.0
    await backend.close()


def test_parse_retry_after_forms() -> None:
    assert _parse_retry_after(None) is None
    assert _parse_retry_after("") is None
    assert _parse_retry_after("7") == 7.0
    assert _parse_retry_after("not a date") is None
    future = format_datetime(datetime.now(UTC) + timedelta(seconds=120), usegmt=True)
    assert 0.0 < _parse_retry_after(future) <= 120.0


@pytest.mark.asyncio
async def test_edit_cycle_reports_rate_limit_with_http_date(store_config: StoreConfig) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, json={"basic": {"threads": 1}})
        return httpx.Response(429, headers={"Retry-After": "Wed, 21 Oct 2015 07:28:00 GMT"})

    backend = HTTPBackend(store_config, transport=httpx.MockTransport(handler))
    async with ConfigStore(backend) as store:
        await store.load()
        result = await EditCycle(store, BASIC_SCHEMA, "basic").submit({"threads": "4"})
    assert isinstance(result.error, RateLimitError)
    assert store.section("pingap", "basic")["threads"] == 1
