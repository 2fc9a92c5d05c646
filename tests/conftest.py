"""Shared test fixtures for pingap-config."""

from __future__ import annotations

import asyncio
import copy
from collections.abc import AsyncGenerator, Callable
from typing import Any

import pytest
import pytest_asyncio

from pingap_config import ConfigStore, StoreConfig, UpdatePolicy


class FakeBackend:
    """In-memory backend that records calls and can be paused or made to fail."""

    def __init__(self, document: dict[str, Any] | None = None) -> None:
        self.document: dict[str, Any] = copy.deepcopy(document or {})
        self.fetch_calls = 0
        self.saves: list[tuple[str, str, dict[str, Any]]] = []
        self.fetch_error: Exception | None = None
        self.save_error: Exception | None = None
        self.fetch_gate: asyncio.Event | None = None
        self.save_gate: asyncio.Event | None = None
        self.save_started = 0
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False
        # serve the document as it was when fetch() was called, not when the gate opened
        self.serve_at_call = False

    async def fetch(self) -> dict[str, Any]:
        self.fetch_calls += 1
        served = copy.deepcopy(self.document)
        if self.fetch_gate is not None:
            await self.fetch_gate.wait()
        if self.fetch_error is not None:
            raise self.fetch_error
        return served if self.serve_at_call else copy.deepcopy(self.document)

    async def save(self, namespace: str, category: str, patch: dict[str, Any]) -> None:
        self.save_started += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.save_gate is not None:
                await self.save_gate.wait()
            if self.save_error is not None:
                raise self.save_error
            self.saves.append((namespace, category, dict(patch)))
            if namespace == "pingap":
                section = self.document.setdefault(category, {})
            else:
                section = self.document.setdefault(namespace, {}).setdefault(category, {})
            section.update(patch)
        finally:
            self.in_flight -= 1

    async def close(self) -> None:
        self.closed = True


# --- Configuration Fixtures ---


@pytest.fixture
def store_config() -> StoreConfig:
    """Config for unit tests (no real admin server, no retries)."""
    return StoreConfig(
        base_url="http://mock-pingap:3018",
        authorization="Basic YWRtaW46c2VjcmV0",
        timeout=5.0,
        max_retries=0,
        retry_delay=0.0,
        max_retry_delay=0.0,
    )


@pytest.fixture
def persisted_document() -> dict[str, Any]:
    """Persisted layout as returned by the admin API or read from TOML."""
    return {
        "basic": {
            "threads": 1,
            "work_stealing": True,
            "log_level": "info",
            "grace_period": "3m",
            "graceful_shutdown_timeout": "10s",
            "pid_file": "/tmp/pingap.pid",
        },
        "upstreams": {
            "charts": {"addrs": ["127.0.0.1:5000"], "algo": "hash:cookie"},
            "diving": {"addrs": ["google.com"]},
        },
        "locations": {"lo": {"upstream": "diving", "path": "/", "plugins": ["wirefilter"]}},
        "servers": {"test": {"addr": "0.0.0.0:6188", "locations": ["lo"]}},
        "plugins": {"stats": {"category": "stats", "value": "/stats"}},
        "certificates": {},
    }


# --- Backend / Store Fixtures ---


@pytest.fixture
def make_backend() -> Callable[..., FakeBackend]:
    return FakeBackend


@pytest.fixture
def backend(persisted_document: dict[str, Any]) -> FakeBackend:
    return FakeBackend(persisted_document)


@pytest.fixture
def store(backend: FakeBackend) -> ConfigStore:
    """Store over the fake backend, not loaded yet."""
    return ConfigStore(backend)


@pytest.fixture
def rejecting_store(backend: FakeBackend) -> ConfigStore:
    return ConfigStore(backend, update_policy=UpdatePolicy.REJECT)


@pytest_asyncio.fixture
async def loaded_store(store: ConfigStore) -> AsyncGenerator[ConfigStore, None]:
    """Store with the persisted document already loaded."""
    await store.load()
    yield store
    await store.close()


# --- Helpers ---


async def wait_until(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
    """Yield to the event loop until ``predicate`` holds."""
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(0)


@pytest.fixture
def until() -> Callable[..., Any]:
    return wait_until
