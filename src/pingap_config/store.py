"""The configuration store: load once, update one section at a time.

The store owns the only mutable copy of the document. Readers get immutable
:class:`DocumentSnapshot` objects and pull change events from a
:class:`Subscription` instead of observing shared state.
"""

from __future__ import annotations

import asyncio
import copy
from collections.abc import AsyncIterator, Mapping
from typing import Any

from pingap_config.backends import ConfigBackend, FileBackend, HTTPBackend
from pingap_config.config import StoreConfig
from pingap_config.exceptions import (
    BusyError,
    StoreClosedError,
    StoreNotInitializedError,
)
from pingap_config.models import (
    SECTION_MODELS,
    DocumentSnapshot,
    StoreEvent,
    StoreEventKind,
    UpdatePolicy,
    to_document,
    validate_section,
)
from pingap_config.utils.logging import describe_patch, logger

_CLOSED = object()

# events a subscriber may fall behind by before the oldest are dropped
MAX_PENDING_EVENTS = 256


class Subscription:
    """Channel of store events. Iterate with ``async for``; ends when the store closes.

    A subscriber that stops reading keeps at most ``maxsize`` events; older
    ones are dropped. Every event carries the document version, so a reader
    that skipped some can compare versions and take a fresh snapshot.
    """

    def __init__(self, store: ConfigStore, maxsize: int = MAX_PENDING_EVENTS) -> None:
        self._store = store
        self._queue: asyncio.Queue[Any] = asyncio.Queue(maxsize=maxsize)
        self._done = False
        self.dropped = 0

    def _put(self, item: Any) -> None:
        if self._queue.full():
            self._queue.get_nowait()
            self.dropped += 1
            logger.debug("Subscriber is behind; dropped oldest store event")
        self._queue.put_nowait(item)

    def _publish(self, event: StoreEvent) -> None:
        if not self._done:
            self._put(event)

    def _finish(self) -> None:
        if not self._done:
            self._done = True
            self._put(_CLOSED)

    def pending(self) -> int:
        return self._queue.qsize()

    async def get(self) -> StoreEvent | None:
        """Wait for the next event; ``None`` once the channel is closed."""
        item = await self._queue.get()
        if item is _CLOSED:
            # keep returning None on later calls
            self._queue.put_nowait(_CLOSED)
            return None
        return item

    def close(self) -> None:
        self._store._unsubscribe(self)
        self._finish()

    def __aiter__(self) -> AsyncIterator[StoreEvent]:
        return self

    async def __anext__(self) -> StoreEvent:
        event = await self.get()
        if event is None:
            raise StopAsyncIteration
        return event


class ConfigStore:
    """Holds the loaded configuration document and applies section patches.

    Usage:
        async with ConfigStore(HTTPBackend()) as store:
            await store.load()
            await store.update("pingap", "basic", {"threads": 4})
            store.snapshot().get("pingap", "basic", "threads")  # 4
    """

    def __init__(
        self,
        backend: ConfigBackend,
        *,
        update_policy: UpdatePolicy = UpdatePolicy.QUEUE,
    ) -> None:
        self._backend = backend
        self._update_policy = UpdatePolicy(update_policy)
        self._document: dict[str, dict[str, dict[str, Any]]] | None = None
        self._snapshot: DocumentSnapshot | None = None
        self._version = 0
        self._load_task: asyncio.Task[DocumentSnapshot] | None = None
        self._section_locks: dict[tuple[str, str], asyncio.Lock] = {}
        self._subscribers: set[Subscription] = set()
        self._closed = False
        # bumped whenever an update is merged into the document
        self._merges = 0

    @classmethod
    def from_config(cls, config: StoreConfig | None = None) -> ConfigStore:
        """File backend when ``config_path`` is set, admin API backend otherwise."""
        config = config or StoreConfig()
        backend: ConfigBackend
        if config.config_path:
            backend = FileBackend(config.config_path, admin=config.admin)
        else:
            backend = HTTPBackend(config)
        return cls(backend, update_policy=config.update_policy)

    async def __aenter__(self) -> ConfigStore:
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        await self.close()

    @property
    def initialized(self) -> bool:
        return self._snapshot is not None

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def update_policy(self) -> UpdatePolicy:
        return self._update_policy

    def snapshot(self) -> DocumentSnapshot | None:
        """Current document, or None before the first successful load."""
        return self._snapshot

    def section(self, namespace: str, category: str) -> Mapping[str, Any] | None:
        if self._snapshot is None:
            return None
        return self._snapshot.section(namespace, category)

    def is_updating(self, namespace: str, category: str) -> bool:
        lock = self._section_locks.get((namespace, category))
        return lock is not None and lock.locked()

    def subscribe(self, maxsize: int = MAX_PENDING_EVENTS) -> Subscription:
        self._ensure_open()
        subscription = Subscription(self, maxsize)
        self._subscribers.add(subscription)
        return subscription

    def _unsubscribe(self, subscription: Subscription) -> None:
        self._subscribers.discard(subscription)

    def _publish(
        self,
        kind: StoreEventKind,
        namespace: str | None = None,
        category: str | None = None,
    ) -> None:
        event = StoreEvent(kind=kind, version=self._version, namespace=namespace, category=category)
        for subscription in list(self._subscribers):
            subscription._publish(event)

    def _ensure_open(self) -> None:
        if self._closed:
            raise StoreClosedError("The config store is closed")

    async def load(self) -> DocumentSnapshot:
        """Fetch the document once. Concurrent callers share the same request."""
        self._ensure_open()
        if self._snapshot is not None:
            return self._snapshot
        return await self._shared_load()

    async def reload(self) -> DocumentSnapshot:
        """Fetch the whole document again, replacing the in-memory copy."""
        self._ensure_open()
        return await self._shared_load()

    async def _shared_load(self) -> DocumentSnapshot:
        if self._load_task is None:
            self._load_task = asyncio.ensure_future(self._load())
        # shield: one caller being cancelled must not cancel the shared request
        return await asyncio.shield(self._load_task)

    async def _load(self) -> DocumentSnapshot:
        try:
            while True:
                merges = self._merges
                try:
                    persisted = await self._backend.fetch()
                except Exception as e:
                    if self._closed:
                        raise StoreClosedError(
                            "Store closed while loading; result discarded"
                        ) from e
                    logger.warning("Loading configuration failed: %s", e)
                    raise
                if self._closed:
                    logger.debug("Store closed while loading; discarding fetched document")
                    raise StoreClosedError("Store closed while loading; result discarded")
                # a fetch that raced a merged update may predate it
                if self._merges == merges:
                    break
                logger.debug("Section updated during load; fetching again")
            self._document = to_document(persisted)
            self._version += 1
            self._snapshot = DocumentSnapshot.capture(self._document, self._version)
            logger.info("Configuration loaded (version %d)", self._version)
            self._publish(StoreEventKind.LOADED)
            return self._snapshot
        finally:
            self._load_task = None

    async def update(
        self, namespace: str, category: str, patch: Mapping[str, Any]
    ) -> DocumentSnapshot:
        """Persist ``patch`` into one section and merge it into the document.

        Only the keys in ``patch`` change; ``None`` marks a field as unset.
        Updates of the same section never overlap: depending on the update
        policy a second one waits for the first or fails with BusyError.
        """
        self._ensure_open()
        if self._snapshot is None:
            raise StoreNotInitializedError(
                "Configuration is not loaded", suggestion="Call load() first"
            )
        if not patch:
            return self._snapshot
        payload = copy.deepcopy(dict(patch))
        if namespace in SECTION_MODELS:
            payload = validate_section(namespace, payload)

        key = (namespace, category)
        lock = self._section_locks.setdefault(key, asyncio.Lock())
        if self._update_policy is UpdatePolicy.REJECT and lock.locked():
            raise BusyError(namespace, category)
        async with lock:
            self._ensure_open()
            logger.debug("Updating %s/%s: %s", namespace, category, describe_patch(payload))
            try:
                await self._backend.save(namespace, category, payload)
            except Exception as e:
                if self._closed:
                    raise StoreClosedError("Store closed while updating; result discarded") from e
                logger.warning("Update of %s/%s failed: %s", namespace, category, e)
                raise
            if self._closed or self._document is None:
                logger.debug(
                    "Store closed during update of %s/%s; result discarded", namespace, category
                )
                raise StoreClosedError("Store closed while updating; result discarded")
            section = self._document.setdefault(namespace, {}).setdefault(category, {})
            section.update(payload)
            self._merges += 1
            self._version += 1
            self._snapshot = DocumentSnapshot.capture(self._document, self._version)
            logger.info("Updated %s/%s (version %d)", namespace, category, self._version)
            self._publish(StoreEventKind.UPDATED, namespace, category)
            return self._snapshot

    async def close(self) -> None:
        """End the session. Results of requests still in flight are discarded."""
        if self._closed:
            return
        self._closed = True
        self._publish(StoreEventKind.CLOSED)
        for subscription in list(self._subscribers):
            subscription._finish()
        self._subscribers.clear()
        await self._backend.close()

