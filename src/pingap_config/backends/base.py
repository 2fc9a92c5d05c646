"""Backend protocol: where the configuration document lives."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ConfigBackend(Protocol):
    """Read the whole document and persist one section patch at a time.

    ``save`` is all-or-nothing: on success every field of the patch was
    accepted, on any error none was.
    """

    async def fetch(self) -> dict[str, Any]:
        """Return the persisted document (``basic``, ``upstreams``, ... tables)."""
        ...

    async def save(self, namespace: str, category: str, patch: dict[str, Any]) -> None:
        """Persist ``patch`` into the section ``namespace/category``."""
        ...

    async def close(self) -> None: ...
