"""Configuration document snapshots and the persisted-layout translation."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pingap_config.utils.freeze import freeze, thaw
from pingap_config.utils.logging import logger

from .enums import StoreEventKind
from .sections import BASIC_CATEGORY, BASIC_NAMESPACE, SECTION_MODELS

# Persisted top-level tables holding named sections: [upstreams.<name>], ...
SECTION_GROUPS = tuple(ns for ns in SECTION_MODELS if ns != BASIC_NAMESPACE)


@dataclass(frozen=True)
class DocumentSnapshot:
    """Read-only view of the configuration document at one version."""

    data: Mapping[str, Mapping[str, Mapping[str, Any]]]
    version: int

    @classmethod
    def capture(cls, document: Mapping[str, Any], version: int) -> DocumentSnapshot:
        return cls(data=freeze(document), version=version)

    def section(self, namespace: str, category: str) -> Mapping[str, Any] | None:
        return self.data.get(namespace, {}).get(category)

    def get(self, namespace: str, category: str, field: str, default: Any = None) -> Any:
        section = self.section(namespace, category)
        if section is None:
            return default
        return section.get(field, default)

    def categories(self, namespace: str) -> list[str]:
        return list(self.data.get(namespace, {}))

    def to_dict(self) -> dict[str, Any]:
        return thaw(self.data)


@dataclass(frozen=True)
class StoreEvent:
    """A change published to store subscribers."""

    kind: StoreEventKind
    version: int
    namespace: str | None = None
    category: str | None = None


def to_document(persisted: Mapping[str, Any]) -> dict[str, dict[str, dict[str, Any]]]:
    """Translate the persisted pingap layout into namespace → category → fields.

    ``[basic]`` becomes ``pingap/basic``; ``[upstreams.charts]`` becomes
    ``upstreams/charts``. Top-level keys that fit neither shape are skipped.
    """
    document: dict[str, dict[str, dict[str, Any]]] = {ns: {} for ns in SECTION_MODELS}
    for key, value in persisted.items():
        if key == BASIC_CATEGORY and isinstance(value, Mapping):
            document[BASIC_NAMESPACE][BASIC_CATEGORY] = thaw(value)
        elif isinstance(value, Mapping) and all(isinstance(v, Mapping) for v in value.values()):
            group = document.setdefault(key, {})
            for name, fields in value.items():
                group[name] = thaw(fields)
        else:
            logger.debug("Skipping top-level config key %r (not a section table)", key)
    return document


def persisted_path(namespace: str, category: str) -> tuple[str, ...]:
    """Key path of a section inside the persisted document."""
    if namespace == BASIC_NAMESPACE:
        return (category,)
    return (namespace, category)
