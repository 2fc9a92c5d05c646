"""The edit cycle: render a section form, submit only what changed."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pingap_config.exceptions import PingapConfigError, StoreNotInitializedError
from pingap_config.models import EditView, FormItem, SubmitResult
from pingap_config.schema import FormSchema
from pingap_config.store import ConfigStore
from pingap_config.utils.logging import logger


class EditCycle:
    """Binds one section of the store to its form schema.

    The view is never updated optimistically: after a submit the items are
    derived again from the store, so a failed update shows the old values.
    """

    def __init__(self, store: ConfigStore, schema: FormSchema, category: str) -> None:
        self._store = store
        self._schema = schema
        self._category = category

    @property
    def namespace(self) -> str:
        return self._schema.namespace

    @property
    def category(self) -> str:
        return self._category

    def _items(self) -> tuple[FormItem, ...]:
        snapshot = self._store.snapshot()
        if snapshot is None:
            return ()
        return self._schema.derive(snapshot, self._category)

    def render(self) -> EditView:
        """Loading view until the store is initialized, then the current form."""
        snapshot = self._store.snapshot()
        if snapshot is None:
            return EditView(loading=True, namespace=self.namespace, category=self._category)
        return EditView(
            loading=False,
            namespace=self.namespace,
            category=self._category,
            items=self._schema.derive(snapshot, self._category),
            version=snapshot.version,
        )

    async def submit(self, values: Mapping[str, Any]) -> SubmitResult:
        """Validate the submitted UI values and persist the fields that changed."""
        if not self._store.initialized:
            return SubmitResult(
                error=StoreNotInitializedError(
                    "Configuration is not loaded", suggestion="Wait for load() to finish"
                )
            )
        current = self._store.section(self.namespace, self._category) or {}
        patch, field_errors = self._schema.build_patch(values, current)
        for err in field_errors:
            logger.info(
                "Rejected %s/%s %s: %s", self.namespace, self._category, err.field, err.message
            )
        if not patch:
            return SubmitResult(field_errors=tuple(field_errors), items=self._items())

        error: PingapConfigError | None = None
        try:
            await self._store.update(self.namespace, self._category, patch)
        except PingapConfigError as e:
            logger.warning("Saving %s/%s failed: %s", self.namespace, self._category, e.message)
            error = e
        return SubmitResult(
            patch=patch,
            field_errors=tuple(field_errors),
            error=error,
            items=self._items(),
        )
