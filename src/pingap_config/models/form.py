"""Form descriptors handed to the UI layer."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pingap_config.exceptions import PingapConfigError

from .enums import FormItemCategory


class Option(BaseModel):
    """One selectable choice of an enumerated or tri-state field."""

    model_config = ConfigDict(frozen=True)

    label: str
    discriminator: int
    value: Any = None


class FormItem(BaseModel):
    """One editable field of a configuration section."""

    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    category: FormItemCategory
    default_value: Any = None
    span: int | None = None
    min_rows: int | None = None
    options: tuple[Option, ...] | None = None
    selected: int | None = None  # discriminator of default_value, for option categories


class FieldError(BaseModel):
    """A value rejected for a single field; other fields are unaffected."""

    model_config = ConfigDict(frozen=True)

    field: str
    message: str
    value: Any = None


class EditView(BaseModel):
    """What the UI should show for a section right now."""

    model_config = ConfigDict(frozen=True)

    loading: bool
    namespace: str
    category: str
    items: tuple[FormItem, ...] = Field(default_factory=tuple)
    version: int = 0


class SubmitResult(BaseModel):
    """Outcome of submitting a form.

    ``items`` is always re-derived from the store after the update resolved,
    so on failure it shows the last persisted values.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    patch: dict[str, Any] = Field(default_factory=dict)
    field_errors: tuple[FieldError, ...] = Field(default_factory=tuple)
    error: PingapConfigError | None = None
    items: tuple[FormItem, ...] = Field(default_factory=tuple)

    @property
    def applied(self) -> bool:
        """True when a non-empty patch was persisted and merged."""
        return bool(self.patch) and self.error is None

    @property
    def ok(self) -> bool:
        return self.error is None and not self.field_errors
