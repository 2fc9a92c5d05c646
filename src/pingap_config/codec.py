"""Per-category encode, decode and validation rules for form fields.

``encode`` turns a document value into what a UI widget holds, ``decode``
turns a submitted UI value back into the document value and raises
:class:`ValidationError` when it is not acceptable.
"""

from __future__ import annotations

from typing import Any, assert_never

from pingap_config.exceptions import SchemaError, ValidationError
from pingap_config.models import FieldError, FormItemCategory, Option, TriState, WebhookType


class CategoryCodec:
    """Base codec: plain pass-through with no options."""

    category: FormItemCategory
    min_rows: int | None = None

    def encode(self, value: Any) -> Any:
        return value

    def decode(self, raw: Any, *, field: str | None = None) -> Any:
        return raw

    def validate(self, raw: Any, *, field: str = "") -> FieldError | None:
        """Return a FieldError instead of raising, so callers can carry on with other fields."""
        try:
            self.decode(raw, field=field)
        except ValidationError as e:
            return FieldError(field=field, message=e.message, value=raw)
        return None

    def options(self) -> tuple[Option, ...] | None:
        return None

    def selected(self, value: Any) -> int | None:
        """Discriminator of the option matching a document value, if any."""
        return None


class TextCodec(CategoryCodec):
    """Free text. An empty string means the field is unset."""

    category = FormItemCategory.TEXT

    def encode(self, value: Any) -> str:
        return "" if value is None else str(value)

    def decode(self, raw: Any, *, field: str | None = None) -> str | None:
        if raw is None or raw == "":
            return None
        if not isinstance(raw, str):
            raise ValidationError(f"{field or 'value'} must be text", field=field, value=raw)
        return raw


class TextareaCodec(TextCodec):
    """Multi-line text; same rules as TEXT plus a layout hint."""

    category = FormItemCategory.TEXTAREA
    min_rows = 4


class NumberCodec(CategoryCodec):
    """Non-negative integer entered as a number or a numeric string."""

    category = FormItemCategory.NUMBER

    def encode(self, value: Any) -> int | str:
        return "" if value is None else value

    def decode(self, raw: Any, *, field: str | None = None) -> int | None:
        name = field or "value"
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            return None
        # bool is an int subclass
        if isinstance(raw, bool):
            raise ValidationError(f"{name} must be a number", field=field, value=raw)
        if isinstance(raw, float):
            if not raw.is_integer():
                raise ValidationError(f"{name} must be a whole number", field=field, value=raw)
            number = int(raw)
        elif isinstance(raw, int):
            number = raw
        elif isinstance(raw, str):
            try:
                number = int(raw.strip())
            except ValueError:
                raise ValidationError(
                    f"{name} must be a number", field=field, value=raw
                ) from None
        else:
            raise ValidationError(f"{name} must be a number", field=field, value=raw)
        if number < 0:
            raise ValidationError(f"{name} must be >= 0", field=field, value=raw)
        return number


# Wire discriminators for tri-state options. Decoding goes through this
# table only; option values are never compared.
TRI_STATE_DISCRIMINATORS: dict[TriState, int] = {
    TriState.TRUE: 1,
    TriState.FALSE: 0,
    TriState.INHERIT: -1,
}
_DISCRIMINATOR_TO_TRI_STATE: dict[int, TriState] = {
    d: state for state, d in TRI_STATE_DISCRIMINATORS.items()
}
_TRI_STATE_LABELS: dict[TriState, str] = {
    TriState.TRUE: "Yes",
    TriState.FALSE: "No",
    TriState.INHERIT: "None",
}


class CheckboxCodec(CategoryCodec):
    """Tri-state flag: yes, no, or unset (inherit the proxy default)."""

    category = FormItemCategory.CHECKBOX

    def encode(self, value: Any) -> int:
        state = value if isinstance(value, TriState) else TriState.from_wire(value)
        return TRI_STATE_DISCRIMINATORS[state]

    def decode_state(self, raw: Any, *, field: str | None = None) -> TriState:
        name = field or "value"
        discriminator: int | None = None
        if isinstance(raw, int) and not isinstance(raw, bool):
            discriminator = raw
        elif isinstance(raw, str):
            try:
                discriminator = int(raw.strip())
            except ValueError:
                discriminator = None
        if discriminator is None or discriminator not in _DISCRIMINATOR_TO_TRI_STATE:
            raise ValidationError(
                f"{name} must be one of {sorted(_DISCRIMINATOR_TO_TRI_STATE)}",
                field=field,
                value=raw,
            )
        return _DISCRIMINATOR_TO_TRI_STATE[discriminator]

    def decode(self, raw: Any, *, field: str | None = None) -> bool | None:
        return self.decode_state(raw, field=field).to_wire()

    def options(self) -> tuple[Option, ...]:
        return tuple(
            Option(label=_TRI_STATE_LABELS[state], discriminator=d, value=state.to_wire())
            for state, d in TRI_STATE_DISCRIMINATORS.items()
        )

    def selected(self, value: Any) -> int | None:
        try:
            return self.encode(value)
        except ValueError:
            return None


class WebhookTypeCodec(CategoryCodec):
    """One of the webhook types pingap can notify."""

    category = FormItemCategory.WEBHOOK_TYPE
    allowed: tuple[WebhookType, ...] = tuple(WebhookType)

    def encode(self, value: Any) -> str:
        return "" if value is None else str(value)

    def decode(self, raw: Any, *, field: str | None = None) -> str | None:
        if raw is None or raw == "":
            return None
        if isinstance(raw, str) and raw in {t.value for t in self.allowed}:
            return WebhookType(raw).value
        allowed = ", ".join(t.value for t in self.allowed)
        raise ValidationError(
            f"{field or 'value'} must be one of: {allowed}", field=field, value=raw
        )

    def options(self) -> tuple[Option, ...]:
        return tuple(
            Option(label=t.value, discriminator=i, value=t.value)
            for i, t in enumerate(self.allowed)
        )

    def selected(self, value: Any) -> int | None:
        for i, t in enumerate(self.allowed):
            if value == t.value:
                return i
        return None


_TEXT = TextCodec()
_TEXTAREA = TextareaCodec()
_NUMBER = NumberCodec()
_CHECKBOX = CheckboxCodec()
_WEBHOOK_TYPE = WebhookTypeCodec()


def codec_for(category: FormItemCategory | str) -> CategoryCodec:
    """Return the codec of a category; anything outside the closed set is a SchemaError."""
    try:
        category = FormItemCategory(category)
    except ValueError:
        raise SchemaError(
            f"Unknown form item category {category!r}",
            suggestion=f"Use one of: {', '.join(c.value for c in FormItemCategory)}",
        ) from None
    match category:
        case FormItemCategory.TEXT:
            return _TEXT
        case FormItemCategory.NUMBER:
            return _NUMBER
        case FormItemCategory.CHECKBOX:
            return _CHECKBOX
        case FormItemCategory.TEXTAREA:
            return _TEXTAREA
        case FormItemCategory.WEBHOOK_TYPE:
            return _WEBHOOK_TYPE
        case _:
            assert_never(category)
