"""Enums for form categories, tri-state flags and store behavior."""

from __future__ import annotations

from enum import Enum, StrEnum
from typing import Any


class FormItemCategory(StrEnum):
    """Kind of editor used for a form field."""

    TEXT = "text"
    NUMBER = "number"
    CHECKBOX = "checkbox"
    TEXTAREA = "textarea"
    WEBHOOK_TYPE = "webhook_type"


class WebhookType(StrEnum):
    """Webhook flavours understood by pingap."""

    NORMAL = "normal"
    WECOM = "wecom"
    DINGTALK = "dingtalk"


class TriState(Enum):
    """A boolean that may also be left unset so the proxy default applies."""

    TRUE = "true"
    FALSE = "false"
    INHERIT = "inherit"

    def to_wire(self) -> bool | None:
        """Value stored in the configuration document."""
        return _TRI_STATE_TO_WIRE[self]

    @classmethod
    def from_wire(cls, value: Any) -> TriState:
        """Map a document value to a variant by identity, never by equality."""
        if value is True:
            return cls.TRUE
        if value is False:
            return cls.FALSE
        if value is None:
            return cls.INHERIT
        raise ValueError(f"{value!r} is not a tri-state value")


_TRI_STATE_TO_WIRE: dict[TriState, bool | None] = {
    TriState.TRUE: True,
    TriState.FALSE: False,
    TriState.INHERIT: None,
}


class UpdatePolicy(StrEnum):
    """What the store does with an update for a section that is already being saved."""

    QUEUE = "queue"
    REJECT = "reject"


class StoreEventKind(StrEnum):
    """Type of change published to store subscribers."""

    LOADED = "loaded"
    UPDATED = "updated"
    CLOSED = "closed"
