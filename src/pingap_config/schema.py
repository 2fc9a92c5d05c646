"""Declarative form schemas for pingap configuration sections.

A :class:`FormSchema` lists the editable fields of one section kind. It is
checked once when it is built, so a bad declaration fails before any form is
shown. Field descriptors are derived again on every render from the live
document, never cached.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import pydantic

from pingap_config.codec import CategoryCodec, codec_for
from pingap_config.exceptions import SchemaError, ValidationError
from pingap_config.models import (
    BASIC_NAMESPACE,
    DocumentSnapshot,
    FieldError,
    FormItem,
    FormItemCategory,
    section_model,
)
from pingap_config.utils.freeze import thaw


@dataclass(frozen=True)
class FieldSpec:
    """Declaration of one form field."""

    id: str
    label: str
    category: FormItemCategory | str
    span: int | None = None
    min_rows: int | None = None


class FormSchema:
    """Ordered field declarations for one namespace."""

    def __init__(
        self,
        namespace: str,
        fields: Sequence[FieldSpec],
        *,
        title: str = "",
        description: str = "",
    ) -> None:
        self.namespace = namespace
        self.title = title
        self.description = description
        self._model = section_model(namespace)
        self._fields: tuple[FieldSpec, ...] = tuple(fields)
        self._codecs: dict[str, CategoryCodec] = {}
        for spec in self._fields:
            if not spec.id or not spec.label:
                raise SchemaError(f"{namespace}: every field needs an id and a label ({spec!r})")
            if spec.id in self._codecs:
                raise SchemaError(f"{namespace}: duplicate field id {spec.id!r}")
            if spec.id not in self._model.model_fields:
                raise SchemaError(
                    f"{namespace}: {spec.id!r} is not a field of {self._model.__name__}",
                    suggestion=f"Known fields: {', '.join(self._model.model_fields)}",
                )
            codec = codec_for(spec.category)
            if spec.min_rows is not None and codec.category is not FormItemCategory.TEXTAREA:
                raise SchemaError(f"{namespace}: min_rows is only valid on textarea fields")
            if spec.span is not None and not 1 <= spec.span <= 12:
                raise SchemaError(f"{namespace}: span of {spec.id!r} must be within 1..12")
            self._codecs[spec.id] = codec

    @property
    def fields(self) -> tuple[FieldSpec, ...]:
        return self._fields

    def codec(self, field_id: str) -> CategoryCodec:
        return self._codecs[field_id]

    def derive(self, snapshot: DocumentSnapshot, category: str) -> tuple[FormItem, ...]:
        """Build the form items of one section from the current document."""
        section: Mapping[str, Any] = snapshot.section(self.namespace, category) or {}
        items = []
        for spec in self._fields:
            codec = self._codecs[spec.id]
            value = thaw(section.get(spec.id))
            options = codec.options()
            items.append(
                FormItem(
                    id=spec.id,
                    label=spec.label,
                    category=codec.category,
                    default_value=value,
                    span=spec.span,
                    min_rows=spec.min_rows or codec.min_rows,
                    options=options,
                    selected=codec.selected(value) if options else None,
                )
            )
        return tuple(items)

    def decode(self, field_id: str, raw: Any) -> Any:
        """Decode one submitted value and check it against the section model."""
        codec = self._codecs.get(field_id)
        if codec is None:
            raise ValidationError(
                f"{field_id!r} is not a field of {self.namespace}", field=field_id, value=raw
            )
        value = codec.decode(raw, field=field_id)
        try:
            self._model.model_validate({field_id: value})
        except pydantic.ValidationError as e:
            raise ValidationError(
                f"{field_id}: {e.errors()[0]['msg']}", field=field_id, value=raw
            ) from e
        return value

    def build_patch(
        self, values: Mapping[str, Any], current: Mapping[str, Any]
    ) -> tuple[dict[str, Any], list[FieldError]]:
        """Decode submitted values and keep only those that differ from ``current``.

        Invalid fields are returned as errors and left out of the patch; they
        never stop the valid ones from being submitted.
        """
        patch: dict[str, Any] = {}
        errors: list[FieldError] = []
        for field_id, raw in values.items():
            try:
                value = self.decode(field_id, raw)
            except ValidationError as e:
                errors.append(FieldError(field=field_id, message=e.message, value=raw))
                continue
            if not _same(current.get(field_id), value):
                patch[field_id] = value
        return patch, errors


def _same(old: Any, new: Any) -> bool:
    # type check first: False == 0 and True == 1
    if old is None or new is None:
        return old is new
    return type(old) is type(new) and old == new


BASIC_SCHEMA = FormSchema(
    BASIC_NAMESPACE,
    [
        FieldSpec("name", "Name", FormItemCategory.TEXT, span=12),
        FieldSpec("pid_file", "Pid File", FormItemCategory.TEXT, span=6),
        FieldSpec("upgrade_sock", "Upgrade Sock", FormItemCategory.TEXT, span=6),
        FieldSpec("threads", "Threads", FormItemCategory.NUMBER, span=6),
        FieldSpec("work_stealing", "Work Stealing", FormItemCategory.CHECKBOX, span=6),
        FieldSpec("user", "User", FormItemCategory.TEXT, span=6),
        FieldSpec("group", "Group", FormItemCategory.TEXT, span=6),
        FieldSpec("grace_period", "Grace Period", FormItemCategory.TEXT, span=6),
        FieldSpec(
            "graceful_shutdown_timeout",
            "Graceful Shutdown Timeout",
            FormItemCategory.TEXT,
            span=6,
        ),
        FieldSpec("log_level", "Log Level", FormItemCategory.TEXT, span=6),
        FieldSpec(
            "upstream_keepalive_pool_size",
            "Upstream Keepalive Pool Size",
            FormItemCategory.NUMBER,
            span=6,
        ),
        FieldSpec("webhook_type", "Webhook Type", FormItemCategory.WEBHOOK_TYPE, span=4),
        FieldSpec("webhook", "Webhook Url", FormItemCategory.TEXT, span=8),
        FieldSpec("sentry", "Sentry", FormItemCategory.TEXT, span=12),
        FieldSpec("pyroscope", "Pyroscope", FormItemCategory.TEXT, span=12),
        FieldSpec(
            "error_template", "Error Template", FormItemCategory.TEXTAREA, span=12, min_rows=8
        ),
    ],
    title="Modify the basic configurations",
    description=(
        "The basic configuration of pingap mainly includes various configurations "
        "such as logs, graceful restart, threads, etc."
    ),
)

UPSTREAM_SCHEMA = FormSchema(
    "upstreams",
    [
        FieldSpec("algo", "Load Balancer Algorithm", FormItemCategory.TEXT, span=6),
        FieldSpec("health_check", "Health Check", FormItemCategory.TEXT, span=6),
        FieldSpec("connection_timeout", "Connection Timeout", FormItemCategory.TEXT, span=4),
        FieldSpec(
            "total_connection_timeout",
            "Total Connection Timeout",
            FormItemCategory.TEXT,
            span=4,
        ),
        FieldSpec("read_timeout", "Read Timeout", FormItemCategory.TEXT, span=4),
        FieldSpec("idle_timeout", "Idle Timeout", FormItemCategory.TEXT, span=4),
        FieldSpec("write_timeout", "Write Timeout", FormItemCategory.TEXT, span=4),
        FieldSpec("tcp_idle", "Tcp Idle", FormItemCategory.TEXT, span=4),
        FieldSpec("tcp_interval", "Tcp Interval", FormItemCategory.TEXT, span=4),
        FieldSpec("tcp_probe_count", "Tcp Probe Count", FormItemCategory.NUMBER, span=4),
        FieldSpec("tcp_recv_buf", "Tcp Recv Buf", FormItemCategory.TEXT, span=4),
        FieldSpec("remark", "Remark", FormItemCategory.TEXTAREA, span=12),
    ],
    title="Modify upstream configuration",
)

LOCATION_SCHEMA = FormSchema(
    "locations",
    [
        FieldSpec("upstream", "Upstream", FormItemCategory.TEXT, span=6),
        FieldSpec("host", "Host", FormItemCategory.TEXT, span=6),
        FieldSpec("path", "Path", FormItemCategory.TEXT, span=6),
        FieldSpec("rewrite", "Rewrite", FormItemCategory.TEXT, span=6),
        FieldSpec("remark", "Remark", FormItemCategory.TEXTAREA, span=12),
    ],
    title="Modify location configuration",
)

SERVER_SCHEMA = FormSchema(
    "servers",
    [
        FieldSpec("addr", "Address", FormItemCategory.TEXT, span=6),
        FieldSpec("access_log", "Access Log", FormItemCategory.TEXT, span=6),
        FieldSpec("threads", "Threads", FormItemCategory.NUMBER, span=4),
        FieldSpec("tcp_idle", "Tcp Idle", FormItemCategory.TEXT, span=4),
        FieldSpec("tcp_interval", "Tcp Interval", FormItemCategory.TEXT, span=4),
        FieldSpec("tcp_probe_count", "Tcp Probe Count", FormItemCategory.NUMBER, span=4),
        FieldSpec("remark", "Remark", FormItemCategory.TEXTAREA, span=12),
    ],
    title="Modify server configuration",
)

PLUGIN_SCHEMA = FormSchema(
    "plugins",
    [
        FieldSpec("category", "Category", FormItemCategory.TEXT, span=6),
        FieldSpec("value", "Value", FormItemCategory.TEXT, span=6),
        FieldSpec("path", "Path", FormItemCategory.TEXT, span=6),
        FieldSpec("message", "Message", FormItemCategory.TEXT, span=6),
        FieldSpec("remark", "Remark", FormItemCategory.TEXTAREA, span=12),
    ],
    title="Modify plugin configuration",
)

CERTIFICATE_SCHEMA = FormSchema(
    "certificates",
    [
        FieldSpec("domains", "Domains", FormItemCategory.TEXT, span=12),
        FieldSpec("tls_cert", "Tls Cert", FormItemCategory.TEXTAREA, span=12, min_rows=4),
        FieldSpec("tls_key", "Tls Key", FormItemCategory.TEXTAREA, span=12, min_rows=4),
        FieldSpec("remark", "Remark", FormItemCategory.TEXTAREA, span=12),
    ],
    title="Modify certificate configuration",
)

SCHEMAS: dict[str, FormSchema] = {
    schema.namespace: schema
    for schema in (
        BASIC_SCHEMA,
        UPSTREAM_SCHEMA,
        LOCATION_SCHEMA,
        SERVER_SCHEMA,
        PLUGIN_SCHEMA,
        CERTIFICATE_SCHEMA,
    )
}


def schema_for(namespace: str) -> FormSchema:
    """Return the built-in schema of a namespace."""
    try:
        return SCHEMAS[namespace]
    except KeyError:
        raise SchemaError(
            f"No form schema for namespace {namespace!r}",
            suggestion=f"Use one of: {', '.join(SCHEMAS)}",
        ) from None
