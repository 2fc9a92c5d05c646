"""Field models for every section kind of the pingap configuration.

Each model lists the fields the admin panel knows about. Extra fields are
allowed so that anything the panel does not own round-trips untouched.
"""

from __future__ import annotations

import re
from typing import Any

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator

from pingap_config.exceptions import SchemaError, ValidationError

from .enums import WebhookType

_DURATION_UNITS = (
    "nsec|ns|usec|us|msec|ms|seconds|second|sec|s|minutes|minute|min|m|"
    "hours|hour|hr|h|days|day|d|weeks|week|w|months|month|M|years|year|y"
)
_DURATION_RE = re.compile(rf"^(\s*\d+\s*({_DURATION_UNITS})\s*)+$")


def is_duration(value: str) -> bool:
    """Return True for humantime strings such as ``10s``, ``3m`` or ``1h 30m``."""
    return bool(_DURATION_RE.match(value))


def _check_duration(value: str | None) -> str | None:
    if value is None or value == "":
        return value
    if not is_duration(value):
        raise ValueError(f"{value!r} is not a duration (e.g. 10s, 3m, 1h)")
    return value


class SectionModel(BaseModel):
    """Base for section models: unknown fields are kept as-is."""

    model_config = ConfigDict(extra="allow")


class BasicConfig(SectionModel):
    """The ``[basic]`` table."""

    name: str | None = None
    pid_file: str | None = None
    upgrade_sock: str | None = None
    user: str | None = None
    group: str | None = None
    threads: int | None = Field(default=None, ge=0)  # 0 means one per available core
    work_stealing: bool | None = None
    grace_period: str | None = None
    graceful_shutdown_timeout: str | None = None
    log_level: str | None = None
    upstream_keepalive_pool_size: int | None = Field(default=None, ge=0)
    webhook: str | None = None
    webhook_type: WebhookType | None = None
    sentry: str | None = None
    pyroscope: str | None = None
    error_template: str | None = None

    @field_validator("grace_period", "graceful_shutdown_timeout")
    @classmethod
    def check_durations(cls, value: str | None) -> str | None:
        return _check_duration(value)


class UpstreamConfig(SectionModel):
    """An ``[upstreams.<name>]`` table."""

    addrs: list[str] = Field(default_factory=list)
    algo: str | None = None
    health_check: str | None = None
    connection_timeout: str | None = None
    total_connection_timeout: str | None = None
    read_timeout: str | None = None
    idle_timeout: str | None = None
    write_timeout: str | None = None
    tcp_idle: str | None = None
    tcp_interval: str | None = None
    tcp_probe_count: int | None = Field(default=None, ge=0)
    tcp_recv_buf: str | None = None
    remark: str | None = None

    @field_validator(
        "connection_timeout",
        "total_connection_timeout",
        "read_timeout",
        "idle_timeout",
        "write_timeout",
        "tcp_idle",
        "tcp_interval",
    )
    @classmethod
    def check_durations(cls, value: str | None) -> str | None:
        return _check_duration(value)


class LocationConfig(SectionModel):
    """A ``[locations.<name>]`` table."""

    upstream: str | None = None
    path: str | None = None
    host: str | None = None
    rewrite: str | None = None
    proxy_set_headers: list[str] | None = None
    proxy_add_headers: list[str] | None = None
    plugins: list[str] | None = None
    remark: str | None = None


class ServerConfig(SectionModel):
    """A ``[servers.<name>]`` table."""

    addr: str | None = None
    access_log: str | None = None
    locations: list[str] | None = None
    threads: int | None = Field(default=None, ge=0)
    tcp_idle: str | None = None
    tcp_interval: str | None = None
    tcp_probe_count: int | None = Field(default=None, ge=0)
    remark: str | None = None

    @field_validator("tcp_idle", "tcp_interval")
    @classmethod
    def check_durations(cls, value: str | None) -> str | None:
        return _check_duration(value)


class PluginConfig(SectionModel):
    """A ``[plugins.<name>]`` table."""

    category: str | None = None
    value: str | None = None
    message: str | None = None
    path: str | None = None
    remark: str | None = None


class CertificateConfig(SectionModel):
    """A ``[certificates.<name>]`` table."""

    domains: str | None = None
    tls_cert: str | None = None
    tls_key: str | None = None
    remark: str | None = None


BASIC_NAMESPACE = "pingap"
BASIC_CATEGORY = "basic"

SECTION_MODELS: dict[str, type[SectionModel]] = {
    BASIC_NAMESPACE: BasicConfig,
    "upstreams": UpstreamConfig,
    "locations": LocationConfig,
    "servers": ServerConfig,
    "plugins": PluginConfig,
    "certificates": CertificateConfig,
}


def section_model(namespace: str) -> type[SectionModel]:
    """Return the field model of a namespace; unknown namespaces are a schema error."""
    try:
        return SECTION_MODELS[namespace]
    except KeyError:
        raise SchemaError(
            f"Unknown config namespace {namespace!r}",
            suggestion=f"Use one of: {', '.join(SECTION_MODELS)}",
        ) from None


def validate_section(namespace: str, fields: dict[str, Any]) -> dict[str, Any]:
    """Validate a section and return ``fields`` with declared fields coerced to their types.

    Loose input such as ``"4"`` or ``"yes"`` comes back as ``4`` and ``True``;
    undeclared fields are returned untouched. Raises ValidationError naming
    the first bad field.
    """
    model = section_model(namespace)
    try:
        validated = model.model_validate(fields)
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first["loc"]) or None
        raise ValidationError(
            f"{namespace}: {field}: {first['msg']}",
            field=field,
            value=first.get("input"),
        ) from e
    declared = {name for name in fields if name in model.model_fields}
    if not declared:
        return dict(fields)
    return {**fields, **validated.model_dump(mode="json", include=declared)}
