"""pingap-config: edit pingap configuration sections through form schemas."""

from pingap_config._version import __version__
from pingap_config.backends import ConfigBackend, FileBackend, HTTPBackend
from pingap_config.codec import CategoryCodec, codec_for
from pingap_config.config import StoreConfig
from pingap_config.edit import EditCycle
from pingap_config.exceptions import (
    AuthenticationError,
    AuthorizationError,
    BackendError,
    BusyError,
    ConnectionError,
    NetworkError,
    NotFoundError,
    PingapConfigError,
    RateLimitError,
    RejectedError,
    SchemaError,
    ServerError,
    StoreClosedError,
    StoreNotInitializedError,
    TimeoutError,
    ValidationError,
)
from pingap_config.models import (
    DocumentSnapshot,
    EditView,
    FieldError,
    FormItem,
    FormItemCategory,
    Option,
    StoreEvent,
    SubmitResult,
    TriState,
    UpdatePolicy,
    WebhookType,
)
from pingap_config.schema import BASIC_SCHEMA, FieldSpec, FormSchema, schema_for
from pingap_config.store import ConfigStore, Subscription
from pingap_config.utils.logging import configure_logging

__all__ = [
    "BASIC_SCHEMA",
    "AuthenticationError",
    "AuthorizationError",
    "BackendError",
    "BusyError",
    "CategoryCodec",
    "ConfigBackend",
    "ConfigStore",
    "ConnectionError",
    "DocumentSnapshot",
    "EditCycle",
    "EditView",
    "FieldError",
    "FieldSpec",
    "FileBackend",
    "FormItem",
    "FormItemCategory",
    "FormSchema",
    "HTTPBackend",
    "NetworkError",
    "NotFoundError",
    "Option",
    "PingapConfigError",
    "RateLimitError",
    "RejectedError",
    "SchemaError",
    "ServerError",
    "StoreClosedError",
    "StoreConfig",
    "StoreEvent",
    "StoreNotInitializedError",
    "SubmitResult",
    "Subscription",
    "TimeoutError",
    "TriState",
    "UpdatePolicy",
    "ValidationError",
    "WebhookType",
    "__version__",
    "codec_for",
    "configure_logging",
    "schema_for",
]
