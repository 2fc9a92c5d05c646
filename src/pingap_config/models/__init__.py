"""Public model exports."""

from pingap_config.models.document import (
    SECTION_GROUPS,
    DocumentSnapshot,
    StoreEvent,
    persisted_path,
    to_document,
)
from pingap_config.models.enums import (
    FormItemCategory,
    StoreEventKind,
    TriState,
    UpdatePolicy,
    WebhookType,
)
from pingap_config.models.form import EditView, FieldError, FormItem, Option, SubmitResult
from pingap_config.models.sections import (
    BASIC_CATEGORY,
    BASIC_NAMESPACE,
    SECTION_MODELS,
    BasicConfig,
    CertificateConfig,
    LocationConfig,
    PluginConfig,
    SectionModel,
    ServerConfig,
    UpstreamConfig,
    is_duration,
    section_model,
    validate_section,
)

__all__ = [
    "BASIC_CATEGORY",
    "BASIC_NAMESPACE",
    "SECTION_GROUPS",
    "SECTION_MODELS",
    "BasicConfig",
    "CertificateConfig",
    "DocumentSnapshot",
    "EditView",
    "FieldError",
    "FormItem",
    "FormItemCategory",
    "LocationConfig",
    "Option",
    "PluginConfig",
    "SectionModel",
    "ServerConfig",
    "StoreEvent",
    "StoreEventKind",
    "SubmitResult",
    "TriState",
    "UpdatePolicy",
    "UpstreamConfig",
    "WebhookType",
    "is_duration",
    "persisted_path",
    "section_model",
    "to_document",
    "validate_section",
]
