"""Tests for form schemas."""

from __future__ import annotations

import pytest

from pingap_config.exceptions import SchemaError
from pingap_config.models import SECTION_MODELS, DocumentSnapshot, FormItemCategory, to_document
from pingap_config.schema import (
    BASIC_SCHEMA,
    SCHEMAS,
    FieldSpec,
    FormSchema,
    schema_for,
)


def _snapshot(persisted: dict, version: int = 1) -> DocumentSnapshot:
    return DocumentSnapshot.capture(to_document(persisted), version)


def test_basic_schema_lists_all_fields_in_order() -> None:
    assert [f.id for f in BASIC_SCHEMA.fields] == [
        "name",
        "pid_file",
        "upgrade_sock",
        "threads",
        "work_stealing",
        "user",
        "group",
        "grace_period",
        "graceful_shutdown_timeout",
        "log_level",
        "upstream_keepalive_pool_size",
        "webhook_type",
        "webhook",
        "sentry",
        "pyroscope",
        "error_template",
    ]


def test_derive_pulls_defaults_from_current_document(persisted_document: dict) -> None:
    items = {i.id: i for i in BASIC_SCHEMA.derive(_snapshot(persisted_document), "basic")}
    assert items["threads"].default_value == 1
    assert items["threads"].category is FormItemCategory.NUMBER
    assert items["log_level"].default_value == "info"
    assert items["name"].default_value is None
    assert items["work_stealing"].selected == 1
    assert [o.discriminator for o in items["work_stealing"].options] == [1, 0, -1]
    assert items["error_template"].min_rows == 8
    assert items["webhook_type"].span == 4
    assert items["webhook_type"].selected is None
    assert items["name"].options is None


def test_derive_reflects_a_newer_snapshot(persisted_document: dict) -> None:
    persisted_document["basic"]["work_stealing"] = None
    persisted_document["basic"]["webhook_type"] = "wecom"
    items = {i.id: i for i in BASIC_SCHEMA.derive(_snapshot(persisted_document, 2), "basic")}
    assert items["work_stealing"].default_value is None
    assert items["work_stealing"].selected == -1
    assert items["webhook_type"].selected == 1


def test_derive_missing_section_gives_unset_values() -> None:
    items = schema_for("upstreams").derive(_snapshot({}), "nope")
    assert items
    assert all(i.default_value is None for i in items)


@pytest.mark.parametrize(
    ("fields", "match"),
    [
        ([FieldSpec("threads", "Threads", "slider")], "slider"),
        ([FieldSpec("thread_count", "Threads", FormItemCategory.NUMBER)], "thread_count"),
        (
            [
                FieldSpec("threads", "Threads", FormItemCategory.NUMBER),
                FieldSpec("threads", "Threads", FormItemCategory.NUMBER),
            ],
            "duplicate",
        ),
        ([FieldSpec("name", "Name", FormItemCategory.TEXT, min_rows=3)], "min_rows"),
        ([FieldSpec("name", "", FormItemCategory.TEXT)], "label"),
        ([FieldSpec("name", "Name", FormItemCategory.TEXT, span=13)], "span"),
    ],
)
def test_bad_declarations_fail_at_construction(fields: list[FieldSpec], match: str) -> None:
    with pytest.raises(SchemaError, match=match):
        FormSchema("pingap", fields)


def test_unknown_namespace_is_schema_error() -> None:
    with pytest.raises(SchemaError, match="routes"):
        FormSchema("routes", [])
    with pytest.raises(SchemaError, match="routes"):
        schema_for("routes")


def test_every_section_kind_has_a_schema() -> None:
    assert set(SCHEMAS) == set(SECTION_MODELS)


def test_build_patch_keeps_only_changed_fields() -> None:
    current = {"threads": 1, "work_stealing": True, "log_level": "info"}
    patch, errors = BASIC_SCHEMA.build_patch(
        {"threads": "4", "work_stealing": 1, "log_level": "info"}, current
    )
    assert patch == {"threads": 4}
    assert errors == []


def test_build_patch_tri_state_inherit() -> None:
    patch, _ = BASIC_SCHEMA.build_patch({"work_stealing": -1}, {"work_stealing": True})
    assert patch == {"work_stealing": None}
    assert "work_stealing" in patch


def test_build_patch_does_not_confuse_false_and_unset() -> None:
    patch, _ = BASIC_SCHEMA.build_patch({"work_stealing": 0}, {})
    assert patch == {"work_stealing": False}
    patch, _ = BASIC_SCHEMA.build_patch({"work_stealing": -1}, {})
    assert patch == {}
    patch, _ = BASIC_SCHEMA.build_patch({"work_stealing": 0}, {"work_stealing": False})
    assert patch == {}


def test_build_patch_reports_bad_fields_and_keeps_good_ones() -> None:
    patch, errors = BASIC_SCHEMA.build_patch(
        {
            "webhook_type": "slack",
            "grace_period": "soon",
            "unknown": "x",
            "log_level": "warn",
        },
        {"log_level": "info"},
    )
    assert patch == {"log_level": "warn"}
    assert sorted(e.field for e in errors) == ["grace_period", "unknown", "webhook_type"]
