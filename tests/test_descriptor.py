import json

import pytest

from chartwright.descriptor.grouping import GroupingValidationError, apply_grouping_strategy
from chartwright.descriptor.loader import (
    DescriptorError,
    build_descriptor,
    coerce_value,
    deep_merge,
    from_environment,
    load_values_file,
    parse_set_value,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("true", True),
        ("False", False),
        ("8080", 8080),
        ("-3", -3),
        ("0.5", 0.5),
        ("null", None),
        ("~", None),
        ("500m", "500m"),
        ("10.0.0.0/16", "10.0.0.0/16"),
        ("", ""),
    ],
)
def test_coerce_value(raw, expected):
    assert coerce_value(raw) == expected
    assert type(coerce_value(raw)) is type(expected)


def test_parse_set_value_builds_nested_mapping():
    assert parse_set_value("readiness_probe.type=HTTP") == {"readiness_probe": {"type": "HTTP"}}
    assert parse_set_value("min_instances=2") == {"min_instances": 2}
    assert parse_set_value("image=repo/app:1=2") == {"image": "repo/app:1=2"}


@pytest.mark.parametrize("expression", ["min_instances", "1abc=2", "a..b=1", "=x", "a-b=1"])
def test_parse_set_value_rejects_bad_expressions(expression):
    with pytest.raises(DescriptorError):
        parse_set_value(expression)


def test_deep_merge():
    base = {"probe": {"type": "TCP", "period_seconds": 10}, "ports": [1, 2]}
    merged = deep_merge(base, {"probe": {"type": "HTTP"}, "ports": [3]})
    assert merged == {"probe": {"type": "HTTP", "period_seconds": 10}, "ports": [3]}
    assert base["probe"]["type"] == "TCP"


def test_load_values_file_yaml_and_json(tmp_path):
    values = tmp_path / "values.yaml"
    values.write_text("sanitized_name: web\nports:\n  - port: 80\n")
    assert load_values_file(values) == {"sanitized_name": "web", "ports": [{"port": 80}]}

    data = tmp_path / "values.json"
    data.write_text(json.dumps({"is_storage": False}))
    assert load_values_file(data) == {"is_storage": False}

    empty = tmp_path / "empty.yaml"
    empty.write_text("")
    assert load_values_file(empty) == {}


@pytest.mark.parametrize("content", ["- a\n- b\n", "key: [unclosed\n"])
def test_load_values_file_rejects_invalid_content(tmp_path, content):
    path = tmp_path / "values.yaml"
    path.write_text(content)
    with pytest.raises(DescriptorError):
        load_values_file(path)


def test_load_values_file_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_values_file(tmp_path / "absent.yaml")


def test_from_environment_strips_prefix_and_lowercases():
    environ = {
        "APP_SANITIZED_NAME": "web",
        "APP_MIN_INSTANCES": "2",
        "APP_": "ignored",
        "OTHER_VALUE": "x",
    }
    assert from_environment("APP_", environ) == {"min_instances": 2, "sanitized_name": "web"}


def test_build_descriptor_precedence(tmp_path):
    base = tmp_path / "base.yaml"
    base.write_text("min_instances: 1\nprobe:\n  type: TCP\n  path: /\n")
    override = tmp_path / "prod.yaml"
    override.write_text("min_instances: 2\n")

    descriptor = build_descriptor(
        [base, override],
        ["probe.type=HTTP"],
        env_prefix="APP_",
        environ={"APP_MIN_INSTANCES": "3", "APP_NAMESPACE": "prod"},
    )

    assert descriptor == {
        "min_instances": 3,
        "namespace": "prod",
        "probe": {"type": "HTTP", "path": "/"},
    }


def test_build_descriptor_rejects_unsupported_values(tmp_path):
    values = tmp_path / "values.yaml"
    values.write_text("created: 2024-01-01\n")
    with pytest.raises(DescriptorError, match="unsupported type date"):
        build_descriptor([values])


# =============================================================================
# Grouping
# =============================================================================

ENV_VARS = {
    "ENV_KEY_1": "REDIS_URL",
    "ENV_KEY_0": "DATABASE_URL",
    "ENV_SECRET_0": "db-secret",
    "UNRELATED": "x",
}


def test_sequential_grouping_orders_by_index():
    descriptor = {}
    apply_grouping_strategy(
        descriptor,
        "sequential",
        "ENV_",
        ["KEY"],
        ["SECRET"],
        field="environment_variables",
        environ=ENV_VARS,
    )
    assert descriptor == {
        "environment_variables": [
            {"key": "DATABASE_URL", "secret": "db-secret"},
            {"key": "REDIS_URL"},
        ]
    }


def test_grouping_default_field_name():
    descriptor = {}
    apply_grouping_strategy(descriptor, "indexed", "ENV_", ["KEY"], environ=ENV_VARS)
    assert list(descriptor) == ["env_groups"]


def test_indexed_grouping_allows_gaps():
    descriptor = {}
    environ = {"PORT_NUMBER_0": "80", "PORT_NUMBER_5": "443"}
    apply_grouping_strategy(descriptor, "indexed", "PORT_", ["NUMBER"], field="ports", environ=environ)
    assert descriptor["ports"] == [{"number": "80"}, {"number": "443"}]


@pytest.mark.parametrize(
    "environ, message",
    [
        ({"PORT_NUMBER_1": "80"}, "must start at index 0"),
        ({"PORT_NUMBER_0": "80", "PORT_NUMBER_2": "443"}, "has gaps at indices \\[1\\]"),
        ({"PORT_NAME_0": "http"}, "missing required key"),
    ],
)
def test_sequential_grouping_validation(environ, message):
    with pytest.raises(GroupingValidationError, match=message):
        apply_grouping_strategy({}, "sequential", "PORT_", ["NUMBER"], ["NAME"], environ=environ)


def test_unknown_grouping_strategy():
    with pytest.raises(ValueError, match="Unknown strategy"):
        apply_grouping_strategy({}, "random", "ENV_", ["KEY"], environ={})
