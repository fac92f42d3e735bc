"""
featuremap: unit tests for config schema validation

File: tests/unit/config/test_schema.py
Last updated: 2026-10-19

Purpose
- Validate strict config validation and structured issue reporting.

What this test file should cover
- Defaults are valid and deep-copied.
- Unknown fields, bad types, bad regexes, and out-of-range values report field paths.
- Schema version mismatches carry migration guidance.
"""

from __future__ import annotations

import pytest

from featuremap.config.schema import (
    ConfigValidationError,
    assert_valid_config,
    default_config,
    merge_config,
    migration_guidance,
    validate_config,
)


def _issue_paths(config: object) -> list[str]:
    return [issue.path for issue in validate_config(config).issues]


def test_defaults_are_valid_and_independent() -> None:
    first = default_config()
    first["feature_map"]["include"].append("extra/**")

    result = validate_config(default_config())

    assert result.is_valid
    assert "extra/**" not in default_config()["feature_map"]["include"]


def test_unknown_fields_are_rejected() -> None:
    config = default_config()
    config["analysis"]["tsconfg"] = "tsconfig.json"  # type: ignore[typeddict-unknown-key]
    config["extras"] = {}  # type: ignore[typeddict-unknown-key]

    assert _issue_paths(config) == ["extras", "analysis.tsconfg"]


def test_missing_sections_and_fields_are_reported() -> None:
    config = default_config()
    del config["observability"]  # type: ignore[misc]
    del config["feature_map"]["exclude"]  # type: ignore[misc]

    paths = _issue_paths(config)

    assert "observability" in paths
    assert "feature_map.exclude" in paths


def test_root_must_be_an_object() -> None:
    result = validate_config(["not", "a", "mapping"])

    assert not result.is_valid
    assert result.config is None
    assert result.issues[0].path == "<root>"


def test_include_must_not_be_empty() -> None:
    config = default_config()
    config["feature_map"]["include"] = []

    result = validate_config(config)

    assert [(i.path, i.message) for i in result.issues] == [
        ("feature_map.include", "must list at least one glob")
    ]


def test_list_entries_are_type_checked() -> None:
    config = default_config()
    config["feature_map"]["exclude"] = ["ok/**", 3, "  "]  # type: ignore[list-item]

    assert _issue_paths(config) == ["feature_map.exclude[1]", "feature_map.exclude[2]"]


def test_patterns_must_compile() -> None:
    config = default_config()
    config["analysis"]["module_patterns"] = ["/lib/", "(unclosed"]

    result = validate_config(config)

    assert [issue.path for issue in result.issues] == ["analysis.module_patterns[1]"]
    assert result.issues[0].message.startswith("invalid regular expression")


@pytest.mark.parametrize("value", [0, -1, True, "8"])
def test_read_concurrency_must_be_positive_integer(value: object) -> None:
    config = default_config()
    config["analysis"]["read_concurrency"] = value  # type: ignore[typeddict-item]

    assert _issue_paths(config) == ["analysis.read_concurrency"]


def test_log_level_is_case_insensitive_and_restricted() -> None:
    config = default_config()
    config["observability"]["log_level"] = "warning"
    assert assert_valid_config(config)["observability"]["log_level"] == "WARNING"

    config["observability"]["log_level"] = "TRACE"
    with pytest.raises(ConfigValidationError, match="observability.log_level"):
        assert_valid_config(config)


def test_blank_log_file_disables_file_logging() -> None:
    config = default_config()
    config["observability"]["log_file"] = "   "

    assert assert_valid_config(config)["observability"]["log_file"] == ""


def test_schema_version_mismatch_reports_guidance() -> None:
    config = default_config()
    config["meta"]["schema_version"] = 2

    result = validate_config(config)

    assert [issue.path for issue in result.issues] == ["meta.schema_version"]
    assert result.issues[0].message == migration_guidance(2)
    assert "newer" in migration_guidance(2)
    assert "older" in migration_guidance(0)
    assert migration_guidance(1) == "schema version is current"


def test_merge_config_replaces_lists_and_keeps_base() -> None:
    base = default_config()
    merged = merge_config(base, {"feature_map": {"include": ["apps/**/*.ts"]}})

    assert merged["feature_map"]["include"] == ["apps/**/*.ts"]
    assert merged["feature_map"]["exclude"] == base["feature_map"]["exclude"]
    assert base["feature_map"]["include"] != ["apps/**/*.ts"]


def test_validation_error_renders_every_issue() -> None:
    config = default_config()
    config["analysis"]["read_concurrency"] = 0
    config["feature_map"]["include"] = []

    with pytest.raises(ConfigValidationError) as excinfo:
        assert_valid_config(config)

    rendered = str(excinfo.value)
    assert rendered.startswith("invalid config:")
    assert "- feature_map.include: must list at least one glob" in rendered
    assert "- analysis.read_concurrency: must be >= 1" in rendered
