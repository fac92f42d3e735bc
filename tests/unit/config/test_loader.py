"""
featuremap: unit tests for config loader

File: tests/unit/config/test_loader.py
Last updated: 2026-10-19

Purpose
- Validate deterministic config loading from defaults, TOML/YAML files, env overrides,
  and CLI overrides.

What this test file should cover
- Precedence: CLI > env > file > defaults.
- Deterministic env var path mapping and type coercion.
- Path normalization relative to the project root.
- Deterministic effective config dumping.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from featuremap.config.loader import (
    ConfigLoadError,
    dump_effective_config,
    load_config,
    normalize_paths,
)
from featuremap.config.schema import ConfigValidationError, default_config


def _write_config(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def test_loader_precedence_default_file_env_cli(tmp_path: Path) -> None:
    config_path = tmp_path / "featuremap.toml"
    _write_config(
        config_path,
        """
[analysis]
read_concurrency = 4
""".strip(),
    )
    env = {"FEATUREMAP_ANALYSIS_READ_CONCURRENCY": "6"}

    default_loaded = load_config(search_dir=tmp_path / "empty", environ={})
    file_loaded = load_config(config_path, environ={})
    env_loaded = load_config(config_path, environ=env)
    cli_loaded = load_config(
        config_path,
        environ=env,
        cli_overrides={"analysis.read_concurrency": 7},
    )

    assert default_loaded["analysis"]["read_concurrency"] == 8
    assert file_loaded["analysis"]["read_concurrency"] == 4
    assert env_loaded["analysis"]["read_concurrency"] == 6
    assert cli_loaded["analysis"]["read_concurrency"] == 7


def test_defaults_match_builtin_config(tmp_path: Path) -> None:
    loaded = load_config(search_dir=tmp_path, environ={})

    assert loaded == default_config()
    assert loaded["feature_map"]["output_dir"] == "docs/portal"
    assert loaded["analysis"]["tsconfig"] == "tsconfig.json"


def test_config_file_is_discovered_in_search_dir(tmp_path: Path) -> None:
    _write_config(
        tmp_path / "featuremap.yaml",
        "feature_map:\n  output_dir: build/map\n  include:\n    - apps/**/*.tsx\n",
    )

    loaded = load_config(search_dir=tmp_path, environ={})

    assert loaded["feature_map"]["output_dir"] == "build/map"
    assert loaded["feature_map"]["include"] == ["apps/**/*.tsx"]
    assert loaded["feature_map"]["exclude"] == default_config()["feature_map"]["exclude"]


def test_toml_candidate_wins_over_yaml(tmp_path: Path) -> None:
    _write_config(tmp_path / "featuremap.toml", '[feature_map]\noutput_dir = "from-toml"\n')
    _write_config(tmp_path / "featuremap.yml", "feature_map:\n  output_dir: from-yaml\n")

    loaded = load_config(search_dir=tmp_path, environ={})

    assert loaded["feature_map"]["output_dir"] == "from-toml"


def test_empty_yaml_file_means_defaults(tmp_path: Path) -> None:
    config_path = tmp_path / "featuremap.yml"
    _write_config(config_path, "")

    assert load_config(config_path, environ={}) == default_config()


def test_env_mapping_coerces_lists_and_strings(tmp_path: Path) -> None:
    loaded = load_config(
        search_dir=tmp_path,
        environ={
            "FEATUREMAP_FEATURE_MAP_EXCLUDE": " **/*.test.ts , ,**/gen/** ",
            "FEATUREMAP_OBSERVABILITY_LOG_LEVEL": "debug",
            "FEATUREMAP_FEATURE_MAP_OUTPUT_DIR": " out ",
            "UNRELATED": "ignored",
        },
    )

    assert loaded["feature_map"]["exclude"] == ["**/*.test.ts", "**/gen/**"]
    assert loaded["observability"]["log_level"] == "DEBUG"
    assert loaded["feature_map"]["output_dir"] == "out"


def test_env_integer_must_parse(tmp_path: Path) -> None:
    with pytest.raises(ConfigLoadError, match="FEATUREMAP_ANALYSIS_READ_CONCURRENCY"):
        load_config(
            search_dir=tmp_path,
            environ={"FEATUREMAP_ANALYSIS_READ_CONCURRENCY": "many"},
        )


def test_meta_section_is_not_env_addressable(tmp_path: Path) -> None:
    loaded = load_config(search_dir=tmp_path, environ={"FEATUREMAP_META_SCHEMA_VERSION": "9"})

    assert loaded["meta"]["schema_version"] == 1


def test_cli_overrides_skip_none_values(tmp_path: Path) -> None:
    loaded = load_config(
        search_dir=tmp_path,
        environ={},
        cli_overrides={"feature_map.output_dir": None, "analysis.tsconfig": "tsconfig.app.json"},
    )

    assert loaded["feature_map"]["output_dir"] == "docs/portal"
    assert loaded["analysis"]["tsconfig"] == "tsconfig.app.json"


def test_missing_explicit_file_fails(tmp_path: Path) -> None:
    with pytest.raises(ConfigLoadError, match="config file not found"):
        load_config(tmp_path / "nope.toml", environ={})


def test_malformed_files_fail(tmp_path: Path) -> None:
    toml_path = tmp_path / "bad.toml"
    yaml_path = tmp_path / "bad.yaml"
    list_path = tmp_path / "list.yaml"
    _write_config(toml_path, "[feature_map\n")
    _write_config(yaml_path, "feature_map: [unclosed\n")
    _write_config(list_path, "- a\n- b\n")

    with pytest.raises(ConfigLoadError, match="invalid TOML"):
        load_config(toml_path, environ={})
    with pytest.raises(ConfigLoadError, match="invalid YAML"):
        load_config(yaml_path, environ={})
    with pytest.raises(ConfigLoadError, match="must be an object"):
        load_config(list_path, environ={})


def test_invalid_values_raise_validation_error(tmp_path: Path) -> None:
    config_path = tmp_path / "featuremap.toml"
    _write_config(config_path, "[analysis]\nread_concurrency = 0\n")

    with pytest.raises(ConfigValidationError) as excinfo:
        load_config(config_path, environ={})

    assert [issue.path for issue in excinfo.value.issues] == ["analysis.read_concurrency"]


def test_normalize_paths_resolves_relative_fields(tmp_path: Path) -> None:
    config = default_config()
    config["observability"]["log_file"] = "logs/run.jsonl"
    config["analysis"]["tsconfig"] = str(tmp_path / "other" / "tsconfig.json")

    normalized = normalize_paths(config, base_dir=tmp_path)

    assert normalized["feature_map"]["output_dir"] == (tmp_path / "docs/portal").as_posix()
    assert normalized["observability"]["log_file"] == (tmp_path / "logs/run.jsonl").as_posix()
    assert normalized["analysis"]["tsconfig"] == (tmp_path / "other/tsconfig.json").as_posix()
    assert config["feature_map"]["output_dir"] == "docs/portal"


def test_normalize_paths_keeps_empty_log_file(tmp_path: Path) -> None:
    normalized = normalize_paths(default_config(), base_dir=tmp_path)

    assert normalized["observability"]["log_file"] == ""


def test_dump_effective_config_is_deterministic(tmp_path: Path) -> None:
    loaded = load_config(search_dir=tmp_path, environ={})

    compact = dump_effective_config(loaded)
    pretty = dump_effective_config(loaded, indent=2)

    assert compact == dump_effective_config(load_config(search_dir=tmp_path, environ={}))
    assert json.loads(compact) == json.loads(pretty) == loaded
    assert compact.startswith('{"analysis":')
    assert "\n" in pretty
