"""
featuremap: runtime config loader.

File: src/featuremap/config/loader.py
Last updated: 2026-10-19

Purpose
- Load effective runtime config from defaults, a TOML or YAML file, env vars, and CLI overrides.

Functional requirements
- Precedence: CLI > env (``FEATUREMAP_``) > file > defaults.
- ``.toml`` files are parsed with ``tomllib``; ``.yaml``/``.yml`` files with PyYAML ``safe_load``.
- Without an explicit path, ``featuremap.toml``, ``featuremap.yaml``, then ``featuremap.yml``
  are looked up in the search directory; none of them is required.
- List-valued env overrides are comma separated.

Non-functional requirements
- Keep loading deterministic and reproducible.
"""

from __future__ import annotations

import json
import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final, Literal

import yaml

from featuremap.config.schema import (
    PATH_FIELDS,
    assert_valid_config,
    default_config,
    merge_config,
)

DEFAULT_CONFIG_FILE: Final[str] = "featuremap.toml"
CONFIG_FILE_CANDIDATES: Final[tuple[str, ...]] = (
    DEFAULT_CONFIG_FILE,
    "featuremap.yaml",
    "featuremap.yml",
)
ENV_PREFIX: Final[str] = "FEATUREMAP_"

_YAML_SUFFIXES: Final[frozenset[str]] = frozenset({".yaml", ".yml"})
_BOOLEAN_TRUE: Final[frozenset[str]] = frozenset({"1", "true", "t", "yes", "y", "on"})
_BOOLEAN_FALSE: Final[frozenset[str]] = frozenset({"0", "false", "f", "no", "n", "off"})

_ValueKind = Literal["str", "int", "bool", "list"]


@dataclass(frozen=True, slots=True)
class _Binding:
    path: tuple[str, ...]
    value_type: _ValueKind


class ConfigLoadError(ValueError):
    """Raised when config cannot be loaded or overrides cannot be coerced."""


def load_config(
    config_path: str | Path | None = None,
    *,
    search_dir: str | Path | None = None,
    cli_overrides: Mapping[str, object] | None = None,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Load effective config with deterministic precedence: CLI > env > file > defaults."""

    resolved_path = _resolve_config_path(config_path, search_dir)
    explicit_path = config_path is not None
    env_map = dict(os.environ if environ is None else environ)
    cli_map = dict(cli_overrides or {})

    file_payload = (
        _load_config_file(resolved_path, required=explicit_path)
        if resolved_path is not None
        else {}
    )

    merged = merge_config(default_config(), file_payload)
    merged = assert_valid_config(merged)

    env_overrides = _collect_env_overrides(merged, env_map)
    cli_payload = _materialize_cli_overrides(cli_map)

    merged = merge_config(merged, env_overrides)
    merged = merge_config(merged, cli_payload)
    return assert_valid_config(merged)


def normalize_paths(config: Mapping[str, object], *, base_dir: Path) -> dict[str, Any]:
    """Resolve configured path fields relative to ``base_dir``; empty values stay empty."""

    materialized = merge_config({}, config)
    for field_path in PATH_FIELDS:
        _normalize_path_field(materialized, field_path, base_dir)
    return materialized


def dump_effective_config(config: Mapping[str, object], *, indent: int | None = None) -> str:
    """Return a deterministic JSON dump of the effective config."""

    if indent is None:
        return json.dumps(config, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return json.dumps(config, sort_keys=True, indent=indent, ensure_ascii=False)


def _resolve_config_path(
    config_path: str | Path | None, search_dir: str | Path | None
) -> Path | None:
    if config_path is not None:
        return Path(config_path).expanduser().resolve()

    base = Path.cwd() if search_dir is None else Path(search_dir)
    for name in CONFIG_FILE_CANDIDATES:
        candidate = base / name
        if candidate.exists():
            return candidate.resolve()
    return None


def _load_config_file(path: Path, *, required: bool) -> dict[str, Any]:
    if not path.exists():
        if required:
            raise ConfigLoadError(f"config file not found: {path}")
        return {}

    if path.suffix.lower() in _YAML_SUFFIXES:
        parsed = _load_yaml_file(path)
    else:
        parsed = _load_toml_file(path)

    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ConfigLoadError(f"config root must be an object: {path}")
    return parsed


def _load_toml_file(path: Path) -> object:
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigLoadError(f"invalid TOML in {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigLoadError(f"unable to read config file {path}: {exc}") from exc


def _load_yaml_file(path: Path) -> object:
    try:
        with path.open("r", encoding="utf-8") as handle:
            return yaml.safe_load(handle)
    except yaml.YAMLError as exc:
        raise ConfigLoadError(f"invalid YAML in {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigLoadError(f"unable to read config file {path}: {exc}") from exc


def _collect_env_overrides(
    config: Mapping[str, object], environ: Mapping[str, str]
) -> dict[str, Any]:
    bindings = _build_bindings(config)
    overrides: dict[str, Any] = {}
    for env_name in sorted(bindings):
        raw = environ.get(env_name)
        if raw is None:
            continue
        binding = bindings[env_name]
        value = _coerce_env(raw, binding.value_type, env_name, binding.path)
        _set_nested(overrides, binding.path, value)
    return overrides


def _build_bindings(config: Mapping[str, object]) -> dict[str, _Binding]:
    bindings: dict[str, _Binding] = {}
    for path, value in _iter_scalar_paths(config):
        if path and path[0] == "meta":
            continue
        kind = _kind_for_value(value)
        if kind is None:
            continue
        bindings[_env_name_for_path(path)] = _Binding(path=path, value_type=kind)
    return bindings


def _iter_scalar_paths(
    payload: Mapping[str, object],
    prefix: tuple[str, ...] = (),
) -> list[tuple[tuple[str, ...], object]]:
    pairs: list[tuple[tuple[str, ...], object]] = []
    for key in sorted(payload):
        value = payload[key]
        path = (*prefix, key)
        if isinstance(value, Mapping):
            pairs.extend(_iter_scalar_paths(value, path))
        else:
            pairs.append((path, value))
    return pairs


def _kind_for_value(value: object) -> _ValueKind | None:
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int"
    if isinstance(value, str):
        return "str"
    if isinstance(value, list):
        return "list"
    return None


def _coerce_env(
    raw: str,
    value_type: _ValueKind,
    env_name: str,
    path: tuple[str, ...],
) -> object:
    value = raw.strip()
    if value_type == "str":
        return value
    if value_type == "list":
        return [part.strip() for part in value.split(",") if part.strip()]
    if value_type == "int":
        try:
            return int(value)
        except ValueError as exc:
            raise ConfigLoadError(f"{env_name} -> {'.'.join(path)} must be an integer") from exc

    lowered = value.lower()
    if lowered in _BOOLEAN_TRUE:
        return True
    if lowered in _BOOLEAN_FALSE:
        return False
    raise ConfigLoadError(
        f"{env_name} -> {'.'.join(path)} must be a boolean (true/false/1/0/yes/no/on/off)"
    )


def _materialize_cli_overrides(cli_overrides: Mapping[str, object]) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    for key in sorted(cli_overrides):
        value = cli_overrides[key]
        if value is None:
            continue
        path = tuple(part for part in key.split(".") if part)
        if not path:
            raise ConfigLoadError(f"invalid CLI override key {key!r}")
        _set_nested(payload, path, value)
    return payload


def _set_nested(target: dict[str, Any], path: tuple[str, ...], value: object) -> None:
    cursor = target
    for part in path[:-1]:
        next_node = cursor.get(part)
        if not isinstance(next_node, dict):
            next_node = {}
            cursor[part] = next_node
        cursor = next_node
    cursor[path[-1]] = value


def _get_nested(payload: Mapping[str, object], path: tuple[str, ...]) -> object | None:
    cursor: object = payload
    for part in path:
        if not isinstance(cursor, Mapping):
            return None
        if part not in cursor:
            return None
        cursor = cursor[part]
    return cursor


def _normalize_path_field(config: dict[str, Any], path: tuple[str, ...], base_dir: Path) -> None:
    value = _get_nested(config, path)
    if not isinstance(value, str) or not value:
        return
    _set_nested(config, path, _normalize_one_path(value, base_dir))


def _normalize_one_path(raw: str, base_dir: Path) -> str:
    expanded = os.path.expandvars(raw)
    candidate = Path(expanded).expanduser()
    if not candidate.is_absolute():
        candidate = base_dir / candidate
    return Path(os.path.normpath(str(candidate))).as_posix()


def _env_name_for_path(path: tuple[str, ...]) -> str:
    return ENV_PREFIX + "_".join(part.upper() for part in path)


__all__ = [
    "CONFIG_FILE_CANDIDATES",
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "ConfigLoadError",
    "dump_effective_config",
    "load_config",
    "normalize_paths",
]
