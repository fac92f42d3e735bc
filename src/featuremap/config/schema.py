"""
featuremap: configuration schema and validation.

File: src/featuremap/config/schema.py
Last updated: 2026-10-19

Purpose
- Define authoritative configuration defaults and strict validation rules.

Functional requirements
- Validate config payloads and return structured errors (field path + message).
- Import categorization patterns must compile as regular expressions.
- Unknown sections and fields are rejected so typos fail loudly.

Non-functional requirements
- Keep rules deterministic and easy to audit.
"""

from __future__ import annotations

import copy
import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Final, TypedDict

from featuremap.constants import (
    CONFIG_SCHEMA_VERSION,
    DEFAULT_ACTION_PATTERNS,
    DEFAULT_COMPONENT_PATTERNS,
    DEFAULT_EXCLUDE_GLOBS,
    DEFAULT_INCLUDE_GLOBS,
    DEFAULT_MODULE_PATTERNS,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_READ_CONCURRENCY,
    DEFAULT_TSCONFIG,
)

ConfigSchemaVersion: Final[int] = CONFIG_SCHEMA_VERSION
LOG_LEVELS: Final[tuple[str, ...]] = ("DEBUG", "INFO", "WARNING", "ERROR")

# Config paths resolved against the project root before use.
PATH_FIELDS: Final[tuple[tuple[str, ...], ...]] = (
    ("feature_map", "output_dir"),
    ("analysis", "tsconfig"),
    ("observability", "log_file"),
)


class MetaConfig(TypedDict):
    schema_version: int


class FeatureMapSection(TypedDict):
    include: list[str]
    exclude: list[str]
    output_dir: str


class AnalysisConfig(TypedDict):
    tsconfig: str
    component_patterns: list[str]
    action_patterns: list[str]
    module_patterns: list[str]
    read_concurrency: int


class ObservabilityConfig(TypedDict):
    log_level: str
    log_file: str


class FeatureMapConfig(TypedDict):
    meta: MetaConfig
    feature_map: FeatureMapSection
    analysis: AnalysisConfig
    observability: ObservabilityConfig


DEFAULT_CONFIG: Final[FeatureMapConfig] = {
    "meta": {"schema_version": ConfigSchemaVersion},
    "feature_map": {
        "include": list(DEFAULT_INCLUDE_GLOBS),
        "exclude": list(DEFAULT_EXCLUDE_GLOBS),
        "output_dir": DEFAULT_OUTPUT_DIR.as_posix(),
    },
    "analysis": {
        "tsconfig": DEFAULT_TSCONFIG,
        "component_patterns": list(DEFAULT_COMPONENT_PATTERNS),
        "action_patterns": list(DEFAULT_ACTION_PATTERNS),
        "module_patterns": list(DEFAULT_MODULE_PATTERNS),
        "read_concurrency": DEFAULT_READ_CONCURRENCY,
    },
    "observability": {
        "log_level": "INFO",
        "log_file": "",
    },
}


@dataclass(frozen=True, slots=True)
class ConfigValidationIssue:
    """Single structured validation failure."""

    path: str
    message: str


@dataclass(frozen=True, slots=True)
class ConfigValidationResult:
    """Validation result with normalized config when no issues were found."""

    config: dict[str, Any] | None
    issues: tuple[ConfigValidationIssue, ...]

    @property
    def is_valid(self) -> bool:
        return self.config is not None and not self.issues


class ConfigValidationError(ValueError):
    """Raised when strict config validation fails."""

    def __init__(self, issues: Sequence[ConfigValidationIssue]) -> None:
        self.issues = tuple(issues)
        if not self.issues:
            rendered = "unknown validation failure"
        else:
            rendered = "\n".join(f"- {item.path}: {item.message}" for item in self.issues)
        super().__init__(f"invalid config:\n{rendered}")


class _IssueCollector:
    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: list[ConfigValidationIssue] = []

    def add(self, path: str, message: str) -> None:
        self._items.append(ConfigValidationIssue(path=path, message=message))

    def items(self) -> tuple[ConfigValidationIssue, ...]:
        return tuple(self._items)

    @property
    def has_issues(self) -> bool:
        return bool(self._items)


def default_config() -> FeatureMapConfig:
    """Return a deep copy of the built-in defaults."""

    return copy.deepcopy(DEFAULT_CONFIG)


def migration_guidance(found_version: int) -> str:
    if found_version < ConfigSchemaVersion:
        return (
            f"schema version {found_version} is older than supported {ConfigSchemaVersion}; "
            "upgrade featuremap.toml to the current schema"
        )
    if found_version > ConfigSchemaVersion:
        return (
            f"schema version {found_version} is newer than supported {ConfigSchemaVersion}; "
            "upgrade the featuremap package"
        )
    return "schema version is current"


def merge_config(base: Mapping[str, object], overlay: Mapping[str, object]) -> dict[str, Any]:
    """Deep-merge ``overlay`` onto ``base``; lists are replaced, not concatenated."""

    merged = _deep_copy_mapping(base)
    _merge_into(merged, overlay)
    return merged


def validate_config(config: Mapping[str, object] | object) -> ConfigValidationResult:
    """Validate config and return structured issues with deterministic paths."""

    issues = _IssueCollector()
    root = _as_object(config, "<root>", issues)
    if root is None:
        return ConfigValidationResult(config=None, issues=issues.items())

    normalized = _validate_root(root, "", issues, partial=False)
    if issues.has_issues:
        return ConfigValidationResult(config=None, issues=issues.items())
    return ConfigValidationResult(config=normalized, issues=issues.items())


def assert_valid_config(config: Mapping[str, object] | object) -> dict[str, Any]:
    """Validate config and raise ``ConfigValidationError`` on failure."""

    result = validate_config(config)
    if result.config is None:
        raise ConfigValidationError(result.issues)
    return result.config


def _validate_root(
    payload: Mapping[str, object],
    path: str,
    issues: _IssueCollector,
    *,
    partial: bool,
) -> dict[str, Any]:
    required = {"meta", "feature_map", "analysis", "observability"}
    _reject_unknown_keys(payload, required, path, issues)
    if not partial:
        _require_keys(payload, required, path, issues)

    out: dict[str, Any] = {}
    validators: tuple[tuple[str, Callable[..., dict[str, Any]]], ...] = (
        ("meta", _validate_meta),
        ("feature_map", _validate_feature_map),
        ("analysis", _validate_analysis),
        ("observability", _validate_observability),
    )
    for key, validator in validators:
        _section(
            payload,
            key=key,
            path=path,
            issues=issues,
            validator=lambda section, section_path, check=validator: check(
                section, section_path, issues, partial=partial
            ),
            out=out,
        )
    return out


def _section(
    payload: Mapping[str, object],
    *,
    key: str,
    path: str,
    issues: _IssueCollector,
    validator: Callable[[dict[str, object], str], dict[str, Any]],
    out: dict[str, Any],
) -> None:
    raw = payload.get(key)
    if raw is None:
        return
    section_path = _join(path, key)
    section_obj = _as_object(raw, section_path, issues)
    if section_obj is None:
        return
    out[key] = validator(section_obj, section_path)


def _validate_meta(
    payload: Mapping[str, object],
    path: str,
    issues: _IssueCollector,
    *,
    partial: bool,
) -> dict[str, Any]:
    allowed = {"schema_version"}
    _reject_unknown_keys(payload, allowed, path, issues)
    if not partial:
        _require_keys(payload, allowed, path, issues)

    out: dict[str, Any] = {}
    if "schema_version" in payload:
        parsed = _as_int(
            payload["schema_version"], _join(path, "schema_version"), issues, minimum=1
        )
        if parsed is not None:
            out["schema_version"] = parsed
            if parsed != ConfigSchemaVersion:
                issues.add(_join(path, "schema_version"), migration_guidance(parsed))
    return out


def _validate_feature_map(
    payload: Mapping[str, object],
    path: str,
    issues: _IssueCollector,
    *,
    partial: bool,
) -> dict[str, Any]:
    allowed = {"include", "exclude", "output_dir"}
    _reject_unknown_keys(payload, allowed, path, issues)
    if not partial:
        _require_keys(payload, allowed, path, issues)

    out: dict[str, Any] = {}
    if "include" in payload:
        include = _as_str_list(payload["include"], _join(path, "include"), issues)
        if include is not None:
            if not include:
                issues.add(_join(path, "include"), "must list at least one glob")
            out["include"] = include
    if "exclude" in payload:
        exclude = _as_str_list(payload["exclude"], _join(path, "exclude"), issues)
        if exclude is not None:
            out["exclude"] = exclude
    if "output_dir" in payload:
        output_dir = _as_path_text(payload["output_dir"], _join(path, "output_dir"), issues)
        if output_dir is not None:
            out["output_dir"] = output_dir
    return out


def _validate_analysis(
    payload: Mapping[str, object],
    path: str,
    issues: _IssueCollector,
    *,
    partial: bool,
) -> dict[str, Any]:
    pattern_keys = ("component_patterns", "action_patterns", "module_patterns")
    allowed = {"tsconfig", "read_concurrency", *pattern_keys}
    _reject_unknown_keys(payload, allowed, path, issues)
    if not partial:
        _require_keys(payload, allowed, path, issues)

    out: dict[str, Any] = {}
    if "tsconfig" in payload:
        tsconfig = _as_path_text(payload["tsconfig"], _join(path, "tsconfig"), issues)
        if tsconfig is not None:
            out["tsconfig"] = tsconfig

    for key in pattern_keys:
        if key not in payload:
            continue
        patterns = _as_regex_list(payload[key], _join(path, key), issues)
        if patterns is not None:
            out[key] = patterns

    if "read_concurrency" in payload:
        concurrency = _as_int(
            payload["read_concurrency"], _join(path, "read_concurrency"), issues, minimum=1
        )
        if concurrency is not None:
            out["read_concurrency"] = concurrency
    return out


def _validate_observability(
    payload: Mapping[str, object],
    path: str,
    issues: _IssueCollector,
    *,
    partial: bool,
) -> dict[str, Any]:
    allowed = {"log_level", "log_file"}
    _reject_unknown_keys(payload, allowed, path, issues)
    if not partial:
        _require_keys(payload, allowed, path, issues)

    out: dict[str, Any] = {}
    if "log_level" in payload:
        raw_level = payload["log_level"]
        level = _as_enum(
            raw_level.upper() if isinstance(raw_level, str) else raw_level,
            _join(path, "log_level"),
            issues,
            allowed_values=LOG_LEVELS,
        )
        if level is not None:
            out["log_level"] = level
    if "log_file" in payload:
        raw_file = payload["log_file"]
        # An empty string disables file logging.
        if isinstance(raw_file, str) and not raw_file.strip():
            out["log_file"] = ""
        else:
            log_file = _as_path_text(raw_file, _join(path, "log_file"), issues)
            if log_file is not None:
                out["log_file"] = log_file
    return out


def _as_object(value: object, path: str, issues: _IssueCollector) -> dict[str, object] | None:
    if not isinstance(value, Mapping):
        issues.add(path, f"expected object, got {type(value).__name__}")
        return None
    out: dict[str, object] = {}
    for key, item in value.items():
        if not isinstance(key, str):
            issues.add(path, f"object key must be string, got {type(key).__name__}")
            continue
        out[key] = item
    return out


def _as_str(value: object, path: str, issues: _IssueCollector) -> str | None:
    if not isinstance(value, str):
        issues.add(path, f"expected string, got {type(value).__name__}")
        return None
    parsed = value.strip()
    if not parsed:
        issues.add(path, "must not be empty")
        return None
    return parsed


def _as_path_text(value: object, path: str, issues: _IssueCollector) -> str | None:
    parsed = _as_str(value, path, issues)
    if parsed is None:
        return None
    if "\x00" in parsed:
        issues.add(path, "must not contain NUL bytes")
        return None
    return parsed


def _as_str_list(value: object, path: str, issues: _IssueCollector) -> list[str] | None:
    if isinstance(value, str) or not isinstance(value, Sequence):
        issues.add(path, f"expected list of strings, got {type(value).__name__}")
        return None
    out: list[str] = []
    valid = True
    for index, item in enumerate(value):
        parsed = _as_str(item, f"{path}[{index}]", issues)
        if parsed is None:
            valid = False
            continue
        out.append(parsed)
    return out if valid else None


def _as_regex_list(value: object, path: str, issues: _IssueCollector) -> list[str] | None:
    patterns = _as_str_list(value, path, issues)
    if patterns is None:
        return None
    valid = True
    for index, pattern in enumerate(patterns):
        try:
            re.compile(pattern)
        except re.error as exc:
            issues.add(f"{path}[{index}]", f"invalid regular expression: {exc}")
            valid = False
    return patterns if valid else None


def _as_int(
    value: object,
    path: str,
    issues: _IssueCollector,
    *,
    minimum: int | None = None,
) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        issues.add(path, f"expected integer, got {type(value).__name__}")
        return None
    if minimum is not None and value < minimum:
        issues.add(path, f"must be >= {minimum}")
        return None
    return value


def _as_enum(
    value: object,
    path: str,
    issues: _IssueCollector,
    *,
    allowed_values: tuple[str, ...],
) -> str | None:
    parsed = _as_str(value, path, issues)
    if parsed is None:
        return None
    if parsed not in allowed_values:
        expected = ", ".join(sorted(allowed_values))
        issues.add(path, f"invalid value {parsed!r}; expected one of: {expected}")
        return None
    return parsed


def _reject_unknown_keys(
    payload: Mapping[str, object],
    allowed: set[str],
    path: str,
    issues: _IssueCollector,
) -> None:
    for key in sorted(payload):
        if key not in allowed:
            issues.add(_join(path, key), "unknown field")


def _require_keys(
    payload: Mapping[str, object],
    required: set[str],
    path: str,
    issues: _IssueCollector,
) -> None:
    for key in sorted(required):
        if key not in payload:
            issues.add(_join(path, key), "missing required field")


def _join(path: str, key: str) -> str:
    if not path:
        return key
    return f"{path}.{key}"


def _merge_into(target: dict[str, Any], overlay: Mapping[str, object]) -> None:
    for key in sorted(overlay):
        value = overlay[key]
        if isinstance(value, Mapping):
            existing = target.get(key)
            if isinstance(existing, dict):
                _merge_into(existing, value)
            else:
                nested: dict[str, Any] = {}
                _merge_into(nested, value)
                target[key] = nested
        else:
            target[key] = _deep_copy_value(value)


def _deep_copy_mapping(value: Mapping[str, object]) -> dict[str, Any]:
    return {key: _deep_copy_value(value[key]) for key in sorted(value)}


def _deep_copy_value(value: object) -> Any:
    if isinstance(value, Mapping):
        return {key: _deep_copy_value(item) for key, item in value.items() if isinstance(key, str)}
    if isinstance(value, (list, tuple)):
        return [_deep_copy_value(item) for item in value]
    return copy.deepcopy(value)


__all__ = [
    "DEFAULT_CONFIG",
    "LOG_LEVELS",
    "PATH_FIELDS",
    "AnalysisConfig",
    "ConfigSchemaVersion",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "FeatureMapConfig",
    "FeatureMapSection",
    "ObservabilityConfig",
    "assert_valid_config",
    "default_config",
    "merge_config",
    "migration_guidance",
    "validate_config",
]
