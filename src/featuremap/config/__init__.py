"""
featuremap config package public API.

File: src/featuremap/config/__init__.py
Last updated: 2026-10-19

Purpose
- Export config loading/validation entrypoints and public error types.

Functional requirements
- Support loading from ``featuremap.toml`` (or YAML) + ``FEATUREMAP_`` env overrides.
- Fail fast with clear structured validation/load errors.

Non-functional requirements
- Keep import-time surface small and deterministic.
"""

from featuremap.config.loader import (
    CONFIG_FILE_CANDIDATES,
    DEFAULT_CONFIG_FILE,
    ENV_PREFIX,
    ConfigLoadError,
    dump_effective_config,
    load_config,
    normalize_paths,
)
from featuremap.config.schema import (
    DEFAULT_CONFIG,
    LOG_LEVELS,
    PATH_FIELDS,
    ConfigSchemaVersion,
    ConfigValidationError,
    ConfigValidationIssue,
    ConfigValidationResult,
    FeatureMapConfig,
    assert_valid_config,
    default_config,
    merge_config,
    migration_guidance,
    validate_config,
)

__all__ = [
    "CONFIG_FILE_CANDIDATES",
    "DEFAULT_CONFIG",
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "LOG_LEVELS",
    "PATH_FIELDS",
    "ConfigLoadError",
    "ConfigSchemaVersion",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "FeatureMapConfig",
    "assert_valid_config",
    "default_config",
    "dump_effective_config",
    "load_config",
    "merge_config",
    "migration_guidance",
    "normalize_paths",
    "validate_config",
]
