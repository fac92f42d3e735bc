"""Stable constants shared across featuremap layers."""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Final

# Schema version for the configuration file.
CONFIG_SCHEMA_VERSION: Final[int] = 1

# Output artifact.
FEATURE_MAP_FILENAME: Final[str] = "feature-map.json"
DEFAULT_OUTPUT_DIR: Final[PurePosixPath] = PurePosixPath("docs/portal")

# File collection (project-relative POSIX globs).
DEFAULT_INCLUDE_GLOBS: Final[tuple[str, ...]] = (
    "apps/*/app/**/*.tsx",
    "apps/*/components/**/*.tsx",
    "apps/*/lib/**/*.ts",
    "apps/*/middleware.ts",
    "packages/*/src/schema/**/*.ts",
)
DEFAULT_EXCLUDE_GLOBS: Final[tuple[str, ...]] = (
    "**/node_modules/**",
    "**/*.test.ts",
    "**/*.test.tsx",
    "**/*.spec.ts",
    "**/*.spec.tsx",
)

# Import categorization; checked in this order, first match wins.
DEFAULT_COMPONENT_PATTERNS: Final[tuple[str, ...]] = (
    r"/components/",
    r"@/components/",
    r"/app/.*/components/",
)
DEFAULT_ACTION_PATTERNS: Final[tuple[str, ...]] = (
    r"/lib/actions/",
    r"@/lib/actions/",
    r"/actions/",
    r"@/actions/",
)
DEFAULT_MODULE_PATTERNS: Final[tuple[str, ...]] = (
    r"/lib/(?!actions)",
    r"@/lib/(?!actions)",
)

DEFAULT_TSCONFIG: Final[str] = "tsconfig.json"
DEFAULT_READ_CONCURRENCY: Final[int] = 8

__all__ = [
    "CONFIG_SCHEMA_VERSION",
    "DEFAULT_ACTION_PATTERNS",
    "DEFAULT_COMPONENT_PATTERNS",
    "DEFAULT_EXCLUDE_GLOBS",
    "DEFAULT_INCLUDE_GLOBS",
    "DEFAULT_MODULE_PATTERNS",
    "DEFAULT_OUTPUT_DIR",
    "DEFAULT_READ_CONCURRENCY",
    "DEFAULT_TSCONFIG",
    "FEATURE_MAP_FILENAME",
]
