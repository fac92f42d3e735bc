"""
featuremap: pure path projections.

File: src/featuremap/domain/paths.py
Last updated: 2026-10-19

Purpose
- Derive module names, owning apps, and action kinds from project-relative paths.
- Classify files (screen, component, action, middleware, layout) by location.

Functional requirements
- Every function is a pure projection of a POSIX-style relative path; no filesystem access.

Non-functional requirements
- Backslash separators are tolerated so Windows-collected paths project identically.
"""

from __future__ import annotations

import re
from pathlib import PurePosixPath
from typing import Final, Literal

AppName = str
ActionType = Literal["CRUD", "Domain"]

UNKNOWN_APP: Final[str] = "Unknown"
SHARED_APP: Final[str] = "Shared"

_APP_DISPLAY_NAMES: Final[dict[str, str]] = {
    "admin": "Admin",
    "public": "Public",
    "web": "Web",
    "api": "API",
    "mcp": "API",
}

# Directory names that never make a meaningful module name on their own.
_GENERIC_MODULE_DIRS: Final[frozenset[str]] = frozenset(
    {
        "app",
        "lib",
        "src",
        "components",
        "actions",
        "schema",
        "apps",
        "packages",
        "web",
        "admin",
        "public",
    }
)

_SOURCE_SUFFIX: Final[re.Pattern[str]] = re.compile(r"\.(ts|tsx|js|jsx)$")
_APP_SEGMENT: Final[re.Pattern[str]] = re.compile(r"(?:^|/)apps/([^/]+)/")
_PACKAGE_SEGMENT: Final[re.Pattern[str]] = re.compile(r"(?:^|/)packages/[^/]+/")


def normalize_path(path: str) -> str:
    """Return ``path`` with forward slashes and no leading ``./``."""

    normalized = path.replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized


def extract_module_name(file_path: str) -> str:
    """Project a file path onto the module name used to group auxiliary metadata.

    Segments are scanned from the innermost directory outwards. Route groups
    such as ``(dashboard)`` yield their inner name, dynamic segments such as
    ``[locale]`` are skipped, and generic directories are ignored. When no
    directory qualifies the file stem is used.

    >>> extract_module_name("apps/web/lib/actions/members.ts")
    'members'
    >>> extract_module_name("apps/web/app/[locale]/(dashboard)/page.tsx")
    'dashboard'
    """

    segments = normalize_path(file_path).split("/")
    file_name = _SOURCE_SUFFIX.sub("", segments[-1])

    for directory in reversed(segments[:-1]):
        if directory.startswith("(") and directory.endswith(")"):
            return directory[1:-1]
        if directory.startswith("[") and directory.endswith("]"):
            continue
        if directory and directory.lower() not in _GENERIC_MODULE_DIRS:
            return directory

    return file_name


def infer_app_from_path(file_path: str) -> AppName:
    """Return the display name of the app or package owning ``file_path``."""

    normalized = normalize_path(file_path)
    match = _APP_SEGMENT.search(normalized)
    if match is not None:
        directory = match.group(1)
        return _APP_DISPLAY_NAMES.get(directory.lower(), directory[:1].upper() + directory[1:])
    if _PACKAGE_SEGMENT.search(normalized):
        return SHARED_APP
    return UNKNOWN_APP


def app_directory(file_path: str) -> str | None:
    """Return the leading ``apps/<name>`` directory of ``file_path`` if it has one."""

    match = re.match(r"^(apps/[^/]+)/", normalize_path(file_path))
    if match is None:
        return None
    return match.group(1)


def infer_action_type_from_path(file_path: str) -> ActionType | None:
    normalized = normalize_path(file_path)
    if "/actions/crud/" in normalized:
        return "CRUD"
    if "/actions/domain/" in normalized:
        return "Domain"
    return None


def extract_element_name_from_path(file_path: str) -> str:
    """``apps/web/components/user-card.tsx`` -> ``user-card``."""

    return _SOURCE_SUFFIX.sub("", PurePosixPath(normalize_path(file_path)).name)


def is_screen_file(file_path: str) -> bool:
    normalized = normalize_path(file_path)
    return "/app/" in normalized and normalized.endswith("/page.tsx")


def is_component_file(file_path: str) -> bool:
    normalized = normalize_path(file_path)
    return "/components/" in normalized and normalized.endswith(".tsx")


def is_action_file(file_path: str) -> bool:
    normalized = normalize_path(file_path)
    return "/actions/" in normalized and normalized.endswith(".ts")


def is_middleware_file(file_path: str) -> bool:
    normalized = normalize_path(file_path)
    return normalized.endswith("/middleware.ts") or normalized.endswith("/middleware.tsx")


def is_layout_file(file_path: str) -> bool:
    normalized = normalize_path(file_path)
    return "/app/" in normalized and normalized.endswith("/layout.tsx")


def owning_app_label(file_path: str) -> str:
    """Capitalized ``apps/<name>`` directory, or ``App`` outside any app."""

    match = _APP_SEGMENT.search(normalize_path(file_path))
    if match is None:
        return "App"
    directory = match.group(1)
    return directory[:1].upper() + directory[1:]


__all__ = [
    "SHARED_APP",
    "UNKNOWN_APP",
    "ActionType",
    "AppName",
    "app_directory",
    "extract_element_name_from_path",
    "extract_module_name",
    "infer_action_type_from_path",
    "infer_app_from_path",
    "is_action_file",
    "is_component_file",
    "is_layout_file",
    "is_middleware_file",
    "is_screen_file",
    "normalize_path",
    "owning_app_label",
]
