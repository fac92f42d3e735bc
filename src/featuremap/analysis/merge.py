"""
featuremap: reference merger.

File: src/featuremap/analysis/merge.py
Last updated: 2026-10-19

Purpose
- Fold inferred references from the analyzer into the declared relationships of the
  flat item list, in place.

Functional requirements
- Four passes, run in this order by ``run_merge_passes``:
  1. forward: screens and components take their own file's used components/actions;
  2. reverse: components, actions, and modules take the screens/components/actions
     (plus middleware and layouts for modules) whose files reference them;
  3. tables: actions' ``db_tables`` become ``used_in_actions`` on matching tables,
     compared trimmed and case-insensitively;
  4. modules: module-to-module links written on both sides in the same pass.
- Declared entries are never removed. Every list is an ordered set: existing entries
  keep their position and new entries are appended once, in encounter order.
- Each pass is idempotent.

Non-functional requirements
- Dangling names are carried through; nothing is cross-validated.
- Passes are sequential and single-threaded; no locking.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Final

import structlog

from featuremap.domain.models import FeatureMapItem, ItemType, ReferenceAnalysisResult
from featuremap.domain.paths import is_layout_file, is_middleware_file, owning_app_label

_SOURCE_SUFFIX: Final[re.Pattern[str]] = re.compile(r"\.tsx?$")
_FILE_IN_DIRECTORY: Final[re.Pattern[str]] = re.compile(r"/[^/]+\.tsx?$")


@dataclass(frozen=True, slots=True)
class MergeStats:
    """Number of relationship entries each pass appended."""

    forward: int = 0
    reverse: int = 0
    tables: int = 0
    modules: int = 0

    @property
    def total(self) -> int:
        return self.forward + self.reverse + self.tables + self.modules

    def to_dict(self) -> dict[str, int]:
        return {
            "forward": self.forward,
            "reverse": self.reverse,
            "tables": self.tables,
            "modules": self.modules,
            "total": self.total,
        }


def merge_arrays(existing: Iterable[str], inferred: Iterable[str]) -> list[str]:
    """Order-preserving union of ``existing`` followed by ``inferred``.

    >>> merge_arrays(["A", "B"], ["B", "C", "A"])
    ['A', 'B', 'C']
    """

    merged: list[str] = []
    seen: set[str] = set()
    for value in (*existing, *inferred):
        if value not in seen:
            seen.add(value)
            merged.append(value)
    return merged


def run_merge_passes(
    items: Sequence[FeatureMapItem],
    analysis: ReferenceAnalysisResult,
    *,
    logger: Any | None = None,
) -> MergeStats:
    """Run every merge pass in order and log how much each one contributed."""

    log = logger if logger is not None else structlog.get_logger(__name__)
    stats = MergeStats(
        forward=merge_forward_references(items, analysis),
        reverse=merge_reverse_references(items, analysis),
        tables=build_table_reverse_references(items),
        modules=build_module_references(items, analysis),
    )
    log.info("merge_passes_completed", items=len(items), **stats.to_dict())
    return stats


def merge_inferred_references(
    items: Sequence[FeatureMapItem], analysis: ReferenceAnalysisResult
) -> int:
    """Forward and reverse name-level merges."""

    return merge_forward_references(items, analysis) + merge_reverse_references(items, analysis)


def merge_forward_references(
    items: Sequence[FeatureMapItem], analysis: ReferenceAnalysisResult
) -> int:
    added = 0
    for item in items:
        if item.type not in (ItemType.SCREEN, ItemType.COMPONENT):
            continue
        usage = analysis.file_usages.get(item.path)
        if usage is None:
            continue
        added += _merge_into(item, "used_components", usage.used_components)
        added += _merge_into(item, "used_actions", usage.used_actions)
    return added


def merge_reverse_references(
    items: Sequence[FeatureMapItem], analysis: ReferenceAnalysisResult
) -> int:
    """Translate referencing file paths into the names of the items declared there."""

    reverse_refs = analysis.reverse_refs
    by_path = _index_by_path(items)
    added = 0

    for item in items:
        if item.type is ItemType.COMPONENT:
            referencing = reverse_refs.component_to_files.get(item.name, ())
        elif item.type is ItemType.ACTION:
            referencing = reverse_refs.action_to_files.get(item.name, ())
        else:
            continue

        screens: list[str] = []
        components: list[str] = []
        for file_path in referencing:
            for user in by_path.get(file_path, ()):
                if user.type is ItemType.SCREEN:
                    screens.append(user.name)
                elif user.type is ItemType.COMPONENT and user.name != item.name:
                    components.append(user.name)

        added += _merge_into(item, "used_in_screens", screens)
        added += _merge_into(item, "used_in_components", components)

    added += _merge_module_reverse_references(items, analysis, by_path)
    return added


def _merge_module_reverse_references(
    items: Sequence[FeatureMapItem],
    analysis: ReferenceAnalysisResult,
    by_path: Mapping[str, list[FeatureMapItem]],
) -> int:
    modules = [item for item in items if item.type is ItemType.MODULE]
    if not modules:
        return 0

    added = 0
    for module_path, referencing in analysis.reverse_refs.module_path_to_files.items():
        # A specifier naming a directory matches every module file inside it.
        directory_prefix = module_path.removesuffix(".ts") + "/"
        targets = [
            module
            for module in modules
            if module.path == module_path or module.path.startswith(directory_prefix)
        ]
        if not targets:
            continue

        screens: list[str] = []
        components: list[str] = []
        actions: list[str] = []
        middleware: list[str] = []
        layouts: list[str] = []
        for file_path in referencing:
            # Middleware and layouts carry no annotations, so they are named by app.
            if is_middleware_file(file_path):
                middleware.append(f"{owning_app_label(file_path)} Middleware")
                continue
            if is_layout_file(file_path):
                layouts.append(f"{owning_app_label(file_path)} Layout")
                continue
            for user in by_path.get(file_path, ()):
                if user.type is ItemType.SCREEN:
                    screens.append(user.name)
                elif user.type is ItemType.COMPONENT:
                    components.append(user.name)
                elif user.type is ItemType.ACTION:
                    actions.append(user.name)

        for module in targets:
            added += _merge_into(module, "used_in_screens", screens)
            added += _merge_into(module, "used_in_components", components)
            added += _merge_into(module, "used_in_actions", actions)
            added += _merge_into(module, "used_in_middleware", middleware)
            added += _merge_into(module, "used_in_layouts", layouts)
    return added


def build_table_reverse_references(items: Sequence[FeatureMapItem]) -> int:
    """Add each action to the ``used_in_actions`` of the tables it touches.

    Declared ``used_in_actions`` entries on tables are kept.
    """

    table_to_actions: dict[str, list[str]] = {}
    for item in items:
        if item.type is not ItemType.ACTION:
            continue
        for table_name in item.db_tables:
            table_to_actions.setdefault(_table_key(table_name), []).append(item.name)

    added = 0
    for item in items:
        if item.type is ItemType.TABLE:
            added += _merge_into(
                item, "used_in_actions", table_to_actions.get(_table_key(item.name), ())
            )
    return added


def build_module_references(
    items: Sequence[FeatureMapItem], analysis: ReferenceAnalysisResult
) -> int:
    """Link modules that import each other, writing both directions at once.

    Each imported path resolves by exact match, then the ``.tsx`` and ``index``
    variants, then as a directory import covering the modules directly inside it.
    """

    modules = [item for item in items if item.type is ItemType.MODULE]
    if not modules:
        return 0

    by_path: dict[str, list[FeatureMapItem]] = {}
    by_directory: dict[str, list[FeatureMapItem]] = {}
    for module in modules:
        by_path.setdefault(module.path, []).append(module)
        by_directory.setdefault(_FILE_IN_DIRECTORY.sub("", module.path), []).append(module)

    added = 0
    for file_path, usage in analysis.file_usages.items():
        for source in by_path.get(file_path, ()):
            for module_path in usage.used_module_paths:
                for target in _find_modules(module_path, by_path, by_directory):
                    if target is source or target.name == source.name:
                        continue
                    added += _merge_into(source, "used_modules", (target.name,))
                    added += _merge_into(target, "used_in_modules", (source.name,))
    return added


def _find_modules(
    module_path: str,
    by_path: Mapping[str, list[FeatureMapItem]],
    by_directory: Mapping[str, list[FeatureMapItem]],
) -> list[FeatureMapItem]:
    stem = _SOURCE_SUFFIX.sub("", module_path)
    for candidate in (module_path, f"{stem}.tsx", f"{stem}/index.ts", f"{stem}/index.tsx"):
        exact = by_path.get(candidate)
        if exact:
            return exact
    return by_directory.get(stem, [])


def _index_by_path(items: Iterable[FeatureMapItem]) -> dict[str, list[FeatureMapItem]]:
    index: dict[str, list[FeatureMapItem]] = {}
    for item in items:
        index.setdefault(item.path, []).append(item)
    return index


def _merge_into(item: FeatureMapItem, field_name: str, values: Iterable[str]) -> int:
    current: list[str] = getattr(item, field_name)
    merged = merge_arrays(current, values)
    if merged != current:
        setattr(item, field_name, merged)
    return len(merged) - len(current)


def _table_key(name: str) -> str:
    return name.strip().lower()


__all__ = [
    "MergeStats",
    "build_module_references",
    "build_table_reverse_references",
    "merge_arrays",
    "merge_forward_references",
    "merge_inferred_references",
    "merge_reverse_references",
    "run_merge_passes",
]
