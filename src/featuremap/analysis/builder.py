"""
featuremap: feature-map builder.

File: src/featuremap/analysis/builder.py
Last updated: 2026-10-19

Purpose
- Project merged flat items onto their typed shapes and group them by feature.

Functional requirements
- Items with a non-empty ``feature`` land in that feature's group; all others land in
  ``uncategorized``. Every item appears exactly once.
- ``apps`` is the sorted, de-duplicated set of item apps without ``Unknown``.
- Auxiliary module maps are copied into plain dicts ordered by module name.
- ``generated_at`` is the only run-dependent value (UTC, millisecond precision, ``Z``).

Non-functional requirements
- No I/O; the clock is injectable for deterministic output.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from datetime import UTC, datetime
from typing import TypeVar

from featuremap.domain.models import (
    ActionItem,
    ComponentItem,
    FeatureGroup,
    FeatureMap,
    FeatureMapItem,
    ItemType,
    ModuleItem,
    ScreenItem,
    TableItem,
    TypedItem,
    TypeItem,
    UtilityItem,
)
from featuremap.domain.paths import UNKNOWN_APP

_V = TypeVar("_V")

Clock = Callable[[], datetime]


def build_feature_map(
    items: Sequence[FeatureMapItem],
    module_descriptions: Mapping[str, str] | None = None,
    module_types: Mapping[str, Iterable[TypeItem]] | None = None,
    module_utilities: Mapping[str, Iterable[UtilityItem]] | None = None,
    *,
    now: Clock | None = None,
) -> FeatureMap:
    features: dict[str, FeatureGroup] = {}
    uncategorized = FeatureGroup()
    apps: set[str] = set()

    for item in items:
        if item.app and item.app != UNKNOWN_APP:
            apps.add(item.app)
        if item.feature:
            group = features.setdefault(item.feature, FeatureGroup())
        else:
            group = uncategorized
        add_to_group(group, convert_item(item))

    descriptions = module_descriptions or {}
    clock = now if now is not None else _utc_now
    return FeatureMap(
        features=features,
        uncategorized=uncategorized,
        module_descriptions={name: descriptions[name] for name in sorted(descriptions)},
        module_types=_sorted_lists(module_types),
        module_utilities=_sorted_lists(module_utilities),
        apps=tuple(sorted(apps)),
        generated_at=_iso8601z(clock()),
    )


def convert_item(item: FeatureMapItem) -> TypedItem:
    """Copy only the fields relevant to ``item.type`` into its typed shape."""

    if item.type is ItemType.SCREEN:
        return ScreenItem(
            name=item.name,
            path=item.path,
            route=item.route,
            description=item.description,
            used_components=tuple(item.used_components),
            used_actions=tuple(item.used_actions),
            app=item.app,
        )
    if item.type is ItemType.COMPONENT:
        return ComponentItem(
            name=item.name,
            path=item.path,
            description=item.description,
            used_in_screens=tuple(item.used_in_screens),
            used_in_components=tuple(item.used_in_components),
            used_actions=tuple(item.used_actions),
            app=item.app,
        )
    if item.type is ItemType.ACTION:
        return ActionItem(
            name=item.name,
            path=item.path,
            description=item.description,
            used_in_screens=tuple(item.used_in_screens),
            used_in_components=tuple(item.used_in_components),
            db_tables=tuple(item.db_tables),
            app=item.app,
            action_type=item.action_type,
        )
    if item.type is ItemType.MODULE:
        return ModuleItem(
            name=item.name,
            path=item.path,
            description=item.description,
            used_in_screens=tuple(item.used_in_screens),
            used_in_components=tuple(item.used_in_components),
            used_in_actions=tuple(item.used_in_actions),
            used_in_middleware=tuple(item.used_in_middleware),
            used_in_layouts=tuple(item.used_in_layouts),
            used_modules=tuple(item.used_modules),
            used_in_modules=tuple(item.used_in_modules),
            app=item.app,
            category=item.category,
        )
    return TableItem(
        name=item.name,
        path=item.path,
        description=item.description,
        used_in_actions=tuple(item.used_in_actions),
        app=item.app,
    )


def add_to_group(group: FeatureGroup, converted: TypedItem) -> None:
    if isinstance(converted, ScreenItem):
        group.screens.append(converted)
    elif isinstance(converted, ComponentItem):
        group.components.append(converted)
    elif isinstance(converted, ActionItem):
        group.actions.append(converted)
    elif isinstance(converted, ModuleItem):
        group.modules.append(converted)
    else:
        group.tables.append(converted)


def _sorted_lists(mapping: Mapping[str, Iterable[_V]] | None) -> dict[str, list[_V]]:
    if not mapping:
        return {}
    return {key: list(mapping[key]) for key in sorted(mapping)}


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _iso8601z(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


__all__ = ["Clock", "add_to_group", "build_feature_map", "convert_item"]
