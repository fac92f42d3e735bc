"""
featuremap: domain records for annotated entities and the feature map.

File: src/featuremap/domain/models.py
Last updated: 2026-10-19

Purpose
- Define the flat intermediate item record shared by the extractor, analyzer, and merger.
- Define the per-file usage record and reverse-reference index produced by the analyzer.
- Define the typed, grouped output shapes and their camelCase JSON projection.

Functional requirements
- Relationship lists default to empty lists, never ``None``.
- Serialization keeps the documented key order so regenerated output diffs cleanly.
- Referential integrity is not validated: a relationship entry naming an entity that
  does not exist is carried through unchanged.

Non-functional requirements
- No I/O; records are plain dataclasses.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import Any, Final, Literal

from featuremap.domain.paths import UNKNOWN_APP, ActionType, extract_module_name

JSONObject = dict[str, Any]


class ItemType(StrEnum):
    """Discriminator for every entity kind the feature map knows about."""

    SCREEN = "screen"
    COMPONENT = "component"
    ACTION = "action"
    MODULE = "module"
    TABLE = "table"


RELATIONSHIP_FIELDS: Final[tuple[str, ...]] = (
    "used_components",
    "used_actions",
    "used_in_screens",
    "used_in_components",
    "used_in_actions",
    "used_in_middleware",
    "used_in_layouts",
    "used_modules",
    "used_in_modules",
    "db_tables",
)


@dataclass(slots=True)
class FeatureMapItem:
    """One discovered entity with its declared and inferred relationships.

    ``path`` is the project-relative source path and is never rewritten after
    extraction. Relationship lists are ordered sets: insertion order is kept and
    an entry appears at most once.
    """

    type: ItemType
    name: str
    path: str
    feature: str | None = None
    app: str = UNKNOWN_APP
    route: str | None = None
    description: str | None = None
    action_type: ActionType | None = None
    category: str | None = None
    used_components: list[str] = field(default_factory=list)
    used_actions: list[str] = field(default_factory=list)
    used_in_screens: list[str] = field(default_factory=list)
    used_in_components: list[str] = field(default_factory=list)
    used_in_actions: list[str] = field(default_factory=list)
    used_in_middleware: list[str] = field(default_factory=list)
    used_in_layouts: list[str] = field(default_factory=list)
    used_modules: list[str] = field(default_factory=list)
    used_in_modules: list[str] = field(default_factory=list)
    db_tables: list[str] = field(default_factory=list)

    @property
    def module_name(self) -> str:
        return extract_module_name(self.path)

    @property
    def key(self) -> str:
        """Composite identity ``type/moduleName/name``."""

        return f"{self.type.value}/{self.module_name}/{self.name}"

    def relationships(self) -> dict[str, list[str]]:
        return {name: getattr(self, name) for name in RELATIONSHIP_FIELDS}


@dataclass(frozen=True, slots=True)
class FileUsage:
    """Verified usages found in one analyzed source file."""

    file_path: str
    used_components: tuple[str, ...] = ()
    used_actions: tuple[str, ...] = ()
    used_modules: tuple[str, ...] = ()
    used_module_paths: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.used_components or self.used_actions or self.used_modules)

    def to_dict(self) -> JSONObject:
        return {
            "filePath": self.file_path,
            "usedComponents": list(self.used_components),
            "usedActions": list(self.used_actions),
            "usedModules": list(self.used_modules),
            "usedModulePaths": list(self.used_module_paths),
        }


def _freeze_index(index: Mapping[str, list[str]] | None) -> Mapping[str, tuple[str, ...]]:
    frozen = {key: tuple(values) for key, values in (index or {}).items()}
    return MappingProxyType(frozen)


@dataclass(frozen=True, slots=True)
class ReverseReferenceMap:
    """Entity name or module path -> referencing files, in analysis order.

    Built once per analysis run and read-only afterwards. Lists are not
    deduplicated at this stage; the merger owns deduplication.
    """

    component_to_files: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    action_to_files: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    module_to_files: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    module_path_to_files: Mapping[str, tuple[str, ...]] = field(default_factory=dict)

    @classmethod
    def from_lists(
        cls,
        *,
        component_to_files: Mapping[str, list[str]] | None = None,
        action_to_files: Mapping[str, list[str]] | None = None,
        module_to_files: Mapping[str, list[str]] | None = None,
        module_path_to_files: Mapping[str, list[str]] | None = None,
    ) -> ReverseReferenceMap:
        return cls(
            component_to_files=_freeze_index(component_to_files),
            action_to_files=_freeze_index(action_to_files),
            module_to_files=_freeze_index(module_to_files),
            module_path_to_files=_freeze_index(module_path_to_files),
        )

    def to_dict(self) -> JSONObject:
        return {
            "componentToFiles": {k: list(v) for k, v in self.component_to_files.items()},
            "actionToFiles": {k: list(v) for k, v in self.action_to_files.items()},
            "moduleToFiles": {k: list(v) for k, v in self.module_to_files.items()},
            "modulePathToFiles": {k: list(v) for k, v in self.module_path_to_files.items()},
        }


@dataclass(frozen=True, slots=True)
class ReferenceAnalysisResult:
    file_usages: Mapping[str, FileUsage]
    reverse_refs: ReverseReferenceMap

    def to_dict(self) -> JSONObject:
        return {
            "fileUsages": {path: usage.to_dict() for path, usage in self.file_usages.items()},
            "reverseRefs": self.reverse_refs.to_dict(),
        }


# ---------------------------------------------------------------------------
# Auxiliary per-module metadata
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TypeField:
    name: str
    type: str
    description: str | None = None

    def to_dict(self) -> JSONObject:
        return _drop_none({"name": self.name, "type": self.type, "description": self.description})


@dataclass(frozen=True, slots=True)
class TypeItem:
    """An exported interface, type alias, or enum."""

    name: str
    kind: Literal["interface", "type", "enum"]
    description: str | None = None
    fields: tuple[TypeField, ...] | None = None
    values: tuple[str, ...] | None = None
    source_code: str | None = None

    def to_dict(self) -> JSONObject:
        return _drop_none(
            {
                "name": self.name,
                "kind": self.kind,
                "description": self.description,
                "fields": None if self.fields is None else [f.to_dict() for f in self.fields],
                "values": None if self.values is None else list(self.values),
                "sourceCode": self.source_code,
            }
        )


@dataclass(frozen=True, slots=True)
class UtilityParam:
    name: str
    type: str

    def to_dict(self) -> JSONObject:
        return {"name": self.name, "type": self.type}


@dataclass(frozen=True, slots=True)
class UtilityItem:
    """An exported constant or documented helper function."""

    name: str
    kind: Literal["constant", "function"]
    description: str | None = None
    type: str | None = None
    value: str | None = None
    params: tuple[UtilityParam, ...] | None = None

    def to_dict(self) -> JSONObject:
        return _drop_none(
            {
                "name": self.name,
                "kind": self.kind,
                "description": self.description,
                "type": self.type,
                "value": self.value,
                "params": None if self.params is None else [p.to_dict() for p in self.params],
            }
        )


# ---------------------------------------------------------------------------
# Typed output shapes
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ScreenItem:
    name: str
    path: str
    route: str | None
    description: str | None
    used_components: tuple[str, ...]
    used_actions: tuple[str, ...]
    app: str

    def to_dict(self) -> JSONObject:
        return _drop_none(
            {
                "name": self.name,
                "path": self.path,
                "route": self.route,
                "description": self.description,
                "usedComponents": list(self.used_components),
                "usedActions": list(self.used_actions),
                "app": self.app,
            }
        )


@dataclass(frozen=True, slots=True)
class ComponentItem:
    name: str
    path: str
    description: str | None
    used_in_screens: tuple[str, ...]
    used_in_components: tuple[str, ...]
    used_actions: tuple[str, ...]
    app: str

    def to_dict(self) -> JSONObject:
        return _drop_none(
            {
                "name": self.name,
                "path": self.path,
                "description": self.description,
                "usedInScreens": list(self.used_in_screens),
                "usedInComponents": list(self.used_in_components),
                "usedActions": list(self.used_actions),
                "app": self.app,
            }
        )


@dataclass(frozen=True, slots=True)
class ActionItem:
    name: str
    path: str
    description: str | None
    used_in_screens: tuple[str, ...]
    used_in_components: tuple[str, ...]
    db_tables: tuple[str, ...]
    app: str
    action_type: ActionType | None

    def to_dict(self) -> JSONObject:
        return _drop_none(
            {
                "name": self.name,
                "path": self.path,
                "description": self.description,
                "usedInScreens": list(self.used_in_screens),
                "usedInComponents": list(self.used_in_components),
                "dbTables": list(self.db_tables),
                "app": self.app,
                "actionType": self.action_type,
            }
        )


@dataclass(frozen=True, slots=True)
class ModuleItem:
    name: str
    path: str
    description: str | None
    used_in_screens: tuple[str, ...]
    used_in_components: tuple[str, ...]
    used_in_actions: tuple[str, ...]
    used_in_middleware: tuple[str, ...]
    used_in_layouts: tuple[str, ...]
    used_modules: tuple[str, ...]
    used_in_modules: tuple[str, ...]
    app: str
    category: str | None

    def to_dict(self) -> JSONObject:
        return _drop_none(
            {
                "name": self.name,
                "path": self.path,
                "description": self.description,
                "usedInScreens": list(self.used_in_screens),
                "usedInComponents": list(self.used_in_components),
                "usedInActions": list(self.used_in_actions),
                "usedInMiddleware": list(self.used_in_middleware),
                "usedInLayouts": list(self.used_in_layouts),
                "usedModules": list(self.used_modules),
                "usedInModules": list(self.used_in_modules),
                "app": self.app,
                "category": self.category,
            }
        )


@dataclass(frozen=True, slots=True)
class TableItem:
    name: str
    path: str
    description: str | None
    used_in_actions: tuple[str, ...]
    app: str

    def to_dict(self) -> JSONObject:
        return _drop_none(
            {
                "name": self.name,
                "path": self.path,
                "description": self.description,
                "usedInActions": list(self.used_in_actions),
                "app": self.app,
            }
        )


TypedItem = ScreenItem | ComponentItem | ActionItem | ModuleItem | TableItem


@dataclass(slots=True)
class FeatureGroup:
    screens: list[ScreenItem] = field(default_factory=list)
    components: list[ComponentItem] = field(default_factory=list)
    actions: list[ActionItem] = field(default_factory=list)
    modules: list[ModuleItem] = field(default_factory=list)
    tables: list[TableItem] = field(default_factory=list)

    def __len__(self) -> int:
        return (
            len(self.screens)
            + len(self.components)
            + len(self.actions)
            + len(self.modules)
            + len(self.tables)
        )

    def to_dict(self) -> JSONObject:
        return {
            "screens": [item.to_dict() for item in self.screens],
            "components": [item.to_dict() for item in self.components],
            "actions": [item.to_dict() for item in self.actions],
            "modules": [item.to_dict() for item in self.modules],
            "tables": [item.to_dict() for item in self.tables],
        }


@dataclass(frozen=True, slots=True)
class FeatureMap:
    """Final grouped output; ``generated_at`` is the only run-dependent field."""

    features: dict[str, FeatureGroup]
    uncategorized: FeatureGroup
    module_descriptions: dict[str, str]
    module_types: dict[str, list[TypeItem]]
    module_utilities: dict[str, list[UtilityItem]]
    apps: tuple[str, ...]
    generated_at: str

    def to_dict(self) -> JSONObject:
        return {
            "features": {name: group.to_dict() for name, group in self.features.items()},
            "uncategorized": self.uncategorized.to_dict(),
            "moduleDescriptions": dict(self.module_descriptions),
            "moduleTypes": {
                name: [item.to_dict() for item in items]
                for name, items in self.module_types.items()
            },
            "moduleUtilities": {
                name: [item.to_dict() for item in items]
                for name, items in self.module_utilities.items()
            },
            "apps": list(self.apps),
            "generatedAt": self.generated_at,
        }


def _drop_none(payload: JSONObject) -> JSONObject:
    return {key: value for key, value in payload.items() if value is not None}


__all__ = [
    "RELATIONSHIP_FIELDS",
    "ActionItem",
    "ComponentItem",
    "FeatureGroup",
    "FeatureMap",
    "FeatureMapItem",
    "FileUsage",
    "ItemType",
    "ModuleItem",
    "ReferenceAnalysisResult",
    "ReverseReferenceMap",
    "ScreenItem",
    "TableItem",
    "TypeField",
    "TypeItem",
    "TypedItem",
    "UtilityItem",
    "UtilityParam",
]
