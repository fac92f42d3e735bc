"""
featuremap: annotation extractor.

File: src/featuremap/parsing/annotations.py
Last updated: 2026-10-19

Purpose
- Turn one file's text into declared ``FeatureMapItem`` drafts plus per-module metadata.

Functional requirements
- The file header (text before the first import, export, or declaration) carries
  file-wide metadata inherited by every item of that file.
- A header block tagged ``@screen``/``@component``/``@module``/``@serverAction``/``@dbTable``
  declares an item for the whole file.
- Component files without an explicit entity tag are auto-detected from their
  first exported PascalCase declaration.
- Every block after the header is parsed independently, so one file may declare
  several entities of different types.
- Malformed or missing tags are treated as absent; arbitrary text never raises.

Non-functional requirements
- Pure text processing: no AST, no filesystem access.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Final

from featuremap.domain.models import FeatureMapItem, ItemType, TypeItem, UtilityItem
from featuremap.domain.paths import (
    extract_module_name,
    infer_action_type_from_path,
    infer_app_from_path,
    is_component_file,
    normalize_path,
)
from featuremap.parsing.jsdoc import (
    extract_description,
    extract_exported_component_name,
    extract_item_name,
    extract_tags,
    find_code_start_index,
    first_jsdoc_block,
    iter_jsdoc_blocks,
    parse_comma_separated_list,
)
from featuremap.parsing.type_extraction import extract_exported_types, extract_exported_utilities

_LIB_MODULE_PATH: Final[re.Pattern[str]] = re.compile(r"lib/(\w+)/(\w+)\.ts$")
_SOURCE_SUFFIX: Final[re.Pattern[str]] = re.compile(r"\.tsx?$")


@dataclass(frozen=True, slots=True)
class FileMetadata:
    """File-wide annotations read from the header block."""

    feature: str | None = None
    used_in_screens: tuple[str, ...] = ()
    used_in_components: tuple[str, ...] = ()
    db_tables: tuple[str, ...] = ()
    module_description: str | None = None
    module_name: str | None = None


@dataclass(frozen=True, slots=True)
class ExtractionResult:
    path: str
    items: list[FeatureMapItem] = field(default_factory=list)
    metadata: FileMetadata = field(default_factory=FileMetadata)
    types: list[TypeItem] = field(default_factory=list)
    utilities: list[UtilityItem] = field(default_factory=list)

    @property
    def module_name(self) -> str:
        """Grouping key for this file's auxiliary metadata."""

        return extract_module_name(self.path)


def extract_annotations(content: str, file_path: str) -> ExtractionResult:
    """Extract declared entities and auxiliary metadata from one source file."""

    path = normalize_path(file_path)
    code_start = find_code_start_index(content)
    header = content[:code_start]
    metadata = extract_file_metadata(header)
    items: list[FeatureMapItem] = []

    header_block = first_jsdoc_block(header)
    if header_block is not None:
        header_tags = extract_tags(header_block.text)
        if _declares_entity(header_tags):
            header_name = None
            if "serverAction" in header_tags or "dbTable" in header_tags:
                header_name = extract_item_name(content[header_block.end :])
            item = parse_jsdoc_block(header_block.text, path, header_name, metadata)
            if item is not None:
                items.append(item)
        elif is_component_file(path):
            component_name = extract_exported_component_name(content)
            if component_name is not None:
                items.append(
                    FeatureMapItem(
                        type=ItemType.COMPONENT,
                        name=component_name,
                        path=path,
                        feature=metadata.feature,
                        app=infer_app_from_path(path),
                        description=extract_description(header_block.text),
                        used_in_screens=list(metadata.used_in_screens),
                        used_components=parse_comma_separated_list(
                            header_tags.get("usedComponents")
                        ),
                        used_actions=parse_comma_separated_list(header_tags.get("usedActions")),
                    )
                )
    elif is_component_file(path):
        component_name = extract_exported_component_name(content)
        if component_name is not None:
            items.append(
                FeatureMapItem(
                    type=ItemType.COMPONENT,
                    name=component_name,
                    path=path,
                    app=infer_app_from_path(path),
                )
            )

    for block in iter_jsdoc_blocks(content):
        if block.start < code_start:
            continue
        default_name = extract_item_name(content[block.end :])
        item = parse_jsdoc_block(block.text, path, default_name, metadata)
        if item is not None:
            items.append(item)

    return ExtractionResult(
        path=path,
        items=items,
        metadata=metadata,
        types=extract_exported_types(content),
        utilities=extract_exported_utilities(content),
    )


def extract_file_metadata(header: str) -> FileMetadata:
    block = first_jsdoc_block(header)
    if block is None:
        return FileMetadata()

    tags = extract_tags(block.text)
    return FileMetadata(
        feature=tags.get("feature"),
        used_in_screens=tuple(parse_comma_separated_list(tags.get("usedInScreen"))),
        # At file level the plural tag lists the components that use this file.
        used_in_components=tuple(parse_comma_separated_list(tags.get("usedComponents"))),
        db_tables=tuple(parse_comma_separated_list(tags.get("dbTables"))),
        module_description=tags.get("description") or extract_description(block.text),
        module_name=tags.get("module"),
    )


def parse_jsdoc_block(
    block: str,
    file_path: str,
    default_name: str | None,
    metadata: FileMetadata,
) -> FeatureMapItem | None:
    """Build an item from one block, or ``None`` when it declares no entity.

    Type priority is screen, component, server action, module, then table.
    """

    tags = extract_tags(block)
    item_type: ItemType | None = None
    name = default_name

    if tags.get("screen"):
        item_type, name = ItemType.SCREEN, tags["screen"]
    elif tags.get("component"):
        item_type, name = ItemType.COMPONENT, tags["component"]
    elif "serverAction" in tags:
        item_type = ItemType.ACTION
    elif tags.get("module"):
        item_type = ItemType.MODULE
        name = _module_item_name(file_path, default_name)
    elif tags.get("dbTable"):
        item_type, name = ItemType.TABLE, tags["dbTable"]

    if item_type is None or not name:
        return None

    item = FeatureMapItem(
        type=item_type,
        name=name,
        path=file_path,
        feature=tags.get("feature") or metadata.feature,
        app=infer_app_from_path(file_path),
        description=extract_description(block),
    )

    if item_type is ItemType.SCREEN:
        item.route = tags.get("route")
        item.used_components = parse_comma_separated_list(tags.get("usedComponents"))
        item.used_actions = parse_comma_separated_list(tags.get("usedActions"))
    elif item_type is ItemType.COMPONENT:
        item.used_in_screens = parse_comma_separated_list(tags.get("usedInScreen"))
        item.used_actions = parse_comma_separated_list(tags.get("usedActions"))
    elif item_type is ItemType.ACTION:
        item.used_in_screens = parse_comma_separated_list(tags.get("usedInScreen")) or list(
            metadata.used_in_screens
        )
        item.used_in_components = parse_comma_separated_list(
            tags.get("usedInComponent")
        ) or list(metadata.used_in_components)
        item.db_tables = parse_comma_separated_list(tags.get("dbTables")) or list(
            metadata.db_tables
        )
        item.action_type = infer_action_type_from_path(file_path)
    elif item_type is ItemType.MODULE:
        item.category = tags["module"]
        item.used_in_screens = parse_comma_separated_list(tags.get("usedInScreen"))
        item.used_in_actions = parse_comma_separated_list(tags.get("usedInActions"))
    else:
        item.used_in_actions = parse_comma_separated_list(tags.get("usedInActions"))

    return item


def _declares_entity(tags: dict[str, str]) -> bool:
    return bool(
        tags.get("screen")
        or tags.get("component")
        or tags.get("module")
        or tags.get("dbTable")
        or "serverAction" in tags
    )


def _module_item_name(file_path: str, default_name: str | None) -> str:
    if default_name:
        return default_name.replace("/", "-")
    match = _LIB_MODULE_PATH.search(file_path)
    if match is not None:
        return f"{match.group(1)}-{match.group(2)}"
    stem = _SOURCE_SUFFIX.sub("", PurePosixPath(file_path).name)
    return stem or "unknown"


__all__ = [
    "ExtractionResult",
    "FileMetadata",
    "extract_annotations",
    "extract_file_metadata",
    "parse_jsdoc_block",
]
