"""
featuremap: domain layer.

File: src/featuremap/domain/__init__.py
Last updated: 2026-10-19

Purpose
- Entity records, analysis records, and output shapes shared by every stage.
- Pure path projections used to name modules and infer owning apps.

Non-functional requirements
- Domain layer stays free of I/O and third-party imports.
"""

from featuremap.domain.models import (
    RELATIONSHIP_FIELDS,
    ActionItem,
    ComponentItem,
    FeatureGroup,
    FeatureMap,
    FeatureMapItem,
    FileUsage,
    ItemType,
    ModuleItem,
    ReferenceAnalysisResult,
    ReverseReferenceMap,
    ScreenItem,
    TableItem,
    TypeField,
    TypeItem,
    UtilityItem,
    UtilityParam,
)

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
    "UtilityItem",
    "UtilityParam",
]
