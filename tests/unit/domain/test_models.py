"""
featuremap: unit tests for domain records

File: tests/unit/domain/test_models.py
Last updated: 2026-10-19

Purpose
- Validate item identity, relationship defaults, and camelCase JSON projection order.
"""

from __future__ import annotations

import json

from featuremap.domain.models import (
    RELATIONSHIP_FIELDS,
    ActionItem,
    FeatureGroup,
    FeatureMap,
    FeatureMapItem,
    FileUsage,
    ItemType,
    ReverseReferenceMap,
    ScreenItem,
    TypeField,
    TypeItem,
)


def test_item_defaults_and_key() -> None:
    item = FeatureMapItem(
        type=ItemType.COMPONENT,
        name="UserCard",
        path="apps/web/components/users/user-card.tsx",
    )

    assert item.app == "Unknown"
    assert item.module_name == "users"
    assert item.key == "component/users/UserCard"
    assert all(value == [] for value in item.relationships().values())
    assert tuple(item.relationships()) == RELATIONSHIP_FIELDS


def test_relationship_lists_are_not_shared_between_items() -> None:
    first = FeatureMapItem(type=ItemType.SCREEN, name="A", path="apps/web/app/a/page.tsx")
    second = FeatureMapItem(type=ItemType.SCREEN, name="B", path="apps/web/app/b/page.tsx")

    first.used_components.append("UserCard")

    assert second.used_components == []


def test_file_usage_emptiness_ignores_module_paths() -> None:
    usage = FileUsage(file_path="apps/web/app/page.tsx", used_module_paths=("apps/web/lib/x.ts",))
    assert usage.is_empty
    assert not FileUsage(file_path="a.tsx", used_actions=("getProjects",)).is_empty


def test_reverse_reference_map_is_read_only() -> None:
    source = {"UserCard": ["apps/web/app/page.tsx"]}
    refs = ReverseReferenceMap.from_lists(component_to_files=source)
    source["UserCard"].append("later.tsx")

    assert refs.component_to_files["UserCard"] == ("apps/web/app/page.tsx",)
    assert refs.to_dict()["componentToFiles"] == {"UserCard": ["apps/web/app/page.tsx"]}


def test_typed_items_omit_absent_optionals_and_keep_key_order() -> None:
    screen = ScreenItem(
        name="Dashboard",
        path="apps/web/app/page.tsx",
        route=None,
        description=None,
        used_components=("UserCard",),
        used_actions=(),
        app="Web",
    )
    action = ActionItem(
        name="getProjects",
        path="apps/web/lib/actions/crud/projects.ts",
        description="Loads projects",
        used_in_screens=("Dashboard",),
        used_in_components=(),
        db_tables=("projects",),
        app="Web",
        action_type="CRUD",
    )

    assert list(screen.to_dict()) == ["name", "path", "usedComponents", "usedActions", "app"]
    assert list(action.to_dict()) == [
        "name",
        "path",
        "description",
        "usedInScreens",
        "usedInComponents",
        "dbTables",
        "app",
        "actionType",
    ]


def test_type_item_projection() -> None:
    item = TypeItem(
        name="Role",
        kind="interface",
        fields=(TypeField(name="id", type="string"), TypeField("label", "string", "Shown")),
    )

    assert item.to_dict() == {
        "name": "Role",
        "kind": "interface",
        "fields": [
            {"name": "id", "type": "string"},
            {"name": "label", "type": "string", "description": "Shown"},
        ],
    }


def test_feature_map_serializes_to_json() -> None:
    group = FeatureGroup()
    feature_map = FeatureMap(
        features={"Billing": group},
        uncategorized=FeatureGroup(),
        module_descriptions={"billing": "Invoices"},
        module_types={},
        module_utilities={},
        apps=("Web",),
        generated_at="2026-10-19T00:00:00.000Z",
    )

    payload = json.loads(json.dumps(feature_map.to_dict()))

    assert list(payload) == [
        "features",
        "uncategorized",
        "moduleDescriptions",
        "moduleTypes",
        "moduleUtilities",
        "apps",
        "generatedAt",
    ]
    assert payload["features"]["Billing"] == {
        "screens": [],
        "components": [],
        "actions": [],
        "modules": [],
        "tables": [],
    }
    assert len(group) == 0
