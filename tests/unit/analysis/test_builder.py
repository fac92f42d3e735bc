"""
featuremap: unit tests for the feature-map builder

File: tests/unit/analysis/test_builder.py
Last updated: 2026-10-19

Purpose
- Validate typed projection, feature grouping, app collection, and timestamp formatting.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

from hypothesis import given, settings
from hypothesis import strategies as st

from featuremap.analysis.builder import add_to_group, build_feature_map, convert_item
from featuremap.domain.models import (
    ActionItem,
    FeatureGroup,
    FeatureMapItem,
    ItemType,
    ModuleItem,
    TableItem,
    TypeItem,
    UtilityItem,
)

FIXED = datetime(2026, 10, 19, 8, 30, 15, 123456, tzinfo=UTC)


def _fixed_clock() -> datetime:
    return FIXED


def test_items_are_grouped_by_feature() -> None:
    items = [
        FeatureMapItem(
            type=ItemType.SCREEN,
            name="Dashboard",
            path="apps/web/app/page.tsx",
            feature="Projects",
            app="Web",
        ),
        FeatureMapItem(
            type=ItemType.ACTION,
            name="getProjects",
            path="apps/web/lib/actions/crud/projects.ts",
            feature="Projects",
            app="Web",
        ),
        FeatureMapItem(
            type=ItemType.TABLE,
            name="users",
            path="packages/db/src/schema/users.ts",
            app="Shared",
        ),
        FeatureMapItem(type=ItemType.COMPONENT, name="Loose", path="scripts/loose.tsx", feature=""),
    ]

    feature_map = build_feature_map(items, now=_fixed_clock)

    assert list(feature_map.features) == ["Projects"]
    projects = feature_map.features["Projects"]
    assert [screen.name for screen in projects.screens] == ["Dashboard"]
    assert [action.name for action in projects.actions] == ["getProjects"]
    assert [table.name for table in feature_map.uncategorized.tables] == ["users"]
    assert [c.name for c in feature_map.uncategorized.components] == ["Loose"]
    assert feature_map.apps == ("Shared", "Web")
    assert feature_map.generated_at == "2026-10-19T08:30:15.123Z"


def test_convert_item_copies_only_relevant_fields() -> None:
    item = FeatureMapItem(
        type=ItemType.ACTION,
        name="getProjects",
        path="apps/web/lib/actions/crud/projects.ts",
        app="Web",
        action_type="CRUD",
        used_in_screens=["Dashboard"],
        db_tables=["projects"],
        used_components=["Ignored"],
    )

    converted = convert_item(item)

    assert isinstance(converted, ActionItem)
    assert converted.used_in_screens == ("Dashboard",)
    assert converted.db_tables == ("projects",)
    assert "usedComponents" not in converted.to_dict()
    assert converted.to_dict()["actionType"] == "CRUD"


def test_module_and_table_projection() -> None:
    module = convert_item(
        FeatureMapItem(
            type=ItemType.MODULE,
            name="auth-client",
            path="apps/web/lib/auth/client.ts",
            category="auth",
            used_in_middleware=["Web Middleware"],
        )
    )
    table = convert_item(
        FeatureMapItem(type=ItemType.TABLE, name="users", path="packages/db/src/schema/users.ts")
    )

    assert isinstance(module, ModuleItem)
    assert module.category == "auth"
    assert module.used_in_middleware == ("Web Middleware",)
    assert isinstance(table, TableItem)

    group = FeatureGroup()
    add_to_group(group, module)
    add_to_group(group, table)
    assert (len(group.modules), len(group.tables), len(group)) == (1, 1, 2)


def test_auxiliary_maps_are_sorted_and_copied() -> None:
    types = {
        "zeta": [TypeItem(name="Z", kind="type")],
        "alpha": (TypeItem(name="A", kind="enum"),),
    }
    utilities = {"mid": [UtilityItem(name="LIMIT", kind="constant", value="10")]}

    feature_map = build_feature_map(
        [],
        {"b": "Second", "a": "First"},
        types,
        utilities,
        now=_fixed_clock,
    )

    assert list(feature_map.module_descriptions) == ["a", "b"]
    assert list(feature_map.module_types) == ["alpha", "zeta"]
    assert feature_map.module_types["alpha"] == [TypeItem(name="A", kind="enum")]
    assert feature_map.module_utilities["mid"][0].name == "LIMIT"
    assert feature_map.apps == ()


def test_timestamp_normalizes_to_utc() -> None:
    offset = timezone(timedelta(hours=2))
    local = datetime(2026, 1, 2, 12, 0, 0, tzinfo=offset)
    naive = datetime(2026, 1, 2, 10, 0, 0)

    assert build_feature_map([], now=lambda: local).generated_at == "2026-01-02T10:00:00.000Z"
    assert build_feature_map([], now=lambda: naive).generated_at == "2026-01-02T10:00:00.000Z"
    assert build_feature_map([]).generated_at.endswith("Z")


_ITEMS = st.lists(
    st.builds(
        FeatureMapItem,
        type=st.sampled_from(list(ItemType)),
        name=st.sampled_from(["A", "B", "C"]),
        path=st.sampled_from(["apps/web/app/page.tsx", "apps/admin/lib/x.ts", "scripts/y.ts"]),
        feature=st.one_of(st.none(), st.sampled_from(["", "Billing", "Projects"])),
        app=st.sampled_from(["Web", "Admin", "Unknown"]),
    ),
    max_size=12,
)


@settings(max_examples=30, derandomize=True, deadline=None)
@given(items=_ITEMS)
def test_every_item_lands_in_exactly_one_group(items: list[FeatureMapItem]) -> None:
    feature_map = build_feature_map(items, now=_fixed_clock)

    groups = [*feature_map.features.values(), feature_map.uncategorized]
    assert sum(len(group) for group in groups) == len(items)
    assert all(name for name in feature_map.features)
    assert "Unknown" not in feature_map.apps
    assert list(feature_map.apps) == sorted(set(feature_map.apps))
