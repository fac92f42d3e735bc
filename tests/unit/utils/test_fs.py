"""
featuremap: unit tests for filesystem utilities

File: tests/unit/utils/test_fs.py
Last updated: 2026-10-19

Purpose
- Validate glob matching, source collection, and atomic writes.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from featuremap.utils.fs import atomic_write, collect_files, matches_any


def _touch(root: Path, relative: str) -> None:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("export {};\n", encoding="utf-8")


@pytest.mark.parametrize(
    ("path", "pattern", "expected"),
    [
        ("apps/web/app/page.tsx", "apps/**/*.tsx", True),
        ("apps/page.tsx", "apps/**/*.tsx", True),
        ("apps/web/app/page.ts", "apps/**/*.tsx", False),
        ("apps/web/page.tsx", "apps/*/page.tsx", True),
        ("apps/web/app/page.tsx", "apps/*/page.tsx", False),
        ("apps/web/a.ts", "apps/web/?.ts", True),
        ("apps/web/ab.ts", "apps/web/?.ts", False),
        ("packages/ui/src/x.test.ts", "**/*.test.ts", True),
        ("x.test.ts", "**/*.test.ts", True),
        ("apps/web/dist/main.js", "**/dist/**", True),
        ("apps/web/file[1].ts", "apps/web/file[1].ts", True),
    ],
)
def test_glob_semantics(path: str, pattern: str, expected: bool) -> None:
    assert matches_any(path, [pattern]) is expected


def test_matches_any_with_no_patterns() -> None:
    assert not matches_any("apps/web/page.tsx", [])


def test_collect_files_filters_sorts_and_prunes(tmp_path: Path) -> None:
    for relative in (
        "apps/web/app/page.tsx",
        "apps/web/app/page.test.tsx",
        "apps/admin/lib/auth.ts",
        "apps/web/node_modules/pkg/index.ts",
        ".git/hooks/x.ts",
        "packages/db/src/schema/users.ts",
        "README.md",
    ):
        _touch(tmp_path, relative)

    collected = collect_files(
        tmp_path,
        include=["apps/**/*.ts", "apps/**/*.tsx", "**/*.ts"],
        exclude=["**/*.test.tsx"],
    )

    assert collected == [
        "apps/admin/lib/auth.ts",
        "apps/web/app/page.tsx",
        "packages/db/src/schema/users.ts",
    ]


def test_collect_files_on_empty_root(tmp_path: Path) -> None:
    assert collect_files(tmp_path, include=["**/*.ts"]) == []


def test_atomic_write_replaces_content(tmp_path: Path) -> None:
    target = tmp_path / "feature-map.json"
    target.write_text("old", encoding="utf-8")

    atomic_write(target, '{"ok": true}\n')
    atomic_write(tmp_path / "raw.bin", b"\x00\x01")

    assert target.read_text(encoding="utf-8") == '{"ok": true}\n'
    assert (tmp_path / "raw.bin").read_bytes() == b"\x00\x01"
    assert sorted(os.listdir(tmp_path)) == ["feature-map.json", "raw.bin"]


def test_atomic_write_requires_existing_parent(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        atomic_write(tmp_path / "missing" / "out.json", "{}")


def test_atomic_write_cleans_temp_file_on_failure(tmp_path: Path) -> None:
    target = tmp_path / "occupied"
    target.mkdir()

    with pytest.raises(OSError):
        atomic_write(target, "data")

    assert os.listdir(tmp_path) == ["occupied"]
