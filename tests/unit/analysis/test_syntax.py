"""
featuremap: unit tests for the syntax-tree facade

File: tests/unit/analysis/test_syntax.py
Last updated: 2026-10-19

Purpose
- Validate import reading, JSX usage, and call detection over real parsed trees.
- Validate compiler-config loading and its failure modes.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from featuremap.analysis.syntax import (
    DEFAULT_ALIAS_PREFIX,
    ImportBinding,
    ImportDeclaration,
    ProjectLoadError,
    SourceProject,
)

PAGE_SOURCE = """import React from "react";
import { UserCard, Avatar as Face } from "@/components/user-card";
import Sidebar from "../components/sidebar";
import { getProjects, deleteProject } from "@/lib/actions/crud/projects";
import type { Project } from "@/lib/types";

export default async function Page() {
  const projects = await getProjects();
  return (
    <Layout.Root>
      <UserCard user={projects[0]} />
      <Face />
    </Layout.Root>
  );
}
"""


def _write(path: Path, contents: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(contents, encoding="utf-8")


def test_import_declarations_in_source_order(tmp_path: Path) -> None:
    _write(tmp_path / "apps/web/app/page.tsx", PAGE_SOURCE)

    with SourceProject(tmp_path) as project:
        source = project.add_source_file("apps/web/app/page.tsx")
        assert source is not None
        declarations = source.import_declarations()

    assert [d.module_specifier for d in declarations] == [
        "react",
        "@/components/user-card",
        "../components/sidebar",
        "@/lib/actions/crud/projects",
        "@/lib/types",
    ]
    assert declarations[0] == ImportDeclaration(module_specifier="react", default_import="React")
    assert declarations[1].named_imports == (
        ImportBinding(name="UserCard", local_name="UserCard"),
        ImportBinding(name="Avatar", local_name="Face"),
    )
    assert declarations[2].default_import == "Sidebar"
    assert [b.name for b in declarations[4].named_imports] == ["Project"]


def test_jsx_and_call_usage(tmp_path: Path) -> None:
    _write(tmp_path / "apps/web/app/page.tsx", PAGE_SOURCE)

    with SourceProject(tmp_path) as project:
        source = project.add_source_file(tmp_path.resolve() / "apps/web/app/page.tsx")
        assert source is not None
        assert source.relative_path == "apps/web/app/page.tsx"

        assert source.is_used_as_jsx_element("UserCard")
        assert source.is_used_as_jsx_element("Face")
        assert source.is_used_as_jsx_element("Layout")
        assert not source.is_used_as_jsx_element("Sidebar")
        assert not source.is_used_as_jsx_element("Avatar")

        assert source.is_called_as_function("getProjects")
        assert not source.is_called_as_function("deleteProject")


def test_call_forms(tmp_path: Path) -> None:
    _write(
        tmp_path / "apps/web/lib/run.ts",
        "export function run() {\n"
        "  const bound = save.bind(null, 1);\n"
        "  load()();\n"
        "  return remove;\n"
        "}\n",
    )

    with SourceProject(tmp_path) as project:
        source = project.add_source_file("apps/web/lib/run.ts")
        assert source is not None
        assert source.is_called_as_function("save")
        assert source.is_called_as_function("load")
        assert not source.is_called_as_function("remove")


@pytest.mark.parametrize("suffix", [".ts", ".tsx"])
def test_awaited_generic_and_optional_calls(tmp_path: Path, suffix: str) -> None:
    _write(
        tmp_path / f"apps/web/lib/flow{suffix}",
        "export async function flow() {\n"
        "  const value = await load<string>();\n"
        "  await save(value);\n"
        "  drop?.();\n"
        "  return noop;\n"
        "}\n",
    )

    with SourceProject(tmp_path) as project:
        source = project.add_source_file(f"apps/web/lib/flow{suffix}")
        assert source is not None
        assert source.is_called_as_function("load")
        assert source.is_called_as_function("save")
        assert source.is_called_as_function("drop")
        assert not source.is_called_as_function("noop")


def test_missing_target_is_skipped(tmp_path: Path) -> None:
    with SourceProject(tmp_path) as project:
        assert project.add_source_file("apps/web/app/missing.tsx") is None
        assert project.add_source_files(["nope.ts"]) == []
        assert project.source_files == ()


def test_non_utf8_target_is_skipped(tmp_path: Path) -> None:
    (tmp_path / "apps/web/lib").mkdir(parents=True)
    (tmp_path / "apps/web/lib/latin1.ts").write_bytes(b"export const caf\xe9 = save();\n")

    with SourceProject(tmp_path) as project:
        assert project.add_source_file("apps/web/lib/latin1.ts") is None
        assert project.source_files == ()


def test_close_releases_trees(tmp_path: Path) -> None:
    _write(tmp_path / "a.ts", "export const a = 1;\n")
    project = SourceProject(tmp_path)
    source = project.add_source_file("a.ts")
    assert source is not None
    project.close()

    assert project.source_files == ()
    with pytest.raises(RuntimeError):
        source.import_declarations()
    with pytest.raises(RuntimeError):
        project.add_source_file("a.ts")


def test_tsconfig_paths_extend_alias_prefixes(tmp_path: Path) -> None:
    _write(
        tmp_path / "tsconfig.json",
        """{
  // comments and trailing commas are accepted
  "compilerOptions": {
    "baseUrl": ".",
    "paths": { "@/*": ["./src/*"], "~/*": ["./src/*"], "exact": ["x"], },
  },
}
""",
    )

    with SourceProject(tmp_path) as project:
        assert project.compiler_options["baseUrl"] == "."
        assert project.alias_prefixes == (DEFAULT_ALIAS_PREFIX, "~/")
        assert project.is_alias_specifier("~/lib/x")
        assert not project.is_alias_specifier("react")


def test_tsconfig_strings_keep_comma_bracket_text(tmp_path: Path) -> None:
    _write(
        tmp_path / "tsconfig.json",
        """{
  "compilerOptions": {
    "outDir": "dist,]",
    "rootDir": "src ,}",
    "types": ["node", /* trailing */ ],
  },
}
""",
    )

    with SourceProject(tmp_path) as project:
        assert project.compiler_options["outDir"] == "dist,]"
        assert project.compiler_options["rootDir"] == "src ,}"
        assert project.compiler_options["types"] == ["node"]


def test_missing_default_tsconfig_is_tolerated(tmp_path: Path) -> None:
    with SourceProject(tmp_path) as project:
        assert project.compiler_options == {}
        assert project.alias_prefixes == (DEFAULT_ALIAS_PREFIX,)


def test_missing_explicit_tsconfig_raises(tmp_path: Path) -> None:
    with pytest.raises(ProjectLoadError, match="tsconfig not found"):
        SourceProject(tmp_path, "tsconfig.app.json")


def test_malformed_tsconfig_raises(tmp_path: Path) -> None:
    _write(tmp_path / "tsconfig.json", "{ not json")
    with pytest.raises(ProjectLoadError, match="invalid tsconfig"):
        SourceProject(tmp_path)
