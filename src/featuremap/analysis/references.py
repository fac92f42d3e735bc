"""
featuremap: reference analyzer.

File: src/featuremap/analysis/references.py
Last updated: 2026-10-19

Purpose
- Recover Screen/Component -> Component, Screen/Component -> Action, and
  file -> Module relationships from import declarations and usage sites.
- Invert per-file usages into a reverse-reference index for the merger.

Functional requirements
- Only relative (``.``) and alias-rooted specifiers are candidates; bare packages are skipped.
- Import categorization checks component, then action, then module patterns; the
  first matching category wins.
- Importing is not usage: components must be rendered as JSX tags and actions must
  be called. Module imports count on import alone and also record the resolved
  module file path.
- Files without any component, action, or module usage are left out of the result.
- The reverse index is built in one pass, without deduplication, in analysis order.

Non-functional requirements
- Analysis runs sequentially in lexicographic path order so output is diffable.
- Parsed trees are released before returning.
"""

from __future__ import annotations

import posixpath
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final

import structlog

from featuremap.analysis.syntax import DEFAULT_ALIAS_PREFIX, SourceProject
from featuremap.constants import (
    DEFAULT_ACTION_PATTERNS,
    DEFAULT_COMPONENT_PATTERNS,
    DEFAULT_MODULE_PATTERNS,
)
from featuremap.domain.models import FileUsage, ReferenceAnalysisResult, ReverseReferenceMap
from featuremap.domain.paths import app_directory, normalize_path

if TYPE_CHECKING:
    import os

    from featuremap.analysis.syntax import SyntaxSource

_MODULE_SUFFIXES: Final[tuple[str, ...]] = (".ts", ".tsx")


class ImportCategory(StrEnum):
    COMPONENT = "component"
    ACTION = "action"
    MODULE = "module"
    NONE = "none"


def compile_patterns(patterns: Iterable[str | re.Pattern[str]]) -> tuple[re.Pattern[str], ...]:
    """Compile path-fragment patterns; already compiled patterns pass through."""

    return tuple(
        pattern if isinstance(pattern, re.Pattern) else re.compile(pattern) for pattern in patterns
    )


@dataclass(frozen=True, slots=True)
class AnalyzerOptions:
    """Inputs for one reference-analysis run."""

    project_root: Path
    target_files: tuple[str, ...]
    tsconfig_path: Path | None = None
    component_patterns: tuple[re.Pattern[str], ...] = field(
        default_factory=lambda: compile_patterns(DEFAULT_COMPONENT_PATTERNS)
    )
    action_patterns: tuple[re.Pattern[str], ...] = field(
        default_factory=lambda: compile_patterns(DEFAULT_ACTION_PATTERNS)
    )
    module_patterns: tuple[re.Pattern[str], ...] = field(
        default_factory=lambda: compile_patterns(DEFAULT_MODULE_PATTERNS)
    )

    @classmethod
    def create(
        cls,
        project_root: str | os.PathLike[str],
        target_files: Iterable[str | os.PathLike[str]],
        *,
        tsconfig_path: str | os.PathLike[str] | None = None,
        component_patterns: Sequence[str | re.Pattern[str]] | None = None,
        action_patterns: Sequence[str | re.Pattern[str]] | None = None,
        module_patterns: Sequence[str | re.Pattern[str]] | None = None,
    ) -> AnalyzerOptions:
        return cls(
            project_root=Path(project_root),
            target_files=tuple(str(path) for path in target_files),
            tsconfig_path=None if tsconfig_path is None else Path(tsconfig_path),
            component_patterns=compile_patterns(
                DEFAULT_COMPONENT_PATTERNS if component_patterns is None else component_patterns
            ),
            action_patterns=compile_patterns(
                DEFAULT_ACTION_PATTERNS if action_patterns is None else action_patterns
            ),
            module_patterns=compile_patterns(
                DEFAULT_MODULE_PATTERNS if module_patterns is None else module_patterns
            ),
        )


def analyze_project_references(
    options: AnalyzerOptions,
    *,
    logger: Any | None = None,
) -> ReferenceAnalysisResult:
    """Parse the target files and return per-file usages plus the reverse index.

    Raises ``ProjectLoadError`` when the compiler configuration cannot be loaded.
    Unreadable target files are skipped with a warning.
    """

    log = logger if logger is not None else structlog.get_logger(__name__)
    file_usages: dict[str, FileUsage] = {}

    with SourceProject(options.project_root, options.tsconfig_path, logger=log) as project:
        project.add_source_files(options.target_files)
        sources = sorted(project.source_files, key=lambda source: source.relative_path)
        for source in sources:
            usage = analyze_file_usage(
                source,
                component_patterns=options.component_patterns,
                action_patterns=options.action_patterns,
                module_patterns=options.module_patterns,
                alias_prefixes=project.alias_prefixes,
            )
            if not usage.is_empty:
                file_usages[usage.file_path] = usage
        parsed_count = len(sources)

    reverse_refs = build_reverse_references(file_usages)
    log.info(
        "reference_analysis_completed",
        target_files=len(options.target_files),
        parsed_files=parsed_count,
        files_with_references=len(file_usages),
    )
    return ReferenceAnalysisResult(file_usages=file_usages, reverse_refs=reverse_refs)


def analyze_file_usage(
    source: SyntaxSource,
    *,
    component_patterns: Sequence[re.Pattern[str]],
    action_patterns: Sequence[re.Pattern[str]],
    module_patterns: Sequence[re.Pattern[str]],
    alias_prefixes: Sequence[str] = (DEFAULT_ALIAS_PREFIX,),
) -> FileUsage:
    """Collect verified usages for one file.

    Named imports are checked through their local binding and recorded under
    the exported name; default imports are checked and recorded by local name.
    """

    file_path = normalize_path(source.relative_path)
    components: list[str] = []
    actions: list[str] = []
    modules: list[str] = []
    module_paths: list[str] = []

    for declaration in source.import_declarations():
        specifier = declaration.module_specifier
        is_alias = any(specifier.startswith(prefix) for prefix in alias_prefixes)
        if not specifier.startswith(".") and not is_alias:
            continue

        category = categorize_import(
            specifier, component_patterns, action_patterns, module_patterns
        )
        if category is ImportCategory.NONE:
            continue

        if category is ImportCategory.MODULE:
            resolved = resolve_module_path(specifier, file_path, alias_prefixes=alias_prefixes)
            if resolved is not None:
                _append_unique(module_paths, resolved)

        bindings = [(binding.name, binding.local_name) for binding in declaration.named_imports]
        if declaration.default_import is not None:
            bindings.append((declaration.default_import, declaration.default_import))

        for name, local_name in bindings:
            if category is ImportCategory.COMPONENT:
                if source.is_used_as_jsx_element(local_name):
                    _append_unique(components, name)
            elif category is ImportCategory.ACTION:
                if source.is_called_as_function(local_name):
                    _append_unique(actions, name)
            else:
                _append_unique(modules, name)

    return FileUsage(
        file_path=file_path,
        used_components=tuple(components),
        used_actions=tuple(actions),
        used_modules=tuple(modules),
        used_module_paths=tuple(module_paths),
    )


def categorize_import(
    specifier: str,
    component_patterns: Sequence[re.Pattern[str]],
    action_patterns: Sequence[re.Pattern[str]],
    module_patterns: Sequence[re.Pattern[str]],
) -> ImportCategory:
    for category, patterns in (
        (ImportCategory.COMPONENT, component_patterns),
        (ImportCategory.ACTION, action_patterns),
        (ImportCategory.MODULE, module_patterns),
    ):
        if any(pattern.search(specifier) for pattern in patterns):
            return category
    return ImportCategory.NONE


def resolve_module_path(
    specifier: str,
    importer_path: str,
    *,
    alias_prefixes: Sequence[str] = (DEFAULT_ALIAS_PREFIX,),
) -> str | None:
    """Resolve a module specifier to a project-relative file path.

    Alias specifiers are rejoined under the importer's ``apps/<name>`` directory
    and yield ``None`` when the importer lives outside one. Relative specifiers
    resolve against the importer's directory. ``.ts`` is appended unless the
    path already ends in ``.ts`` or ``.tsx``.

    >>> resolve_module_path("@/lib/auth/client", "apps/admin/app/page.tsx")
    'apps/admin/lib/auth/client.ts'
    """

    importer = normalize_path(importer_path)
    for prefix in alias_prefixes:
        if specifier.startswith(prefix):
            app_dir = app_directory(importer)
            if app_dir is None:
                return None
            return _with_module_suffix(f"{app_dir}/{specifier[len(prefix) :]}")

    if specifier.startswith("."):
        joined = posixpath.normpath(posixpath.join(posixpath.dirname(importer), specifier))
        return _with_module_suffix(joined)

    return None


def build_reverse_references(file_usages: Mapping[str, FileUsage]) -> ReverseReferenceMap:
    component_to_files: dict[str, list[str]] = {}
    action_to_files: dict[str, list[str]] = {}
    module_to_files: dict[str, list[str]] = {}
    module_path_to_files: dict[str, list[str]] = {}

    for file_path, usage in file_usages.items():
        for name in usage.used_components:
            component_to_files.setdefault(name, []).append(file_path)
        for name in usage.used_actions:
            action_to_files.setdefault(name, []).append(file_path)
        for name in usage.used_modules:
            module_to_files.setdefault(name, []).append(file_path)
        for module_path in usage.used_module_paths:
            module_path_to_files.setdefault(module_path, []).append(file_path)

    return ReverseReferenceMap.from_lists(
        component_to_files=component_to_files,
        action_to_files=action_to_files,
        module_to_files=module_to_files,
        module_path_to_files=module_path_to_files,
    )


def _with_module_suffix(path: str) -> str:
    if path.endswith(_MODULE_SUFFIXES):
        return path
    return f"{path}.ts"


def _append_unique(values: list[str], value: str) -> None:
    if value not in values:
        values.append(value)


__all__ = [
    "DEFAULT_ACTION_PATTERNS",
    "DEFAULT_COMPONENT_PATTERNS",
    "DEFAULT_MODULE_PATTERNS",
    "AnalyzerOptions",
    "ImportCategory",
    "analyze_file_usage",
    "analyze_project_references",
    "build_reverse_references",
    "categorize_import",
    "compile_patterns",
    "resolve_module_path",
]
