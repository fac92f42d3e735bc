"""
featuremap: feature-map generation pipeline.

File: src/featuremap/pipeline.py
Last updated: 2026-10-19

Purpose
- Run one generation: collect files, read them, extract annotations, analyze references,
  merge, build, and persist ``feature-map.json``.

Functional requirements
- Files are collected by include/exclude globs and processed in lexicographic path order.
- Reads may complete in any order; results are re-sorted before extraction so every
  relationship list is reproducible across runs.
- An unreadable file is skipped with a warning; the rest of the run continues.
- Module metadata aggregation: the longest description wins; types and utilities are
  unioned by name in first-seen order.
- Merge passes run forward, reverse, tables, then modules.
- The artifact is pretty-printed JSON (2-space indent, UTF-8) written atomically.

Non-functional requirements
- Only file reads are concurrent; analysis and merging are sequential.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog

from featuremap.analysis.builder import Clock, build_feature_map
from featuremap.analysis.merge import MergeStats, run_merge_passes
from featuremap.analysis.references import AnalyzerOptions, analyze_project_references
from featuremap.config.loader import normalize_paths
from featuremap.constants import DEFAULT_TSCONFIG, FEATURE_MAP_FILENAME
from featuremap.domain.models import (
    FeatureMap,
    FeatureMapItem,
    ReferenceAnalysisResult,
    TypeItem,
    UtilityItem,
)
from featuremap.parsing.annotations import ExtractionResult, extract_annotations
from featuremap.utils.concurrency import WorkerPool
from featuremap.utils.fs import atomic_write, collect_files

_ANALYZED_SUFFIXES = (".ts", ".tsx")


class FeatureMapWriteError(RuntimeError):
    """Raised when the feature-map artifact cannot be persisted."""


@dataclass(frozen=True, slots=True)
class PipelineOptions:
    project_root: Path
    include: tuple[str, ...]
    exclude: tuple[str, ...]
    output_dir: Path
    tsconfig_path: Path | None = None
    component_patterns: tuple[str, ...] | None = None
    action_patterns: tuple[str, ...] | None = None
    module_patterns: tuple[str, ...] | None = None
    read_concurrency: int = 8

    @classmethod
    def from_config(
        cls, config: Mapping[str, Any], project_root: str | Path
    ) -> PipelineOptions:
        """Build options from a validated config; paths resolve against ``project_root``.

        The default ``tsconfig.json`` is optional; any other configured tsconfig must exist.
        """

        root = Path(project_root).resolve()
        normalized = normalize_paths(config, base_dir=root)
        feature_map = normalized["feature_map"]
        analysis = normalized["analysis"]

        tsconfig_setting = config["analysis"]["tsconfig"]
        tsconfig_path = None if tsconfig_setting == DEFAULT_TSCONFIG else Path(analysis["tsconfig"])

        return cls(
            project_root=root,
            include=tuple(feature_map["include"]),
            exclude=tuple(feature_map["exclude"]),
            output_dir=Path(feature_map["output_dir"]),
            tsconfig_path=tsconfig_path,
            component_patterns=tuple(analysis["component_patterns"]),
            action_patterns=tuple(analysis["action_patterns"]),
            module_patterns=tuple(analysis["module_patterns"]),
            read_concurrency=int(analysis["read_concurrency"]),
        )

    @property
    def output_path(self) -> Path:
        return self.output_dir / FEATURE_MAP_FILENAME


@dataclass(frozen=True, slots=True)
class SourceText:
    path: str
    content: str


@dataclass(slots=True)
class ExtractionSummary:
    """Items and per-module metadata accumulated across every extracted file."""

    items: list[FeatureMapItem] = field(default_factory=list)
    module_descriptions: dict[str, str] = field(default_factory=dict)
    module_types: dict[str, list[TypeItem]] = field(default_factory=dict)
    module_utilities: dict[str, list[UtilityItem]] = field(default_factory=dict)

    def add(self, result: ExtractionResult) -> None:
        self.items.extend(result.items)
        module_name = result.module_name

        description = result.metadata.module_description
        if description:
            existing = self.module_descriptions.get(module_name)
            if existing is None or len(description) > len(existing):
                self.module_descriptions[module_name] = description

        if result.types:
            known_types = self.module_types.setdefault(module_name, [])
            type_names = {item.name for item in known_types}
            for type_item in result.types:
                if type_item.name not in type_names:
                    type_names.add(type_item.name)
                    known_types.append(type_item)

        if result.utilities:
            known_utilities = self.module_utilities.setdefault(module_name, [])
            utility_names = {item.name for item in known_utilities}
            for utility in result.utilities:
                if utility.name not in utility_names:
                    utility_names.add(utility.name)
                    known_utilities.append(utility)


@dataclass(frozen=True, slots=True)
class PipelineResult:
    feature_map: FeatureMap
    analysis: ReferenceAnalysisResult
    merge_stats: MergeStats
    files: tuple[str, ...]
    output_path: Path | None = None

    def summary(self) -> dict[str, Any]:
        groups = [*self.feature_map.features.values(), self.feature_map.uncategorized]
        return {
            "files": len(self.files),
            "items": sum(len(group) for group in groups),
            "features": len(self.feature_map.features),
            "files_with_references": len(self.analysis.file_usages),
            "apps": list(self.feature_map.apps),
            "merge": self.merge_stats.to_dict(),
            "output_path": None if self.output_path is None else self.output_path.as_posix(),
            "generated_at": self.feature_map.generated_at,
        }


def generate_feature_map(
    options: PipelineOptions,
    *,
    write: bool = True,
    now: Clock | None = None,
    logger: Any | None = None,
) -> PipelineResult:
    """Synchronous entrypoint; runs :func:`run_pipeline` on a fresh event loop."""

    return asyncio.run(run_pipeline(options, write=write, now=now, logger=logger))


async def run_pipeline(
    options: PipelineOptions,
    *,
    write: bool = True,
    now: Clock | None = None,
    logger: Any | None = None,
) -> PipelineResult:
    log = logger if logger is not None else structlog.get_logger(__name__)

    files = collect_source_files(options)
    log.info("files_collected", project_root=options.project_root.as_posix(), count=len(files))

    sources = await read_sources(
        options.project_root, files, max_concurrency=options.read_concurrency, logger=log
    )
    summary = extract_sources(sources)
    log.info(
        "annotations_extracted",
        items=len(summary.items),
        module_descriptions=len(summary.module_descriptions),
        type_modules=len(summary.module_types),
        utility_modules=len(summary.module_utilities),
    )

    # Only files that decoded cleanly reach the analyzer.
    readable = [source.path for source in sources]
    analysis = run_reference_analysis(options, readable, logger=log)
    merge_stats = run_merge_passes(summary.items, analysis, logger=log)

    feature_map = build_feature_map(
        summary.items,
        summary.module_descriptions,
        summary.module_types,
        summary.module_utilities,
        now=now,
    )
    if feature_map.apps:
        log.info("apps_detected", apps=list(feature_map.apps))

    output_path: Path | None = None
    if write:
        output_path = write_feature_map(feature_map, options.output_dir)
        log.info("feature_map_written", path=output_path.as_posix())

    return PipelineResult(
        feature_map=feature_map,
        analysis=analysis,
        merge_stats=merge_stats,
        files=tuple(files),
        output_path=output_path,
    )


def collect_source_files(options: PipelineOptions) -> list[str]:
    return collect_files(options.project_root, options.include, options.exclude)


async def read_sources(
    project_root: Path,
    relative_paths: Sequence[str],
    *,
    max_concurrency: int,
    logger: Any | None = None,
) -> list[SourceText]:
    """Read files concurrently and return the readable ones sorted by path."""

    log = logger if logger is not None else structlog.get_logger(__name__)
    pool: WorkerPool[tuple[str, str | None, str | None]] = WorkerPool(max_concurrency)
    outcomes = await pool.map_in_threads(
        lambda relative: _read_one(project_root, relative), relative_paths
    )

    sources: list[SourceText] = []
    for relative, content, error in sorted(outcomes, key=lambda outcome: outcome[0]):
        if content is None:
            log.warning("source_file_skipped", path=relative, error=error)
            continue
        sources.append(SourceText(path=relative, content=content))
    return sources


def extract_sources(sources: Sequence[SourceText]) -> ExtractionSummary:
    summary = ExtractionSummary()
    for source in sources:
        summary.add(extract_annotations(source.content, source.path))
    return summary


def run_reference_analysis(
    options: PipelineOptions,
    files: Sequence[str],
    *,
    logger: Any | None = None,
) -> ReferenceAnalysisResult:
    """Run the reference analyzer over the TypeScript files among ``files``.

    Raises ``ProjectLoadError`` when the configured tsconfig cannot be loaded.
    """

    analyzer_options = AnalyzerOptions.create(
        options.project_root,
        [path for path in files if path.endswith(_ANALYZED_SUFFIXES)],
        tsconfig_path=options.tsconfig_path,
        component_patterns=options.component_patterns,
        action_patterns=options.action_patterns,
        module_patterns=options.module_patterns,
    )
    return analyze_project_references(analyzer_options, logger=logger)


def render_feature_map_json(feature_map: FeatureMap) -> str:
    return json.dumps(feature_map.to_dict(), indent=2, ensure_ascii=False) + "\n"


def write_feature_map(feature_map: FeatureMap, output_dir: Path) -> Path:
    """Persist ``feature-map.json`` into ``output_dir``, creating it when missing."""

    target = output_dir / FEATURE_MAP_FILENAME
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        atomic_write(target, render_feature_map_json(feature_map))
    except OSError as exc:
        raise FeatureMapWriteError(f"unable to write {target}: {exc}") from exc
    return target


def _read_one(project_root: Path, relative: str) -> tuple[str, str | None, str | None]:
    try:
        return relative, (project_root / relative).read_text(encoding="utf-8"), None
    except (OSError, UnicodeDecodeError) as exc:
        return relative, None, str(exc)


__all__ = [
    "ExtractionSummary",
    "FeatureMapWriteError",
    "PipelineOptions",
    "PipelineResult",
    "SourceText",
    "collect_source_files",
    "extract_sources",
    "generate_feature_map",
    "read_sources",
    "render_feature_map_json",
    "run_pipeline",
    "run_reference_analysis",
    "write_feature_map",
]
