"""Reference analysis, merging, and feature-map assembly."""

from featuremap.analysis.builder import add_to_group, build_feature_map, convert_item
from featuremap.analysis.merge import (
    MergeStats,
    build_module_references,
    build_table_reverse_references,
    merge_arrays,
    merge_forward_references,
    merge_inferred_references,
    merge_reverse_references,
    run_merge_passes,
)
from featuremap.analysis.references import (
    AnalyzerOptions,
    ImportCategory,
    analyze_file_usage,
    analyze_project_references,
    build_reverse_references,
    categorize_import,
    compile_patterns,
    resolve_module_path,
)
from featuremap.analysis.syntax import (
    ImportBinding,
    ImportDeclaration,
    ProjectLoadError,
    SourceFile,
    SourceProject,
    SyntaxSource,
)

__all__ = [
    "AnalyzerOptions",
    "ImportBinding",
    "ImportCategory",
    "ImportDeclaration",
    "MergeStats",
    "ProjectLoadError",
    "SourceFile",
    "SourceProject",
    "SyntaxSource",
    "add_to_group",
    "analyze_file_usage",
    "analyze_project_references",
    "build_feature_map",
    "build_module_references",
    "build_reverse_references",
    "build_table_reverse_references",
    "categorize_import",
    "compile_patterns",
    "convert_item",
    "merge_arrays",
    "merge_forward_references",
    "merge_inferred_references",
    "merge_reverse_references",
    "resolve_module_path",
    "run_merge_passes",
]
