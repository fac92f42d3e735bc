"""Annotation extraction: JSDoc tags, exported types, and exported utilities."""

from featuremap.parsing.annotations import (
    ExtractionResult,
    FileMetadata,
    extract_annotations,
    extract_file_metadata,
    parse_jsdoc_block,
)
from featuremap.parsing.jsdoc import (
    extract_description,
    extract_tags,
    find_code_start_index,
    parse_comma_separated_list,
)
from featuremap.parsing.type_extraction import extract_exported_types, extract_exported_utilities

__all__ = [
    "ExtractionResult",
    "FileMetadata",
    "extract_annotations",
    "extract_description",
    "extract_exported_types",
    "extract_exported_utilities",
    "extract_file_metadata",
    "extract_tags",
    "find_code_start_index",
    "parse_comma_separated_list",
    "parse_jsdoc_block",
]
