"""
featuremap: JSDoc block and tag primitives.

File: src/featuremap/parsing/jsdoc.py
Last updated: 2026-10-19

Purpose
- Locate ``/** ... */`` blocks and the file header region of a TypeScript source.
- Read ``@tag value`` pairs, free-text descriptions, and comma-separated tag lists.
- Recover the declaration name that follows a block.

Functional requirements
- Every function accepts arbitrary text and degrades to "absent" instead of raising.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Iterator

# Tags whose presence is the value; they carry no text of their own.
MARKER_TAGS: Final[frozenset[str]] = frozenset({"serverAction"})

_JSDOC_BLOCK: Final[re.Pattern[str]] = re.compile(r"/\*\*[\s\S]*?\*/")
_TAG_LINE: Final[re.Pattern[str]] = re.compile(r"@(\w+)(?:\s+(.+?))?(?:\s*\*/|\s*$)")
_DESCRIPTION_MARKER: Final[re.Pattern[str]] = re.compile(r"^\s*\*\s?")

_LEADING_TRIVIA: Final[str] = r"^(?:\/\/.*\n|\/\*[\s\S]*?\*\/\n|\s)*"
_CODE_START_PATTERNS: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(_LEADING_TRIVIA + r"(import)\s", re.MULTILINE),
    re.compile(_LEADING_TRIVIA + r"(export)\s", re.MULTILINE),
    re.compile(
        _LEADING_TRIVIA + r"(const|let|var|function|class|interface|type|enum)\s",
        re.MULTILINE,
    ),
)

_ITEM_NAME_PATTERNS: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(r"export\s+(?:async\s+)?function\s+(\w+)"),
    re.compile(r"export\s+default\s+(?:async\s+)?function\s+(\w+)"),
    re.compile(r"export\s+const\s+(\w+)"),
    re.compile(r"(?:async\s+)?function\s+(\w+)"),
    re.compile(r"const\s+(\w+)\s*="),
)

_COMPONENT_NAME_PATTERNS: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(r"export\s+(?:async\s+)?function\s+([A-Z][a-zA-Z0-9]*)\s*[(<]"),
    re.compile(r"export\s+default\s+(?:async\s+)?function\s+([A-Z][a-zA-Z0-9]*)\s*[(<]"),
    re.compile(r"export\s+const\s+([A-Z][a-zA-Z0-9]*)\s*[=:]"),
)


@dataclass(frozen=True, slots=True)
class JSDocBlock:
    """A ``/** ... */`` block with its character span in the source."""

    text: str
    start: int
    end: int


def iter_jsdoc_blocks(content: str) -> Iterator[JSDocBlock]:
    for match in _JSDOC_BLOCK.finditer(content):
        yield JSDocBlock(text=match.group(0), start=match.start(), end=match.end())


def first_jsdoc_block(content: str) -> JSDocBlock | None:
    match = _JSDOC_BLOCK.search(content)
    if match is None:
        return None
    return JSDocBlock(text=match.group(0), start=match.start(), end=match.end())


def find_code_start_index(content: str) -> int:
    """Return the offset where code begins, i.e. where the file header ends.

    The first ``import`` wins, then the first ``export``, then the first
    top-level declaration. Leading comments and whitespace are skipped. A file
    with none of these is treated as all header (offset ``0``).
    """

    for pattern in _CODE_START_PATTERNS:
        match = pattern.search(content)
        if match is not None:
            return match.start(1)
    return 0


def extract_tags(block: str) -> dict[str, str]:
    """Map tag name -> trimmed value; later occurrences of a tag win.

    Only the first tag on each line is read. Marker tags map to ``""`` and
    value tags without a value are treated as absent.
    """

    tags: dict[str, str] = {}
    for line in block.split("\n"):
        match = _TAG_LINE.search(line)
        if match is None:
            continue
        tag, value = match.group(1), match.group(2)
        if tag in MARKER_TAGS:
            tags[tag] = ""
        elif value:
            tags[tag] = value.strip()
    return tags


def extract_description(block: str) -> str | None:
    """Return the non-tag text lines of ``block`` joined by newlines."""

    lines: list[str] = []
    for line in block.split("\n"):
        content = _DESCRIPTION_MARKER.sub("", line, count=1)
        trimmed = content.strip()
        if (
            not trimmed
            or trimmed.startswith("/**")
            or trimmed.startswith("*/")
            or trimmed == "/"
            or trimmed.startswith("@")
        ):
            continue
        lines.append(content)
    if not lines:
        return None
    return "\n".join(lines)


def parse_comma_separated_list(value: str | None) -> list[str]:
    """Split a list-valued tag; entries are trimmed, empties dropped, duplicates removed."""

    if not value:
        return []
    entries: list[str] = []
    for raw in value.split(","):
        entry = raw.strip()
        if entry and entry not in entries:
            entries.append(entry)
    return entries


def extract_item_name(code: str) -> str | None:
    """Name of the declaration in ``code`` (typically the text after a block)."""

    for pattern in _ITEM_NAME_PATTERNS:
        match = pattern.search(code)
        if match is not None:
            return match.group(1)
    return None


def extract_exported_component_name(content: str) -> str | None:
    """First exported PascalCase function or const, used to auto-detect components."""

    for pattern in _COMPONENT_NAME_PATTERNS:
        match = pattern.search(content)
        if match is not None:
            return match.group(1)
    return None


__all__ = [
    "MARKER_TAGS",
    "JSDocBlock",
    "extract_description",
    "extract_exported_component_name",
    "extract_item_name",
    "extract_tags",
    "find_code_start_index",
    "first_jsdoc_block",
    "iter_jsdoc_blocks",
    "parse_comma_separated_list",
]
