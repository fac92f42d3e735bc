"""Exported type and utility extraction for per-module documentation."""

from __future__ import annotations

import re
from typing import Final, Literal

from featuremap.domain.models import TypeField, TypeItem, UtilityItem, UtilityParam
from featuremap.parsing.jsdoc import extract_description

MAX_CONSTANT_VALUE_CHARS: Final[int] = 50

_INTERFACE_START: Final[re.Pattern[str]] = re.compile(r"export\s+interface\s+(\w+)\s*\{")
_TYPE_OBJECT_START: Final[re.Pattern[str]] = re.compile(r"export\s+type\s+(\w+)\s*=\s*\{")
_TYPE_SIMPLE: Final[re.Pattern[str]] = re.compile(r"export\s+type\s+(\w+)\s*=\s*([^;{]+);")
_ENUM_START: Final[re.Pattern[str]] = re.compile(r"export\s+enum\s+(\w+)\s*\{")
_OBJECT_TYPE_STARTS: Final[tuple[tuple[Literal["interface", "type"], re.Pattern[str]], ...]] = (
    ("interface", _INTERFACE_START),
    ("type", _TYPE_OBJECT_START),
)

_FIELD_DOC: Final[re.Pattern[str]] = re.compile(r"/\*\*\s*(.+?)\s*\*/")
_FIELD_DEF: Final[re.Pattern[str]] = re.compile(r"^(\w+)\??\s*:\s*(.+?);?\s*$")
_ENUM_MEMBER: Final[re.Pattern[str]] = re.compile(r"^(\w+)")

_EXPORTED_CONST: Final[re.Pattern[str]] = re.compile(
    r"(?:/\*\*(?:(?!\*/)[\s\S])*\*/\s*)?"
    r"export\s+const\s+(\w+)(?:\s*:\s*([^=]+?))?\s*=\s*([^;\n]+)"
)
_EXPORTED_FUNCTION: Final[re.Pattern[str]] = re.compile(
    r"(/\*\*(?:(?!\*/)[\s\S])*\*/)\s*export\s+(?:async\s+)?function\s+(\w+)\s*\(([^)]*)\)"
    r"(?:\s*:\s*([^{]+?))?\s*\{"
)
_JSDOC_IN_MATCH: Final[re.Pattern[str]] = re.compile(r"/\*\*[\s\S]*?\*/")
_TYPED_PARAM: Final[re.Pattern[str]] = re.compile(r"^(\w+)\??\s*:\s*(.+)$")
_BARE_PARAM: Final[re.Pattern[str]] = re.compile(r"^(\w+)")


def extract_exported_types(content: str) -> list[TypeItem]:
    """Collect exported interfaces, type aliases, and enums in source order per kind."""

    types: list[TypeItem] = []

    for kind, pattern in _OBJECT_TYPE_STARTS:
        for match in pattern.finditer(content):
            block = extract_braced_block(content, match.end() - 1)
            if block is None:
                continue
            match_text = match.group(0)[:-1] + block
            jsdoc, source_code = extract_preceding_jsdoc(content, match.start(), match_text)
            types.append(
                TypeItem(
                    name=match.group(1),
                    kind=kind,
                    description=extract_description(jsdoc) if jsdoc else None,
                    fields=tuple(extract_interface_fields(block[1:-1])),
                    source_code=source_code,
                )
            )

    seen = {item.name for item in types}
    for match in _TYPE_SIMPLE.finditer(content):
        name = match.group(1)
        if name in seen:
            continue
        seen.add(name)
        jsdoc, source_code = extract_preceding_jsdoc(content, match.start(), match.group(0))
        types.append(
            TypeItem(
                name=name,
                kind="type",
                description=extract_description(jsdoc) if jsdoc else None,
                source_code=source_code,
            )
        )

    for match in _ENUM_START.finditer(content):
        block = extract_braced_block(content, match.end() - 1)
        if block is None:
            continue
        match_text = match.group(0)[:-1] + block
        jsdoc, source_code = extract_preceding_jsdoc(content, match.start(), match_text)
        types.append(
            TypeItem(
                name=match.group(1),
                kind="enum",
                description=extract_description(jsdoc) if jsdoc else None,
                values=tuple(extract_enum_values(block[1:-1])),
                source_code=source_code,
            )
        )

    return types


def extract_braced_block(content: str, start_index: int) -> str | None:
    """Return the balanced ``{...}`` block starting at ``start_index``.

    Braces inside string literals and comments are ignored. Returns ``None``
    when ``start_index`` is not an opening brace or the block never closes.
    """

    if start_index < 0 or start_index >= len(content) or content[start_index] != "{":
        return None

    depth = 0
    quote = ""
    comment = ""
    index = start_index
    length = len(content)
    while index < length:
        char = content[index]
        following = content[index + 1] if index + 1 < length else ""

        if comment == "line":
            if char == "\n":
                comment = ""
        elif comment == "block":
            if char == "*" and following == "/":
                comment = ""
                index += 1
        elif quote:
            if char == "\\":
                index += 1
            elif char == quote:
                quote = ""
        elif char == "/" and following == "/":
            comment = "line"
            index += 1
        elif char == "/" and following == "*":
            comment = "block"
            index += 1
        elif char in "\"'`":
            quote = char
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return content[start_index : index + 1]
        index += 1

    return None


def extract_preceding_jsdoc(
    content: str, match_index: int, match_text: str
) -> tuple[str | None, str]:
    """Return the JSDoc directly above a declaration and the combined source text.

    Only whitespace may separate the block from the declaration.
    """

    before = content[:match_index]
    if not before.rstrip().endswith("*/"):
        return None, match_text.strip()

    block_end = before.rfind("*/")
    block_start = before.rfind("/**", 0, block_end)
    if block_start == -1:
        return None, match_text.strip()

    jsdoc = before[block_start : block_end + 2]
    return jsdoc, f"{jsdoc}\n{match_text}".strip()


def extract_interface_fields(body: str) -> list[TypeField]:
    fields: list[TypeField] = []
    pending_description: str | None = None
    for line in body.split("\n"):
        trimmed = line.strip()
        doc = _FIELD_DOC.search(trimmed)
        if doc is not None:
            pending_description = doc.group(1)
            continue
        if trimmed.startswith("//"):
            pending_description = trimmed[2:].strip()
            continue
        definition = _FIELD_DEF.match(trimmed)
        if definition is not None:
            fields.append(
                TypeField(
                    name=definition.group(1),
                    type=definition.group(2).removesuffix(";").strip(),
                    description=pending_description,
                )
            )
            pending_description = None
    return fields


def extract_enum_values(body: str) -> list[str]:
    values: list[str] = []
    for member in body.split(","):
        match = _ENUM_MEMBER.match(member.strip())
        if match is not None:
            values.append(match.group(1))
    return values


def extract_exported_utilities(content: str) -> list[UtilityItem]:
    """Collect exported non-function constants and documented helper functions.

    Functions whose JSDoc carries ``@serverAction`` are actions, not utilities,
    and are left out.
    """

    utilities: list[UtilityItem] = []

    for match in _EXPORTED_CONST.finditer(content):
        value = match.group(3).strip()
        if value.startswith("(") or value.startswith("async (") or "=>" in value:
            continue
        jsdoc = _JSDOC_IN_MATCH.search(match.group(0))
        type_annotation = match.group(2)
        if len(value) > MAX_CONSTANT_VALUE_CHARS:
            value = value[:MAX_CONSTANT_VALUE_CHARS] + "..."
        utilities.append(
            UtilityItem(
                name=match.group(1),
                kind="constant",
                description=extract_description(jsdoc.group(0)) if jsdoc else None,
                type=type_annotation.strip() if type_annotation else None,
                value=value,
            )
        )

    for match in _EXPORTED_FUNCTION.finditer(content):
        jsdoc_block = match.group(1)
        if "@serverAction" in jsdoc_block:
            continue
        return_type = match.group(4)
        utilities.append(
            UtilityItem(
                name=match.group(2),
                kind="function",
                description=extract_description(jsdoc_block),
                type=return_type.strip() if return_type else None,
                params=tuple(parse_params(match.group(3))),
            )
        )

    return utilities


def parse_params(params: str) -> list[UtilityParam]:
    parsed: list[UtilityParam] = []
    if not params.strip():
        return parsed
    for part in params.split(","):
        trimmed = part.strip()
        typed = _TYPED_PARAM.match(trimmed)
        if typed is not None:
            parsed.append(UtilityParam(name=typed.group(1), type=typed.group(2).strip()))
            continue
        bare = _BARE_PARAM.match(trimmed)
        if bare is not None:
            parsed.append(UtilityParam(name=bare.group(1), type="unknown"))
    return parsed


__all__ = [
    "MAX_CONSTANT_VALUE_CHARS",
    "extract_braced_block",
    "extract_enum_values",
    "extract_exported_types",
    "extract_exported_utilities",
    "extract_interface_fields",
    "extract_preceding_jsdoc",
    "parse_params",
]
