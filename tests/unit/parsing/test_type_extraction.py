"""Unit tests for exported type and utility extraction."""

from __future__ import annotations

from featuremap.parsing.type_extraction import (
    MAX_CONSTANT_VALUE_CHARS,
    extract_braced_block,
    extract_enum_values,
    extract_exported_types,
    extract_exported_utilities,
    parse_params,
)

TYPES_SOURCE = """import { z } from "zod";

/**
 * A workspace member.
 */
export interface Member {
  /** Primary key */
  id: string;
  // Display name
  name?: string;
  meta: { joined: string };
}

export type Role = "owner" | "member";

export type Settings = {
  theme: string;
};

export enum Status {
  Active = "active",
  Invited,
}
"""


def test_extract_exported_types() -> None:
    types = {item.name: item for item in extract_exported_types(TYPES_SOURCE)}

    assert list(types) == ["Member", "Settings", "Role", "Status"]

    member = types["Member"]
    assert member.kind == "interface"
    assert member.description == "A workspace member."
    assert member.fields is not None
    assert [(f.name, f.type, f.description) for f in member.fields] == [
        ("id", "string", "Primary key"),
        ("name", "string", "Display name"),
        ("meta", "{ joined: string }", None),
    ]
    assert member.source_code is not None
    assert member.source_code.startswith("/**")
    assert member.source_code.endswith("}")

    assert types["Role"].kind == "type"
    assert types["Role"].fields is None
    assert types["Settings"].fields is not None
    assert [f.name for f in types["Settings"].fields] == ["theme"]
    assert types["Status"].values == ("Active", "Invited")


def test_extract_braced_block_ignores_braces_in_strings_and_comments() -> None:
    content = 'x = { a: "}", // }\n b: `{`, /* } */ c: { d: 1 } } tail'
    block = extract_braced_block(content, content.index("{"))

    assert block is not None
    assert block.endswith("c: { d: 1 } }")
    assert extract_braced_block("{ never closed", 0) is None
    assert extract_braced_block("abc", 0) is None


def test_extract_enum_values() -> None:
    assert extract_enum_values("\n  A = 1,\n  B,\n  // note\n") == ["A", "B"]


def test_extract_exported_utilities() -> None:
    source = """/**
 * Page size for lists.
 */
export const PAGE_SIZE: number = 20;
export const handler = async () => {};
export const LONG = "%s";

/**
 * Formats a price.
 */
export function formatPrice(amount: number, currency?: string): string {
  return "";
}

/**
 * @serverAction
 */
export async function saveThing(id) {}
""" % ("x" * (MAX_CONSTANT_VALUE_CHARS + 10))

    utilities = {item.name: item for item in extract_exported_utilities(source)}

    assert list(utilities) == ["PAGE_SIZE", "LONG", "formatPrice"]
    page_size = utilities["PAGE_SIZE"]
    assert (page_size.kind, page_size.type, page_size.value) == ("constant", "number", "20")
    assert page_size.description == "Page size for lists."
    assert utilities["LONG"].value is not None
    assert utilities["LONG"].value.endswith("...")
    assert len(utilities["LONG"].value) == MAX_CONSTANT_VALUE_CHARS + 3

    format_price = utilities["formatPrice"]
    assert format_price.kind == "function"
    assert format_price.type == "string"
    assert format_price.description == "Formats a price."
    assert format_price.params is not None
    assert [(p.name, p.type) for p in format_price.params] == [
        ("amount", "number"),
        ("currency", "string"),
    ]


def test_parse_params() -> None:
    assert parse_params("") == []
    assert [(p.name, p.type) for p in parse_params("a, b: string")] == [
        ("a", "unknown"),
        ("b", "string"),
    ]
