"""Unit tests for JSDoc block and tag primitives."""

from __future__ import annotations

from featuremap.parsing.jsdoc import (
    extract_description,
    extract_exported_component_name,
    extract_item_name,
    extract_tags,
    find_code_start_index,
    iter_jsdoc_blocks,
    parse_comma_separated_list,
)


def test_extract_tags_reads_values_and_markers() -> None:
    block = """/**
 * Loads the project list.
 * @serverAction
 * @feature Projects
 * @usedInScreen Dashboard, Settings
 * @route
 */"""

    tags = extract_tags(block)

    assert tags == {
        "serverAction": "",
        "feature": "Projects",
        "usedInScreen": "Dashboard, Settings",
    }


def test_extract_tags_on_single_line_block() -> None:
    assert extract_tags("/** @screen Dashboard */") == {"screen": "Dashboard"}


def test_later_tag_occurrence_wins() -> None:
    block = "/**\n * @feature A\n * @feature B\n */"
    assert extract_tags(block)["feature"] == "B"


def test_extract_description_skips_tags_and_delimiters() -> None:
    block = "/**\n * First line.\n *\n * Second line.\n * @feature X\n */"
    assert extract_description(block) == "First line.\nSecond line."
    assert extract_description("/**\n * @feature X\n */") is None


def test_parse_comma_separated_list() -> None:
    assert parse_comma_separated_list(" A, B ,,A , C ") == ["A", "B", "C"]
    assert parse_comma_separated_list(None) == []
    assert parse_comma_separated_list("") == []


def test_find_code_start_index_prefers_imports() -> None:
    content = '/**\n * @feature X\n */\n\nimport { a } from "b";\nexport const c = 1;\n'
    assert content[find_code_start_index(content) :].startswith("import")


def test_find_code_start_index_falls_back_to_export() -> None:
    content = "'use server';\n/** @serverAction */\nexport async function run() {}\n"
    assert content[find_code_start_index(content) :].startswith("export async")
    assert find_code_start_index("just some words") == 0


def test_item_and_component_names() -> None:
    assert extract_item_name("\nexport async function getProjects() {}") == "getProjects"
    assert extract_item_name("\nconst helper = () => 1;") == "helper"
    assert extract_item_name("\n// nothing here") is None
    assert extract_exported_component_name("export function UserCard(props) {}") == "UserCard"
    assert extract_exported_component_name("export const Badge: FC = () => null") == "Badge"
    assert extract_exported_component_name("export function useThing() {}") is None


def test_iter_jsdoc_blocks_reports_spans() -> None:
    content = "/** a */\ncode\n/** b */"
    blocks = list(iter_jsdoc_blocks(content))

    assert [block.text for block in blocks] == ["/** a */", "/** b */"]
    assert content[blocks[1].start : blocks[1].end] == "/** b */"
