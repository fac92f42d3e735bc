"""
featuremap: TypeScript syntax-tree facade.

File: src/featuremap/analysis/syntax.py
Last updated: 2026-10-19

Purpose
- Give the reference analyzer three questions it can ask of a source file:
  which import declarations it has, whether a name is rendered as a JSX tag,
  and whether a name is invoked as a function.
- Scope parsing to an explicit set of target files and release every parsed
  tree on ``close()``.

Functional requirements
- ``.tsx``/``.jsx`` files use the TSX grammar; ``.ts``/``.js`` files use the TypeScript grammar.
- A target file that cannot be read as UTF-8 text is skipped with a warning.
- An explicitly given tsconfig that is missing or malformed, or a malformed default
  tsconfig, raises ``ProjectLoadError``.

Non-functional requirements
- No type checking and no resolution outside the target set.
- Parsers are created once per project, not once per file.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final, Protocol

import structlog
import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from featuremap.constants import DEFAULT_TSCONFIG

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

DEFAULT_ALIAS_PREFIX: Final[str] = "@/"

_TSX_SUFFIXES: Final[frozenset[str]] = frozenset({".tsx", ".jsx"})
_JSX_ELEMENT_TYPES: Final[frozenset[str]] = frozenset(
    {"jsx_opening_element", "jsx_self_closing_element"}
)


class ProjectLoadError(ValueError):
    """Raised when the syntax project cannot be initialized from its compiler config."""


@dataclass(frozen=True, slots=True)
class ImportBinding:
    """One named import: ``name`` is the exported symbol, ``local_name`` the binding in scope."""

    name: str
    local_name: str


@dataclass(frozen=True, slots=True)
class ImportDeclaration:
    module_specifier: str
    default_import: str | None = None
    named_imports: tuple[ImportBinding, ...] = ()


class SyntaxSource(Protocol):
    """Capabilities the reference analyzer needs from a parsed file."""

    @property
    def relative_path(self) -> str: ...

    def import_declarations(self) -> tuple[ImportDeclaration, ...]: ...

    def is_used_as_jsx_element(self, name: str) -> bool: ...

    def is_called_as_function(self, name: str) -> bool: ...


class SourceFile:
    """A parsed target file backed by a tree-sitter syntax tree."""

    __slots__ = ("_callees", "_imports", "_jsx_tags", "_root", "_source", "relative_path")

    def __init__(self, relative_path: str, source: bytes, root: Node) -> None:
        self.relative_path = relative_path
        self._source = source
        self._root: Node | None = root
        self._imports: tuple[ImportDeclaration, ...] | None = None
        self._jsx_tags: frozenset[str] | None = None
        self._callees: frozenset[str] | None = None

    def import_declarations(self) -> tuple[ImportDeclaration, ...]:
        """Top-level ``import`` statements in source order."""

        if self._imports is None:
            declarations: list[ImportDeclaration] = []
            for child in self._require_root().children:
                if child.type != "import_statement":
                    continue
                declaration = self._read_import(child)
                if declaration is not None:
                    declarations.append(declaration)
            self._imports = tuple(declarations)
        return self._imports

    def is_used_as_jsx_element(self, name: str) -> bool:
        """``<Name>``, ``<Name/>`` and ``<Name.Member/>`` all count as usage of ``Name``."""

        jsx_tags, _ = self._usage_index()
        prefix = f"{name}."
        return any(tag == name or tag.startswith(prefix) for tag in jsx_tags)

    def is_called_as_function(self, name: str) -> bool:
        """``name(...)``, ``await name(...)``, ``name.bind(...)(...)`` and ``name(...)(...)``.

        ``await name<T>(...)`` parses as a call whose callee is the await expression,
        so the awaited operand is recorded instead.
        """

        _, callees = self._usage_index()
        member_prefix = f"{name}."
        call_prefix = f"{name}("
        return any(
            callee == name or callee.startswith(member_prefix) or callee.startswith(call_prefix)
            for callee in callees
        )

    def release(self) -> None:
        self._root = None
        self._source = b""

    def _require_root(self) -> Node:
        if self._root is None:
            raise RuntimeError(f"syntax tree for {self.relative_path} was released")
        return self._root

    def _usage_index(self) -> tuple[frozenset[str], frozenset[str]]:
        if self._jsx_tags is not None and self._callees is not None:
            return self._jsx_tags, self._callees
        jsx_tags: set[str] = set()
        callees: set[str] = set()
        for node in _walk(self._require_root()):
            if node.type in _JSX_ELEMENT_TYPES:
                tag = node.child_by_field_name("name")
                if tag is not None:
                    jsx_tags.add(self._text(tag))
            elif node.type == "call_expression":
                callee = node.child_by_field_name("function")
                if callee is not None and callee.type == "await_expression":
                    callee = _awaited_operand(callee)
                if callee is not None:
                    callees.add(self._text(callee))
        self._jsx_tags = frozenset(jsx_tags)
        self._callees = frozenset(callees)
        return self._jsx_tags, self._callees

    def _read_import(self, statement: Node) -> ImportDeclaration | None:
        source_node = statement.child_by_field_name("source")
        if source_node is None:
            return None
        specifier = _unquote(self._text(source_node))

        default_import: str | None = None
        named: list[ImportBinding] = []
        for child in statement.children:
            if child.type != "import_clause":
                continue
            for part in child.children:
                if part.type == "identifier":
                    default_import = self._text(part)
                elif part.type == "named_imports":
                    named.extend(self._read_named_imports(part))

        return ImportDeclaration(
            module_specifier=specifier,
            default_import=default_import,
            named_imports=tuple(named),
        )

    def _read_named_imports(self, node: Node) -> Iterator[ImportBinding]:
        for specifier in node.children:
            if specifier.type != "import_specifier":
                continue
            name_node = specifier.child_by_field_name("name")
            if name_node is None:
                continue
            name = _unquote(self._text(name_node))
            alias_node = specifier.child_by_field_name("alias")
            local_name = self._text(alias_node) if alias_node is not None else name
            yield ImportBinding(name=name, local_name=local_name)

    def _text(self, node: Node) -> str:
        return self._source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


class SourceProject:
    """In-memory project scoped to an explicit list of target files.

    Use as a context manager, or call ``close()``, so parsed trees are dropped
    as soon as analysis finishes.
    """

    def __init__(
        self,
        project_root: str | os.PathLike[str],
        tsconfig_path: str | os.PathLike[str] | None = None,
        *,
        logger: Any | None = None,
    ) -> None:
        self.project_root = Path(project_root).resolve()
        self._logger = logger if logger is not None else structlog.get_logger(__name__)
        self.compiler_options = _load_compiler_options(self.project_root, tsconfig_path)
        self.alias_prefixes = _alias_prefixes(self.compiler_options)
        self._tsx_parser = Parser(Language(tree_sitter_typescript.language_tsx()))
        self._ts_parser = Parser(Language(tree_sitter_typescript.language_typescript()))
        self._files: dict[str, SourceFile] = {}
        self._closed = False

    def __enter__(self) -> SourceProject:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def source_files(self) -> tuple[SourceFile, ...]:
        return tuple(self._files.values())

    def add_source_files(self, paths: Iterable[str | os.PathLike[str]]) -> list[SourceFile]:
        added: list[SourceFile] = []
        for path in paths:
            source_file = self.add_source_file(path)
            if source_file is not None:
                added.append(source_file)
        return added

    def add_source_file(self, path: str | os.PathLike[str]) -> SourceFile | None:
        """Parse ``path`` (absolute, or relative to the project root); ``None`` if unreadable."""

        if self._closed:
            raise RuntimeError("source project is closed")

        candidate = Path(path)
        absolute = candidate if candidate.is_absolute() else self.project_root / candidate
        relative = Path(os.path.relpath(absolute, self.project_root)).as_posix()
        existing = self._files.get(relative)
        if existing is not None:
            return existing

        try:
            source = absolute.read_bytes()
            source.decode("utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            self._logger.warning("source_file_skipped", path=relative, error=str(exc))
            return None

        parser = self._tsx_parser if absolute.suffix in _TSX_SUFFIXES else self._ts_parser
        tree = parser.parse(source)
        source_file = SourceFile(relative, source, tree.root_node)
        self._files[relative] = source_file
        return source_file

    def is_alias_specifier(self, specifier: str) -> bool:
        return any(specifier.startswith(prefix) for prefix in self.alias_prefixes)

    def close(self) -> None:
        for source_file in self._files.values():
            source_file.release()
        self._files.clear()
        self._closed = True


def _walk(root: Node) -> Iterator[Node]:
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def _awaited_operand(node: Node) -> Node | None:
    operands = [child for child in node.named_children if child.type != "comment"]
    return operands[-1] if operands else None


def _unquote(text: str) -> str:
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'`":
        return text[1:-1]
    return text


def _load_compiler_options(
    project_root: Path, tsconfig_path: str | os.PathLike[str] | None
) -> dict[str, Any]:
    explicit = tsconfig_path is not None
    config_path = Path(tsconfig_path) if explicit else project_root / DEFAULT_TSCONFIG
    if not config_path.is_absolute():
        config_path = project_root / config_path

    if not config_path.exists():
        if explicit:
            raise ProjectLoadError(f"tsconfig not found: {config_path}")
        return {}

    try:
        raw = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ProjectLoadError(f"unable to read tsconfig {config_path}: {exc}") from exc

    try:
        parsed = json.loads(_strip_json_comments(raw))
    except json.JSONDecodeError as exc:
        raise ProjectLoadError(f"invalid tsconfig {config_path}: {exc}") from exc

    if not isinstance(parsed, dict):
        raise ProjectLoadError(f"tsconfig root must be an object: {config_path}")
    options = parsed.get("compilerOptions", {})
    if not isinstance(options, dict):
        raise ProjectLoadError(f"compilerOptions must be an object: {config_path}")
    return options


def _alias_prefixes(compiler_options: dict[str, Any]) -> tuple[str, ...]:
    prefixes = [DEFAULT_ALIAS_PREFIX]
    paths = compiler_options.get("paths")
    if isinstance(paths, dict):
        for pattern in paths:
            if not isinstance(pattern, str) or not pattern.endswith("/*"):
                continue
            prefix = pattern[:-1]
            if prefix not in prefixes:
                prefixes.append(prefix)
    return tuple(prefixes)


def _strip_json_comments(text: str) -> str:
    """Drop ``//`` and ``/* */`` comments and trailing commas outside strings."""

    out: list[str] = []
    index = 0
    length = len(text)
    in_string = False
    # Position in ``out`` of a comma followed so far only by whitespace or comments.
    pending_comma: int | None = None
    while index < length:
        char = text[index]
        following = text[index + 1] if index + 1 < length else ""
        if in_string:
            out.append(char)
            if char == "\\" and following:
                out.append(following)
                index += 2
                continue
            if char == '"':
                in_string = False
            index += 1
            continue
        if char == '"':
            in_string = True
            pending_comma = None
            out.append(char)
            index += 1
        elif char == "/" and following == "/":
            newline = text.find("\n", index)
            index = length if newline == -1 else newline
        elif char == "/" and following == "*":
            closing = text.find("*/", index + 2)
            index = length if closing == -1 else closing + 2
        else:
            if char in "}]" and pending_comma is not None:
                del out[pending_comma]
            if not char.isspace():
                pending_comma = len(out) if char == "," else None
            out.append(char)
            index += 1
    return "".join(out)


__all__ = [
    "DEFAULT_ALIAS_PREFIX",
    "DEFAULT_TSCONFIG",
    "ImportBinding",
    "ImportDeclaration",
    "ProjectLoadError",
    "SourceFile",
    "SourceProject",
    "SyntaxSource",
]
