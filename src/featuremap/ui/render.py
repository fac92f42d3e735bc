"""Output rendering for the featuremap CLI.

File: src/featuremap/ui/render.py
Last updated: 2026-10-19

Purpose
- Provide a thin plain-text rendering layer for human-readable CLI output.

Functional requirements
- Output is deterministic: the same inputs always print the same lines.
- Tables pad columns to the widest cell and skip rendering when there are no rows.

Non-functional requirements
- Standard library only.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence


class CLIRenderer:
    """Plain-text CLI renderer; ``verbose`` enables detail sections."""

    def __init__(self, *, verbose: bool = False) -> None:
        self.verbose = verbose

    def heading(self, text: str) -> None:
        print(text)

    def kv(self, key: str, value: object) -> None:
        print(f"{key}: {value}")

    def text(self, line: str) -> None:
        print(line)

    def section(self, title: str) -> None:
        """Print a section header with a preceding blank line."""

        print(f"\n{title}")

    def warning(self, text: str) -> None:
        print(f"  Warning: {text}")

    def items(self, entries: Sequence[str], *, prefix: str = "- ") -> None:
        for entry in entries:
            print(f"  {prefix}{entry}")

    def counts(self, title: str, values: Mapping[str, int]) -> None:
        """Print ``name: count`` lines under a section title, keys in insertion order."""

        if not values:
            return
        self.section(title)
        width = max(len(key) for key in values)
        for key, count in values.items():
            print(f"  {key.ljust(width)}  {count}")

    def table(
        self,
        headers: Sequence[str],
        rows: Sequence[Sequence[str]],
        *,
        title: str | None = None,
    ) -> None:
        """Print a formatted ASCII table."""

        if not rows:
            return

        col_count = len(headers)
        widths = [len(h) for h in headers]
        for row in rows:
            for i in range(min(len(row), col_count)):
                widths[i] = max(widths[i], len(str(row[i])))

        def _pad(cells: Sequence[str]) -> str:
            parts: list[str] = []
            for i in range(col_count):
                cell = str(cells[i]) if i < len(cells) else ""
                parts.append(cell.ljust(widths[i]))
            return "  ".join(parts).rstrip()

        if title:
            self.section(title)
        print(f"  {_pad(list(headers))}")
        print(f"  {'  '.join('-' * w for w in widths)}")
        for row in rows:
            print(f"  {_pad(list(row))}")


def create_renderer(*, verbose: bool = False) -> CLIRenderer:
    return CLIRenderer(verbose=verbose)


__all__ = ["CLIRenderer", "create_renderer"]
