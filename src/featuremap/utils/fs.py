"""
featuremap: filesystem utilities.

File: src/featuremap/utils/fs.py
Last updated: 2026-10-19

Purpose
- Collect project source files by include/exclude globs and write artifacts atomically.

Functional requirements
- Globs are matched against project-relative POSIX paths. ``*`` and ``?`` stay within one
  path segment; ``**`` spans any number of segments, including none.
- Collected paths are unique and sorted lexicographically.
- Atomic writes use temp files in the destination directory and replace in a single step.

Non-functional requirements
- Standard library only and cross-platform behavior where feasible.
"""

from __future__ import annotations

import contextlib
import os
import re
import tempfile
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Iterable

PathLike = str | os.PathLike[str]

# Never descended into, whatever the globs say.
_PRUNED_DIRECTORIES: Final[frozenset[str]] = frozenset({".git", "node_modules"})


def collect_files(
    root: PathLike,
    include: Iterable[str],
    exclude: Iterable[str] = (),
) -> list[str]:
    """Return project-relative POSIX paths under ``root`` matching ``include`` but not ``exclude``."""

    root_path = Path(root)
    include_patterns = tuple(include)
    exclude_patterns = tuple(exclude)
    matched: set[str] = set()

    for current_dir, dir_names, file_names in os.walk(root_path, topdown=True, followlinks=False):
        current = Path(current_dir)
        dir_names[:] = sorted(name for name in dir_names if name not in _PRUNED_DIRECTORIES)
        for file_name in file_names:
            relative = (current / file_name).relative_to(root_path).as_posix()
            if not matches_any(relative, include_patterns):
                continue
            if matches_any(relative, exclude_patterns):
                continue
            matched.add(relative)

    return sorted(matched)


def matches_any(relative_path: str, patterns: Iterable[str]) -> bool:
    return any(_compile_glob(pattern).fullmatch(relative_path) for pattern in patterns)


@lru_cache(maxsize=256)
def _compile_glob(pattern: str) -> re.Pattern[str]:
    """Translate a path glob into an anchored regular expression.

    >>> bool(_compile_glob("apps/*/app/**/*.tsx").fullmatch("apps/web/app/page.tsx"))
    True
    """

    parts: list[str] = []
    index = 0
    length = len(pattern)
    while index < length:
        char = pattern[index]
        if pattern.startswith("**/", index):
            parts.append("(?:.*/)?")
            index += 3
        elif pattern.startswith("**", index):
            parts.append(".*")
            index += 2
        elif char == "*":
            parts.append("[^/]*")
            index += 1
        elif char == "?":
            parts.append("[^/]")
            index += 1
        else:
            parts.append(re.escape(char))
            index += 1
    return re.compile("".join(parts))


def atomic_write(path: PathLike, data: bytes | str, *, encoding: str = "utf-8") -> None:
    """
    Atomically write ``data`` to ``path``.

    The write strategy is:
    1. create temp file in the same directory,
    2. write + flush + fsync file data,
    3. replace target via ``os.replace``.
    """

    target = Path(path)
    target_parent = target.parent.resolve(strict=True)
    if not target_parent.is_dir():
        raise NotADirectoryError(f"{target_parent!s} is not a directory")

    fd, temp_name = tempfile.mkstemp(
        prefix=f".{target.name}.",
        suffix=".tmp",
        dir=str(target_parent),
    )
    temp_path = Path(temp_name)

    try:
        if isinstance(data, bytes):
            with os.fdopen(fd, "wb") as file_handle:
                file_handle.write(data)
                file_handle.flush()
                os.fsync(file_handle.fileno())
        else:
            with os.fdopen(fd, "w", encoding=encoding, newline="\n") as file_handle:
                file_handle.write(data)
                file_handle.flush()
                os.fsync(file_handle.fileno())

        os.replace(temp_path, target)
        _fsync_directory(target_parent)
    except Exception:
        with contextlib.suppress(OSError):
            temp_path.unlink(missing_ok=True)
        raise


def _fsync_directory(path: Path) -> None:
    """Best-effort directory fsync; some platforms do not support it."""

    if os.name == "nt":
        return

    flags = os.O_RDONLY
    if hasattr(os, "O_DIRECTORY"):
        flags |= os.O_DIRECTORY

    try:
        dir_fd = os.open(path, flags)
    except OSError:
        return

    try:
        os.fsync(dir_fd)
    except OSError:
        return
    finally:
        os.close(dir_fd)


__all__ = ["PathLike", "atomic_write", "collect_files", "matches_any"]
