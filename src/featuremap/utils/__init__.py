"""Utility exports for filesystem and concurrency helpers."""

from featuremap.utils.concurrency import BoundedSemaphore, WorkerPool
from featuremap.utils.fs import atomic_write, collect_files, matches_any

__all__ = [
    "BoundedSemaphore",
    "WorkerPool",
    "atomic_write",
    "collect_files",
    "matches_any",
]
