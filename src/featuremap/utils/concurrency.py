"""Async concurrency primitives for bounded, side-effect-free file reads."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager, suppress
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable, Iterable

T = TypeVar("T")
A = TypeVar("A")


class BoundedSemaphore:
    """Small wrapper over ``asyncio.Semaphore`` with usage diagnostics."""

    def __init__(self, limit: int) -> None:
        if limit <= 0:
            raise ValueError("limit must be > 0")
        self._limit = limit
        self._semaphore = asyncio.Semaphore(limit)
        self._in_use = 0
        self._peak = 0

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def in_use(self) -> int:
        return self._in_use

    @property
    def peak(self) -> int:
        """Highest number of permits held at once."""

        return self._peak

    async def acquire(self) -> None:
        # Cancellation while waiting here does not acquire a permit.
        await self._semaphore.acquire()
        self._in_use += 1
        self._peak = max(self._peak, self._in_use)

    def release(self) -> None:
        if self._in_use <= 0:
            raise RuntimeError("release called more times than acquire")
        self._in_use -= 1
        self._semaphore.release()

    @asynccontextmanager
    async def permit(self) -> AsyncIterator[None]:
        await self.acquire()
        try:
            yield
        finally:
            self.release()


@dataclass(slots=True)
class WorkerPool(Generic[T]):
    """Run coroutines with bounded concurrency and yield results as they finish.

    Completion order is not deterministic; callers that need a canonical order
    must sort the collected results.
    """

    max_concurrency: int
    _semaphore: BoundedSemaphore = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.max_concurrency <= 0:
            raise ValueError("max_concurrency must be > 0")
        self._semaphore = BoundedSemaphore(self.max_concurrency)

    @property
    def peak_concurrency(self) -> int:
        return self._semaphore.peak

    async def run(self, coroutines: Iterable[Awaitable[T]]) -> AsyncIterator[T]:
        tasks: set[asyncio.Task[T]] = {
            asyncio.ensure_future(self._run_one(coroutine)) for coroutine in coroutines
        }

        try:
            while tasks:
                done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
                tasks = set(pending)

                for task in done:
                    if task.cancelled():
                        raise asyncio.CancelledError("worker task cancelled")
                    exc = task.exception()
                    if exc is not None:
                        await self._cancel_all(tasks)
                        raise exc
                    yield task.result()
        except asyncio.CancelledError:
            await self._cancel_all(tasks)
            raise

    async def map_in_threads(self, func: Callable[[A], T], arguments: Iterable[A]) -> list[T]:
        """Apply blocking ``func`` to every argument on worker threads; completion order."""

        results: list[T] = []
        async for result in self.run(asyncio.to_thread(func, argument) for argument in arguments):
            results.append(result)
        return results

    async def _run_one(self, coroutine: Awaitable[T]) -> T:
        async with self._semaphore.permit():
            return await coroutine

    async def _cancel_all(self, tasks: set[asyncio.Task[T]]) -> None:
        for task in tasks:
            task.cancel()
        if tasks:
            with suppress(Exception):
                await asyncio.gather(*tasks, return_exceptions=True)


__all__ = ["BoundedSemaphore", "WorkerPool"]
