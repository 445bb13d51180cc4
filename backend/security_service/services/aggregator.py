"""
Concurrent Aggregator

Runs one async unit of work per input with a fixed cap on how many are
in flight, keeps results in input order and fails the whole batch with
the first error observed.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Sequence, TypeVar

from security_service.core.config import settings

logger = logging.getLogger(__name__)

ItemT = TypeVar("ItemT")
ResultT = TypeVar("ResultT")


class ConcurrentAggregator:
    """
    Bounded fan-out over a list.

    Each unit fills its own result slot and reports on a shared
    completion queue. The caller waits for every unit, then raises the
    first error seen (first to complete, not first submitted).
    """

    def __init__(self, limit: Optional[int] = None):
        self.limit = limit or settings.aggregator_concurrency
        if self.limit < 1:
            raise ValueError(f"concurrency limit must be positive, got {self.limit}")

    async def assemble_many(
        self,
        items: Sequence[ItemT],
        per_item: Callable[[ItemT], Awaitable[ResultT]],
    ) -> list[ResultT]:
        if not items:
            return []

        results: list[Optional[ResultT]] = [None] * len(items)
        permits = asyncio.Semaphore(self.limit)
        completions: asyncio.Queue = asyncio.Queue()

        async def run(index: int, item: ItemT) -> None:
            error: Optional[BaseException] = None
            try:
                async with permits:
                    results[index] = await per_item(item)
            except BaseException as e:
                error = e
                if not isinstance(e, Exception):
                    raise
            finally:
                # every unit reports, even when cancelled
                completions.put_nowait((index, error))

        tasks = [asyncio.create_task(run(i, item)) for i, item in enumerate(items)]
        try:
            first_error: Optional[BaseException] = None
            for _ in range(len(items)):
                index, error = await completions.get()
                if error is not None and first_error is None:
                    logger.debug(f"Unit {index} failed: {error}")
                    first_error = error
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()

        if first_error is not None:
            raise first_error

        return results


async def assemble_many(
    items: Sequence[ItemT],
    per_item: Callable[[ItemT], Awaitable[ResultT]],
    limit: Optional[int] = None,
) -> list[ResultT]:
    """Shortcut for ConcurrentAggregator(limit).assemble_many(items, per_item)."""
    return await ConcurrentAggregator(limit).assemble_many(items, per_item)
