# ABOUTME: Bounded-concurrency fan-out of per-resource actions
# ABOUTME: Runs every item to completion and aggregates successes and failures

"""
Bulk executor.

    summary = await bulk(["a", "b", "c"], client.applications.stop, concurrency=2)
    print(summary.summary_line())   # "2/3 operations completed successfully"

- Items are dispatched in input order; at most ``concurrency`` run at once.
- A failing item is recorded and the batch continues.
- Workers hand results to a collector through an ``asyncio.Queue``, so the
  results list is only ever touched by one task. Result order is completion
  order.
- Cancelling the caller cancels every in-flight item (TaskGroup semantics).
  Items that already finished are not rolled back.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

import structlog

from coolifyme.errors import InvalidArgumentError

logger = structlog.get_logger(__name__)

DEFAULT_CONCURRENCY = 5


@dataclass
class BulkResult:
    id: str
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class BulkSummary:
    results: list[BulkResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def failed(self) -> int:
        return self.total - self.succeeded

    @property
    def failures(self) -> list[BulkResult]:
        return [r for r in self.results if not r.ok]

    def summary_line(self) -> str:
        return f"{self.succeeded}/{self.total} operations completed successfully"


async def bulk(
    ids: Iterable[str],
    action: Callable[[str], Awaitable[Any]],
    concurrency: int = DEFAULT_CONCURRENCY,
    on_result: Callable[[BulkResult], None] | None = None,
) -> BulkSummary:
    """
    Run ``action(id)`` for every id under a concurrency limit.

    Args:
        ids: Resource identifiers, dispatched in this order.
        action: Coroutine function applied to each id.
        concurrency: Maximum simultaneous actions (must be positive).
        on_result: Called for each result as it arrives.

    Returns:
        Summary of all results; never raises for per-item failures.
    """
    if concurrency < 1:
        raise InvalidArgumentError("concurrency must be at least 1")

    items = list(ids)
    semaphore = asyncio.Semaphore(concurrency)
    queue: asyncio.Queue[BulkResult] = asyncio.Queue()
    summary = BulkSummary()

    async def worker(item: str) -> None:
        async with semaphore:
            try:
                await action(item)
            except Exception as e:
                logger.warning("Bulk item failed", id=item, error=str(e))
                await queue.put(BulkResult(id=item, error=e))
            else:
                await queue.put(BulkResult(id=item))

    async def collector() -> None:
        for _ in range(len(items)):
            result = await queue.get()
            summary.results.append(result)
            if on_result is not None:
                on_result(result)

    async with asyncio.TaskGroup() as group:
        group.create_task(collector())
        for item in items:
            group.create_task(worker(item))

    logger.info("Bulk operation finished", succeeded=summary.succeeded, total=summary.total)
    return summary


def collect_uuids(resources: Iterable[dict[str, Any]]) -> list[str]:
    """UUIDs of listed resources, skipping entries without one."""
    return [r["uuid"] for r in resources if r.get("uuid")]
