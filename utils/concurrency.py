"""Bounded-concurrency helpers for fan-out over rate-limited I/O.

Workers share one cursor and claim the next unclaimed index until the
input is exhausted, so no worker idles while work remains and every result
lands at its source index. Failures are not caught here: a unit of work
that wants partial-failure tolerance returns a sentinel instead of raising.
"""

import asyncio
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")


async def run_with_concurrency(
    items: Sequence[T],
    limit: int,
    worker: Callable[[T], Awaitable[R]],
) -> List[Optional[R]]:
    """Run ``worker`` over ``items`` with at most ``limit`` calls in flight.

    Returns a list the same length as ``items``, positionally aligned.
    """
    total = len(items)
    results: List[Optional[R]] = [None] * total
    if total == 0:
        return results

    cursor = 0
    worker_count = min(max(1, limit), total)

    async def _drain() -> None:
        nonlocal cursor
        while cursor < total:
            # No await between the read and the increment, so the claim is atomic
            index = cursor
            cursor += 1
            results[index] = await worker(items[index])

    logger.debug("bounded_run_started", items=total, workers=worker_count)
    await asyncio.gather(*(_drain() for _ in range(worker_count)))
    return results


async def with_bounded_concurrency(
    tasks: Sequence[Callable[[], Awaitable[R]]],
    limit: int,
) -> List[Optional[R]]:
    """Await zero-argument task factories with at most ``limit`` in flight."""
    return await run_with_concurrency(tasks, limit, lambda task: task())
