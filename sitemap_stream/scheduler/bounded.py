"""
Bounded-concurrency task runner.
Runs zero-argument coroutine factories with at most ``cap`` in flight.
"""

import asyncio
from typing import Awaitable, Callable, List, Sequence, TypeVar

from sitemap_stream.errors import AggregateError

T = TypeVar("T")

Task = Callable[[], Awaitable[T]]


async def run_capped(tasks: Sequence[Task], cap: int) -> List[T]:
    """
    Run ``tasks`` with at most ``cap`` of them awaiting at once.

    Tasks start in input order as slots free up. A failing task does not
    cancel its siblings: every task runs to completion, then an
    AggregateError carrying all failures is raised if any occurred.

    Returns:
        Task results, in input order
    """
    if cap < 1 or not tasks:
        return []

    semaphore = asyncio.Semaphore(cap)

    async def run_one(task: Task) -> T:
        async with semaphore:
            return await task()

    results = await asyncio.gather(*(run_one(task) for task in tasks), return_exceptions=True)

    failures = []
    for result in results:
        if isinstance(result, Exception):
            failures.append(result)
        elif isinstance(result, BaseException):
            # Cancellation and interpreter exits are not task failures
            raise result
    if failures:
        raise AggregateError(failures)
    return list(results)
