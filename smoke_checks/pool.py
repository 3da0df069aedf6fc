from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")


async def run_all(items: Sequence[T], limit: int, worker: Callable[[T], Awaitable[R]]) -> list[R]:
    """
    Run `worker` over `items` with at most `limit` calls in flight.

    Each task writes into the slot of its input index, so the returned list
    follows input order regardless of completion order. Every task is awaited
    before returning; if any worker raised, the first exception (by input index)
    is re-raised afterwards.
    """
    if int(limit) < 1:
        raise ValueError(f"limit must be >= 1, got {limit!r}")

    slots: list[R | None] = [None] * len(items)
    sem = asyncio.Semaphore(int(limit))

    async def _run_one(idx: int, item: T) -> None:
        async with sem:
            slots[idx] = await worker(item)

    tasks = [asyncio.create_task(_run_one(i, item)) for i, item in enumerate(items)]
    outcomes = await asyncio.gather(*tasks, return_exceptions=True)
    for res in outcomes:
        if isinstance(res, BaseException):
            raise res
    return slots  # type: ignore[return-value]
