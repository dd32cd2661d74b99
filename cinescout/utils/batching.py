import asyncio
from typing import Awaitable, Callable, Iterable, TypeVar

from cinescout.core.logger import logger

T = TypeVar("T")
R = TypeVar("R")


async def gather_in_batches(
    items: Iterable[T],
    worker: Callable[[T], Awaitable[R]],
    batch_size: int = 5,
    label: str = "task",
) -> list[R]:
    """Run ``worker`` over ``items`` with at most ``batch_size`` in flight.

    Results keep input order. A failing item is logged and dropped, its
    siblings are unaffected.
    """
    items = list(items)
    batch_size = max(1, batch_size)
    results = []

    for start in range(0, len(items), batch_size):
        batch = items[start : start + batch_size]
        outcomes = await asyncio.gather(
            *(worker(item) for item in batch), return_exceptions=True
        )
        for item, outcome in zip(batch, outcomes):
            if isinstance(outcome, Exception):
                logger.warning(f"{label} failed for {item}: {outcome}")
                continue
            results.append(outcome)

    return results
