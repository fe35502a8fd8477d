"""
Bounded, order-preserving worker pool for asyncio.
"""
import asyncio
from typing import Awaitable, Callable, List, Sequence, TypeVar

from decision_intake.utils.logger import get_logger

logger = get_logger(__name__)

ItemT = TypeVar("ItemT")
ResultT = TypeVar("ResultT")


async def run_with_concurrency(
    items: Sequence[ItemT],
    concurrency: int,
    worker: Callable[[ItemT, int], Awaitable[ResultT]],
) -> List[ResultT]:
    """
    Process items with at most `concurrency` workers in flight.

    Spawns min(concurrency, len(items)) runners that pull the next
    unclaimed index from a shared cursor, so a slow item never holds back
    the others. Each result is written at its item's index; the call
    returns once every runner has drained the queue.

    Args:
        items: Work items
        concurrency: Maximum number of concurrent workers
        worker: Coroutine function called as worker(item, index)

    Returns:
        Results in item order
    """
    if concurrency < 1:
        raise ValueError(f"concurrency must be >= 1, got {concurrency}")

    results: List[ResultT] = [None] * len(items)  # type: ignore[list-item]
    next_index = 0

    async def runner(runner_id: int) -> None:
        nonlocal next_index
        while True:
            # Claiming is atomic: no await between the check and the increment.
            current = next_index
            if current >= len(items):
                return
            next_index += 1
            logger.debug(f"Runner {runner_id} claimed item {current + 1}/{len(items)}")
            results[current] = await worker(items[current], current)

    runner_count = min(concurrency, len(items))
    await asyncio.gather(*(runner(i) for i in range(runner_count)))
    return results
