import asyncio

import pytest

from decision_intake.utils.concurrency import run_with_concurrency


async def test_results_follow_item_order_not_completion_order():
    delays = [0.05, 0.01, 0.03, 0.0]

    async def worker(delay, index):
        await asyncio.sleep(delay)
        return index

    assert await run_with_concurrency(delays, 2, worker) == [0, 1, 2, 3]


async def test_never_exceeds_concurrency_limit():
    in_flight = 0
    peak = 0

    async def worker(item, index):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return item * 2

    results = await run_with_concurrency(list(range(7)), 3, worker)

    assert results == [0, 2, 4, 6, 8, 10, 12]
    assert peak == 3


async def test_slow_item_does_not_block_other_runners():
    finished = []

    async def worker(item, index):
        await asyncio.sleep(item)
        finished.append(index)
        return index

    await run_with_concurrency([0.1, 0.0, 0.0, 0.0], 2, worker)

    assert finished[-1] == 0


async def test_empty_items():
    async def worker(item, index):
        raise AssertionError("should not be called")

    assert await run_with_concurrency([], 2, worker) == []


async def test_rejects_non_positive_concurrency():
    async def worker(item, index):
        return item

    with pytest.raises(ValueError):
        await run_with_concurrency([1], 0, worker)
