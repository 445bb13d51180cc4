"""Tests for the bounded concurrent aggregator."""

import asyncio
import random

import pytest

from security_service.services.aggregator import ConcurrentAggregator, assemble_many


class Tracker:
    def __init__(self):
        self.active = 0
        self.peak = 0
        self.started = []

    async def work(self, item):
        self.started.append(item)
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(random.uniform(0, 0.005))
            return item * 10
        finally:
            self.active -= 1


@pytest.mark.asyncio
async def test_results_follow_input_order():
    tracker = Tracker()
    items = list(range(20))

    results = await ConcurrentAggregator(limit=5).assemble_many(items, tracker.work)

    assert results == [i * 10 for i in items]


@pytest.mark.asyncio
async def test_never_more_than_limit_in_flight():
    tracker = Tracker()

    await ConcurrentAggregator(limit=5).assemble_many(list(range(30)), tracker.work)

    assert 1 <= tracker.peak <= 5
    assert sorted(tracker.started) == list(range(30))


@pytest.mark.asyncio
async def test_limit_of_one_is_sequential():
    tracker = Tracker()
    await assemble_many(list(range(6)), tracker.work, limit=1)
    assert tracker.peak == 1


@pytest.mark.asyncio
async def test_failure_fails_the_batch():
    async def work(item):
        await asyncio.sleep(0)
        if item == 7:
            raise LookupError("item 7 is broken")
        return item

    with pytest.raises(LookupError, match="item 7"):
        await ConcurrentAggregator(limit=5).assemble_many(list(range(12)), work)


@pytest.mark.asyncio
async def test_failure_still_waits_for_running_units():
    finished = []

    async def work(item):
        if item == 0:
            raise RuntimeError("boom")
        await asyncio.sleep(0.01)
        finished.append(item)
        return item

    with pytest.raises(RuntimeError):
        await ConcurrentAggregator(limit=3).assemble_many(list(range(6)), work)

    assert sorted(finished) == [1, 2, 3, 4, 5]


@pytest.mark.asyncio
async def test_empty_input():
    async def work(item):
        raise AssertionError("should not run")

    assert await ConcurrentAggregator().assemble_many([], work) == []


def test_default_limit_comes_from_settings():
    assert ConcurrentAggregator().limit == 5


def test_rejects_non_positive_limit():
    with pytest.raises(ValueError):
        ConcurrentAggregator(limit=-1)


@pytest.mark.asyncio
async def test_cancelled_unit_does_not_hang_the_batch():
    async def work(item):
        await asyncio.sleep(0)
        if item == 2:
            raise asyncio.CancelledError()
        return item

    with pytest.raises(asyncio.CancelledError):
        await asyncio.wait_for(ConcurrentAggregator(limit=2).assemble_many(list(range(5)), work), timeout=2)
