"""
Tests for the repeating scan scheduler.
"""

import pytest

from arbitrage_monitor.scheduler import Scheduler


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


@pytest.mark.asyncio
async def test_runs_max_cycles():
    sleep = RecordingSleep()
    calls = []

    async def tick():
        calls.append(1)

    scheduler = Scheduler(5.0, sleep=sleep, max_cycles=3)
    await scheduler.run(tick)

    assert len(calls) == 3
    # No pause after the final tick
    assert sleep.delays == [5.0, 5.0]
    assert scheduler.is_running is False


@pytest.mark.asyncio
async def test_failed_tick_doubles_delay():
    sleep = RecordingSleep()
    outcomes = iter([None, RuntimeError("rpc down"), None, None])

    async def tick():
        outcome = next(outcomes)
        if outcome:
            raise outcome

    scheduler = Scheduler(5.0, sleep=sleep, max_cycles=4)
    await scheduler.run(tick)

    assert sleep.delays == [5.0, 10.0, 5.0]
    assert scheduler.failures == 1
    assert scheduler.cycles == 4


@pytest.mark.asyncio
async def test_stop_honored_between_cycles():
    sleep = RecordingSleep()
    calls = []
    scheduler = Scheduler(1.0, sleep=sleep)

    async def tick():
        calls.append(scheduler.is_running)
        if len(calls) == 2:
            scheduler.stop()

    await scheduler.run(tick)

    # The tick that requested the stop still completes
    assert calls == [True, True]
    assert sleep.delays == [1.0]
    assert scheduler.is_running is False
