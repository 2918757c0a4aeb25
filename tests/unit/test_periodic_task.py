"""
Unit tests for PeriodicTask scheduling and shutdown.
"""

import asyncio

import pytest

from src.core.tasks.periodic import PeriodicTask


@pytest.mark.unit
class TestPeriodicTask:
    def test_rejects_non_positive_interval(self):
        async def noop():
            return None

        with pytest.raises(ValueError):
            PeriodicTask("bad", noop, 0)

    async def test_first_tick_waits_one_interval(self):
        calls = []

        async def tick():
            calls.append(1)

        task = PeriodicTask("wait", tick, 0.2)
        task.start()
        await asyncio.sleep(0.05)
        await task.stop()

        assert calls == []

    async def test_runs_repeatedly(self):
        calls = []

        async def tick():
            calls.append(1)

        task = PeriodicTask("repeat", tick, 0.01, run_immediately=True)
        task.start()
        await asyncio.sleep(0.1)
        await task.stop()

        assert len(calls) >= 3
        assert task.stats.ticks_completed == len(calls)
        assert task.is_running is False

    async def test_failing_tick_does_not_stop_the_loop(self):
        calls = []

        async def tick():
            calls.append(1)
            raise RuntimeError("boom")

        task = PeriodicTask("flaky", tick, 0.01, run_immediately=True)
        task.start()
        await asyncio.sleep(0.1)
        await task.stop()

        assert len(calls) >= 2
        assert task.stats.ticks_failed == len(calls)
        assert task.stats.ticks_completed == 0

    async def test_stop_waits_for_in_flight_tick(self):
        started = asyncio.Event()
        finished = []

        async def slow_tick():
            started.set()
            await asyncio.sleep(0.1)
            finished.append(True)

        task = PeriodicTask("slow", slow_tick, 10, run_immediately=True)
        task.start()
        await started.wait()
        await task.stop()

        assert finished == [True]

    async def test_ticks_never_overlap(self):
        active = 0
        max_active = 0

        async def tick():
            nonlocal active, max_active
            active += 1
            max_active = max(max_active, active)
            await asyncio.sleep(0.02)
            active -= 1

        task = PeriodicTask("serial", tick, 0.001, run_immediately=True)
        task.start()
        await asyncio.sleep(0.1)
        await task.stop()

        assert max_active == 1

    async def test_start_is_idempotent(self):
        async def tick():
            return None

        task = PeriodicTask("idem", tick, 1)
        task.start()
        first = task._task
        task.start()

        assert task._task is first
        await task.stop()
