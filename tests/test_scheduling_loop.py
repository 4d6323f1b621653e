import asyncio
import time
import unittest
from typing import List, Tuple

from tickerpulse.core.scheduler import LoopState, SchedulingLoop


class IntervalBox:
    def __init__(self, value: float) -> None:
        self.value = value
        self.reads = 0

    def __call__(self) -> float:
        self.reads += 1
        return self.value


class SchedulingLoopTest(unittest.IsolatedAsyncioTestCase):
    async def test_fires_repeatedly_with_armed_interval(self) -> None:
        interval = IntervalBox(0.01)
        fired = asyncio.Event()
        count = 0

        async def cycle() -> None:
            nonlocal count
            count += 1
            if count == 3:
                fired.set()

        loop = SchedulingLoop(cycle, interval)
        loop.start()
        interval.value = 5.0  # not picked up without restart
        await asyncio.wait_for(fired.wait(), timeout=2)
        loop.stop()
        await loop.wait()

        self.assertEqual(3, count)
        self.assertEqual(0.01, loop.interval)
        self.assertEqual(1, interval.reads)
        self.assertIs(LoopState.STOPPED, loop.state)

    async def test_restart_picks_up_new_interval(self) -> None:
        interval = IntervalBox(10.0)
        done = asyncio.Event()

        async def cycle() -> None:
            done.set()

        loop = SchedulingLoop(cycle, interval)
        loop.start()
        interval.value = 0.01
        loop.restart()
        await asyncio.wait_for(done.wait(), timeout=2)
        loop.stop()

        self.assertEqual(0.01, loop.interval)

    async def test_restart_during_cycle_defers_rearm(self) -> None:
        interval = IntervalBox(0.01)
        loop: SchedulingLoop
        second = asyncio.Event()
        count = 0

        async def cycle() -> None:
            nonlocal count
            count += 1
            if count == 1:
                interval.value = 0.02
                loop.restart()
                self.assertIsNone(loop._timer)
            else:
                second.set()

        loop = SchedulingLoop(cycle, interval)
        loop.start()
        await asyncio.wait_for(second.wait(), timeout=2)
        loop.stop()

        self.assertEqual(0.02, loop.interval)

    async def test_cycles_never_overlap_under_rapid_restarts(self) -> None:
        interval = IntervalBox(0.001)
        spans: List[Tuple[float, float]] = []
        active = 0
        max_active = 0
        loop: SchedulingLoop

        async def cycle() -> None:
            nonlocal active, max_active
            active += 1
            max_active = max(max_active, active)
            start = time.monotonic()
            await asyncio.sleep(0.003)
            loop.restart()
            await asyncio.sleep(0.002)
            spans.append((start, time.monotonic()))
            active -= 1

        loop = SchedulingLoop(cycle, interval)
        loop.start()
        deadline = time.monotonic() + 0.3
        while time.monotonic() < deadline:
            interval.value = 0.0005 if interval.value >= 0.001 else 0.001
            loop.restart()
            await asyncio.sleep(0.002)
        loop.stop()
        await loop.wait()

        self.assertEqual(1, max_active)
        self.assertGreater(len(spans), 5)
        for (_, prev_end), (next_start, _) in zip(spans, spans[1:]):
            self.assertLessEqual(prev_end, next_start)

    async def test_stop_prevents_further_cycles(self) -> None:
        count = 0

        async def cycle() -> None:
            nonlocal count
            count += 1

        loop = SchedulingLoop(cycle, IntervalBox(0.01))
        loop.start()
        loop.stop()
        loop.restart()
        await asyncio.sleep(0.05)

        self.assertEqual(0, count)
        self.assertIs(LoopState.STOPPED, loop.state)

    async def test_programming_fault_stops_loop_and_surfaces(self) -> None:
        async def cycle() -> None:
            raise KeyError("boom")

        loop = SchedulingLoop(cycle, IntervalBox(0.01))
        loop.start()

        with self.assertNoLogs("tickerpulse.core.scheduler", level="ERROR"):
            with self.assertRaises(KeyError):
                await asyncio.wait_for(loop.wait(), timeout=2)
        self.assertIs(LoopState.STOPPED, loop.state)

    async def test_settle_waits_for_cycle_after_stop(self) -> None:
        started = asyncio.Event()
        release = asyncio.Event()
        finished: List[bool] = []

        async def cycle() -> None:
            started.set()
            await release.wait()
            finished.append(True)

        loop = SchedulingLoop(cycle, IntervalBox(0.01))
        loop.start()
        await asyncio.wait_for(started.wait(), timeout=2)
        loop.stop()
        self.assertTrue(loop.in_flight)

        settling = asyncio.ensure_future(loop.settle())
        await asyncio.sleep(0.01)
        self.assertFalse(settling.done())
        release.set()
        await asyncio.wait_for(settling, timeout=2)

        self.assertEqual([True], finished)
        self.assertFalse(loop.in_flight)

    async def test_start_twice_is_rejected(self) -> None:
        async def cycle() -> None:
            return None

        loop = SchedulingLoop(cycle, IntervalBox(1.0))
        loop.start()
        with self.assertRaises(RuntimeError):
            loop.start()
        loop.stop()


if __name__ == "__main__":
    unittest.main()
