"""
Periodic background task with stop-and-drain shutdown.

Purpose
-------
Run an async callback on a fixed cadence until stopped. Each run is scheduled
only after the previous one has completed, so a task never overlaps itself;
separate PeriodicTask instances run independently of each other.

Lifecycle
---------
- start(): schedule the loop on the running event loop (idempotent)
- stop(): set the stop event so no new tick starts, then await the loop so
  an in-flight tick is allowed to finish

Error Handling
--------------
A tick that raises is logged with its traceback and counted; the loop keeps
going and the next tick runs on schedule. Cancellation is not swallowed.

Usage
-----
>>> task = PeriodicTask("decay", engine.run_tick, interval_seconds=300)
>>> task.start()
>>> ...
>>> await task.stop()
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from src.core.logging.logger import LogContext, get_logger

logger = get_logger(__name__)


@dataclass(slots=True)
class PeriodicTaskStats:
    ticks_completed: int = 0
    ticks_failed: int = 0
    last_duration_ms: float = 0.0


class PeriodicTask:
    """
    Fixed-cadence async loop around a zero-argument coroutine function.

    Parameters
    ----------
    name : str
        Task name used in logs and as the asyncio task name.
    callback : Callable[[], Awaitable[object]]
        Coroutine function invoked once per tick.
    interval_seconds : float
        Delay between the end of one tick and the start of the next.
    run_immediately : bool, default=False
        Run the first tick right away instead of after one interval.
    """

    def __init__(
        self,
        name: str,
        callback: Callable[[], Awaitable[object]],
        interval_seconds: float,
        *,
        run_immediately: bool = False,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")

        self.name = name
        self._callback = callback
        self._interval = float(interval_seconds)
        self._run_immediately = run_immediately
        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task[None]] = None
        self.stats = PeriodicTaskStats()

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_running:
            logger.debug("Periodic task already running", extra={"task_name": self.name})
            return

        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run_forever(), name=f"periodic:{self.name}")

    async def stop(self) -> None:
        """Stop scheduling new ticks and wait for an in-flight tick to finish."""
        task = self._task
        if task is None:
            return

        self._stop_event.set()
        try:
            await task
        finally:
            self._task = None

    async def _run_forever(self) -> None:
        logger.info(
            "Periodic task started",
            extra={"task_name": self.name, "interval_seconds": self._interval},
        )

        try:
            if self._run_immediately:
                await self._tick_once()

            while not self._stop_event.is_set():
                try:
                    await asyncio.wait_for(
                        self._stop_event.wait(),
                        timeout=self._interval,
                    )
                except asyncio.TimeoutError:
                    await self._tick_once()

        finally:
            logger.info(
                "Periodic task stopped",
                extra={
                    "task_name": self.name,
                    "ticks_completed": self.stats.ticks_completed,
                    "ticks_failed": self.stats.ticks_failed,
                },
            )

    async def _tick_once(self) -> None:
        start = time.perf_counter()

        async with LogContext(task=self.name, operation=f"{self.name}_tick"):
            try:
                await self._callback()
                self.stats.ticks_completed += 1
            except Exception as exc:
                self.stats.ticks_failed += 1
                logger.error(
                    "Periodic task tick failed",
                    extra={
                        "task_name": self.name,
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                    },
                    exc_info=True,
                )
            finally:
                self.stats.last_duration_ms = (time.perf_counter() - start) * 1000.0
