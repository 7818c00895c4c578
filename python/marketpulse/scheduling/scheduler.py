from __future__ import annotations

import asyncio
import time
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional, Set

from loguru import logger

from marketpulse.scheduling.triggers import Trigger

Clock = Callable[[], datetime]
Sleeper = Callable[[float], Awaitable[Any]]
Action = Callable[[], Awaitable[Any]]


def local_now() -> datetime:
    """Current time as an aware datetime in the local zone."""
    return datetime.now().astimezone()


class RecurringJob:
    """Runs ``action`` each time ``trigger`` comes due.

    Firings of one job never overlap: the next slot is only waited for after
    the current run has finished, and a run that overruns its next slot is
    followed by a single immediate firing. A failing run is logged and does
    not stop the schedule. Stopping the job cancels future firings only; a
    run already in progress is shielded and completes on its own.
    """

    def __init__(
        self,
        name: str,
        trigger: Trigger,
        action: Action,
        *,
        clock: Optional[Clock] = None,
        sleep: Optional[Sleeper] = None,
    ) -> None:
        self.name = name
        self._trigger = trigger
        self._action = action
        self._clock = clock or local_now
        self._sleep = sleep or asyncio.sleep
        self._task: Optional[asyncio.Task] = None
        self._inflight: Set[asyncio.Task] = set()
        self.fire_count = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def busy(self) -> bool:
        return bool(self._inflight)

    def start(self) -> None:
        if self._task is not None:
            raise RuntimeError(f"{self.name} job already started")
        self._task = asyncio.create_task(self._loop(), name=f"{self.name}-trigger")

    async def stop(self) -> None:
        task = self._task
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("{} trigger stopped after {} firing(s)", self.name, self.fire_count)

    async def wait_idle(self) -> None:
        """Wait for in-flight runs (including ones left running by ``stop``)."""
        if self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    async def _loop(self) -> None:
        scheduled = self._trigger.next_fire(self._clock())
        logger.info("{} trigger armed, first firing at {}", self.name, scheduled)
        while True:
            await self._sleep(self._seconds_until(scheduled))
            # Woken early after a clock change or sleep drift.
            remaining = self._seconds_until(scheduled)
            while remaining > 0:
                await self._sleep(remaining)
                remaining = self._seconds_until(scheduled)
            await self._fire()

            scheduled = self._trigger.next_fire(scheduled)
            now = self._clock()
            if scheduled < now:
                logger.warning(
                    "{} run overran the slot due at {}; firing again immediately",
                    self.name,
                    scheduled,
                )
                scheduled = now

    def _seconds_until(self, when: datetime) -> float:
        return max(0.0, (when - self._clock()).total_seconds())

    async def _fire(self) -> None:
        self.fire_count += 1
        run = asyncio.create_task(
            self._run(self.fire_count), name=f"{self.name}-run-{self.fire_count}"
        )
        self._inflight.add(run)
        run.add_done_callback(self._inflight.discard)
        await asyncio.shield(run)

    async def _run(self, number: int) -> None:
        logger.info("{} run #{} started", self.name, number)
        started = time.monotonic()
        try:
            await self._action()
        except Exception:
            logger.exception("{} run #{} failed", self.name, number)
            return
        logger.info(
            "{} run #{} finished in {:.1f}s", self.name, number, time.monotonic() - started
        )


class ReportScheduler:
    """Owns the market and sentiment jobs; they start and stop together."""

    def __init__(self, market_job: RecurringJob, sentiment_job: RecurringJob) -> None:
        self.market_job = market_job
        self.sentiment_job = sentiment_job
        self._started = False
        self._stopped = False

    @property
    def jobs(self) -> tuple[RecurringJob, RecurringJob]:
        return self.market_job, self.sentiment_job

    def start(self) -> None:
        if self._started:
            raise RuntimeError("Scheduler already started")
        self._started = True
        for job in self.jobs:
            job.start()

    async def stop(self, wait: bool = False) -> None:
        if self._stopped:
            return
        self._stopped = True
        await asyncio.gather(*(job.stop() for job in self.jobs))
        if wait:
            await self.wait_idle()

    async def wait_idle(self) -> None:
        await asyncio.gather(*(job.wait_idle() for job in self.jobs))
