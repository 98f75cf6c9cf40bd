"""Recurring sync scheduler.

An explicitly owned object with start/stop/status and an internal asyncio
timer task. A failing pass is logged and swallowed; the next tick is the only
retry.
"""

from __future__ import annotations

import asyncio
import time
from datetime import UTC, datetime, timedelta
from typing import Protocol

from tariffsync.core.logging import get_logger, sync_pass_id_ctx
from tariffsync.features.sync.pipeline import SyncPassResult, new_pass_id
from tariffsync.features.sync.schemas import SchedulerState, SchedulerStatus

logger = get_logger(__name__)

SECONDS_PER_HOUR = 3600


class SyncRunner(Protocol):
    """Anything that can execute one pass (SyncPipeline in production)."""

    async def run(self) -> SyncPassResult: ...


class SyncScheduler:
    """Drives sync passes on a fixed cadence.

    start() runs one pass immediately and then arms the timer. Ticks are
    fixed-rate; a tick that comes due while a pass is still running is
    skipped rather than overlapped. stop() only prevents future ticks: an
    in-flight pass is shielded from cancellation and runs to completion.
    """

    def __init__(self, pipeline: SyncRunner, interval_hours: int) -> None:
        """Initialize an idle scheduler.

        Args:
            pipeline: Pass runner.
            interval_hours: Tick interval in whole hours, at least 1.

        Raises:
            ValueError: If the interval is not a positive whole number of hours.
        """
        if isinstance(interval_hours, bool) or not isinstance(interval_hours, int):
            raise ValueError(f"interval_hours must be an integer, got {interval_hours!r}")
        if interval_hours < 1:
            raise ValueError(f"interval_hours must be >= 1, got {interval_hours}")

        self.pipeline = pipeline
        self.interval_hours = interval_hours
        self._state = SchedulerState.IDLE
        self._starting = False
        self._stop_requested = False
        self._timer: asyncio.Task[None] | None = None
        self._inflight: set[asyncio.Task[SyncPassResult | None]] = set()

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is SchedulerState.RUNNING

    @property
    def interval_seconds(self) -> float:
        return float(self.interval_hours * SECONDS_PER_HOUR)

    async def start(self) -> None:
        """Run one pass now, then schedule a pass every interval.

        No-op (with a warning) if already running or starting. A stop() that
        arrives during the first pass leaves the scheduler idle once that
        pass completes.
        """
        if self.is_running or self._starting:
            logger.warning("scheduler.already_running", interval_hours=self.interval_hours)
            return

        self._starting = True
        self._stop_requested = False
        try:
            logger.info("scheduler.starting", interval_hours=self.interval_hours)
            await self.run_pass()
            if self._stop_requested:
                logger.info("scheduler.start_cancelled")
                return
            self._timer = asyncio.create_task(self._tick_loop(), name="tariff-sync-timer")
            self._state = SchedulerState.RUNNING
        finally:
            self._starting = False
            self._stop_requested = False

        logger.info("scheduler.started", interval_hours=self.interval_hours)

    def stop(self) -> None:
        """Cancel future ticks. No-op (with a warning) if idle."""
        if self._starting:
            self._stop_requested = True
            logger.info("scheduler.stop_requested_during_start")
            return

        if not self.is_running:
            logger.warning("scheduler.not_running")
            return

        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._state = SchedulerState.IDLE

        logger.info("scheduler.stopped", inflight_passes=len(self._inflight))

    def status(self) -> SchedulerStatus:
        """Current state, interval and estimated next run time."""
        next_run_at = None
        if self.is_running:
            next_run_at = datetime.now(UTC) + timedelta(hours=self.interval_hours)
        return SchedulerStatus(
            running=self.is_running,
            state=self._state,
            interval_hours=self.interval_hours,
            next_run_at=next_run_at,
        )

    async def drain(self) -> None:
        """Wait for passes that were in flight when the timer was cancelled."""
        if self._inflight:
            await asyncio.gather(*self._inflight, return_exceptions=True)

    async def run_pass(self) -> SyncPassResult | None:
        """Execute one pass, containing any failure.

        Returns:
            Pass result, or None if the pass failed.
        """
        token = sync_pass_id_ctx.set(new_pass_id())
        start_time = time.perf_counter()
        try:
            return await self.pipeline.run()
        except Exception as e:
            logger.error(
                "scheduler.pass_failed",
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
                exc_info=True,
            )
            return None
        finally:
            sync_pass_id_ctx.reset(token)

    async def _tick_loop(self) -> None:
        loop = asyncio.get_running_loop()
        next_at = loop.time() + self.interval_seconds

        while True:
            await asyncio.sleep(max(0.0, next_at - loop.time()))

            task = asyncio.create_task(self.run_pass())
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)
            await asyncio.shield(task)

            next_at += self.interval_seconds
            now = loop.time()
            if next_at <= now:
                skipped = int((now - next_at) // self.interval_seconds) + 1
                next_at += skipped * self.interval_seconds
                logger.warning("scheduler.ticks_skipped", skipped=skipped)
