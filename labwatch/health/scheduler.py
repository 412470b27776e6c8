"""Poll scheduler — probes all services whenever the configured interval elapses.

Ticks on a short fixed period regardless of the interval, re-reading the
interval from the store on every tick, so a change applies on the next
tick without restarting anything. Each tick runs in a worker thread:

    snapshot (locked) → probe (unlocked) → store verdict (locked) → notify

The first tick always probes, so status shows up without waiting a full
interval after startup.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

from .models import HealthReport
from .prober import PROBE_TIMEOUT, aggregate, probe
from .store import HealthStore

if TYPE_CHECKING:
    from labwatch.presentation import StatusPresenter

logger = logging.getLogger(__name__)

TICK_SECONDS = 1.0


class PollScheduler:
    """Single long-lived polling loop over a HealthStore.

    Lifecycle:
        scheduler = PollScheduler(store, presenter)
        await scheduler.start()
        ...
        await scheduler.stop()
    """

    def __init__(
        self,
        store: HealthStore,
        presenter: StatusPresenter | None = None,
        tick_seconds: float = TICK_SECONDS,
        probe_timeout: float = PROBE_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.store = store
        self.presenter = presenter
        self.tick_seconds = tick_seconds
        self.probe_timeout = probe_timeout
        self._clock = clock
        self._last_check: float | None = None  # None = never probed, first tick is due
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="labwatch-poll")
        self._task: asyncio.Task[None] | None = None
        self._running = False

    @property
    def last_check(self) -> float | None:
        return self._last_check

    def is_due(self, interval_secs: int, now: float) -> bool:
        if self._last_check is None:
            return True
        return now - self._last_check >= interval_secs

    def tick(self) -> HealthReport | None:
        """One scheduler step. Returns the report if a probe ran, else None."""
        config = self.store.snapshot()
        if not self.is_due(config.interval_secs, self._clock()):
            return None

        results = probe(config.services, timeout=self.probe_timeout)
        healthy = aggregate(results)
        report = HealthReport.from_results(results, healthy)
        self.store.set_health(healthy, report)

        if self.presenter is not None:
            try:
                self.presenter.refresh(report, config.icon_set)
            except Exception:
                logger.exception("Presenter refresh failed")

        self._last_check = self._clock()
        logger.debug(
            "Poll complete: %d services, healthy=%s, next in %ds",
            len(results), healthy, config.interval_secs,
        )
        return report

    async def run_forever(self) -> None:
        """Tick forever. A failing tick is logged and the loop carries on."""
        loop = asyncio.get_running_loop()
        while True:
            try:
                await loop.run_in_executor(self._executor, self.tick)
            except Exception:
                logger.exception("Poll tick failed")
            await asyncio.sleep(self.tick_seconds)

    async def start(self) -> None:
        """Start the background polling task."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self.run_forever(), name="labwatch-poll")
        logger.info("Poll scheduler started (tick=%ss)", self.tick_seconds)

    async def stop(self) -> None:
        """Cancel the polling task."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        self._executor.shutdown(wait=False)
        logger.info("Poll scheduler stopped")
