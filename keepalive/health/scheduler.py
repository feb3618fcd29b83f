"""Keepalive scheduler — fires a scheduled run at a fixed interval.

Optional: deployments driven by an external cron call `keepalive run`
instead and set SCHEDULE_INTERVAL_HOURS=0.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone

from ..orchestrator.run import RunSummary, Trigger

logger = logging.getLogger(__name__)


class KeepaliveScheduler:
    """Runs ``run_fn(Trigger.SCHEDULED)`` every ``interval`` seconds.

    Lifecycle:
        scheduler = KeepaliveScheduler(runner.run, interval=6 * 3600)
        await scheduler.start()
        ...
        await scheduler.stop()
    """

    def __init__(
        self,
        run_fn: Callable[[Trigger], Awaitable[RunSummary]],
        interval: float,
    ) -> None:
        self.run_fn = run_fn
        self.interval = interval
        self._task: asyncio.Task[None] | None = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._running:
            return
        if self.interval <= 0:
            logger.info("Keepalive scheduler disabled — waiting for external trigger")
            return
        self._running = True
        self._task = asyncio.create_task(self._loop(), name="keepalive-scheduler")
        logger.info("Keepalive scheduler started: every %.0fs", self.interval)

    async def stop(self) -> None:
        self._running = False
        if self._task:
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
            self._task = None
        logger.info("Keepalive scheduler stopped")

    async def tick(self) -> RunSummary:
        """One scheduled run."""
        logger.info("Scheduled keepalive triggered at %s", datetime.now(timezone.utc).isoformat())
        return await self.run_fn(Trigger.SCHEDULED)

    async def _loop(self) -> None:
        while self._running:
            try:
                await asyncio.sleep(self.interval)
                if not self._running:
                    break
                await self.tick()
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("Scheduled keepalive run failed")
