"""Periodic sweep of expired conversation contexts."""

import asyncio
import logging

from switchboard.application.services.orchestrator import Orchestrator
from switchboard.config import CleanupConfig

logger = logging.getLogger(__name__)


class ContextSweeper:
    """Deletes expired non-threaded contexts on a fixed interval.

    The first sweep runs as soon as ``start()`` is awaited. A failed sweep
    is logged and retried on the next tick; ``stop()`` interrupts the wait
    between sweeps, never a sweep in progress.
    """

    def __init__(self, orchestrator: Orchestrator, config: CleanupConfig) -> None:
        self._orchestrator = orchestrator
        self._interval = config.interval_seconds
        self._wakeup = asyncio.Event()
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    async def sweep_once(self) -> int | None:
        """1 回だけ掃除する

        Returns:
            削除件数。失敗した場合は None
        """
        try:
            removed = await self._orchestrator.cleanup()
        except Exception:
            logger.exception("Context sweep failed; retrying in %ds", self._interval)
            return None
        if removed:
            logger.info("Context sweep removed %d expired contexts", removed)
        return removed

    async def _sleep(self) -> bool:
        """Wait one interval. True when stop() cut the wait short."""
        try:
            await asyncio.wait_for(self._wakeup.wait(), timeout=self._interval)
        except asyncio.TimeoutError:
            return False
        return True

    async def start(self) -> None:
        if self._running:
            logger.warning("ContextSweeper is already running; start() ignored")
            return
        self._running = True
        self._wakeup.clear()
        try:
            while True:
                await self.sweep_once()
                if await self._sleep():
                    break
        finally:
            self._running = False

    async def stop(self) -> None:
        self._wakeup.set()
