"""
Repeating async timer with cooperative cancellation.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

# Multiplier applied to the interval after a failed tick
BACKOFF_FACTOR = 2


class Scheduler:
    """
    Runs a coroutine function repeatedly with a fixed pause between runs.

    Ticks never overlap: the next tick starts only after the previous one
    and the pause have completed. A stop request is honored between ticks.

    Args:
        interval: Seconds to wait after a successful tick
        sleep: Awaitable sleep function
        max_cycles: Stop after this many ticks (None = run until stopped)
    """

    def __init__(
        self,
        interval: float,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        max_cycles: Optional[int] = None,
    ):
        self.interval = interval
        self.max_cycles = max_cycles
        self._sleep = sleep
        self._running = False
        self._stop_requested = False
        self.cycles = 0
        self.failures = 0

    @property
    def is_running(self) -> bool:
        return self._running

    def stop(self) -> None:
        self._stop_requested = True

    def _should_continue(self) -> bool:
        if self._stop_requested:
            return False
        return self.max_cycles is None or self.cycles < self.max_cycles

    async def run(self, tick: Callable[[], Awaitable[object]]) -> None:
        """
        Call tick() until stop() is called or max_cycles is reached.

        An exception from tick() is logged and counted; the following pause is
        doubled. Cancellation propagates.
        """
        self._running = True
        self._stop_requested = False
        self.cycles = 0

        try:
            while self._should_continue():
                delay = self.interval
                try:
                    await tick()
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    self.failures += 1
                    delay = self.interval * BACKOFF_FACTOR
                    logger.error(f"Scheduled task failed: {e}", exc_info=True)
                self.cycles += 1

                if not self._should_continue():
                    break
                await self._sleep(delay)
        finally:
            self._running = False
