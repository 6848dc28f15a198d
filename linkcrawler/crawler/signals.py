"""
Out-of-band triggers and the shared cancellation signal of a crawl run.
"""

import asyncio
import logging
from enum import Enum
from typing import Optional


class RunState(Enum):
    """Lifecycle of one crawl run."""
    IDLE = "idle"
    RUNNING = "running"
    TIMED_OUT = "timed_out"
    INTERRUPTED = "interrupted"
    BUDGET_EXHAUSTED = "budget_exhausted"

    @property
    def terminal(self) -> bool:
        return self not in (RunState.IDLE, RunState.RUNNING)


class TriggerSource:
    """
    An external event source that can fire any number of times.

    ``fire()`` is synchronous so it can be called from a loop signal
    handler. Firings are counted and each one releases exactly one
    ``wait()``.
    """

    def __init__(self, name: str):
        self.name = name
        self.fired = 0
        self._queue: "asyncio.Queue[None]" = asyncio.Queue()

    def fire(self):
        self.fired += 1
        self._queue.put_nowait(None)

    async def wait(self):
        """Wait for the next firing."""
        await self._queue.get()

    def __repr__(self) -> str:
        return f"TriggerSource({self.name!r}, fired={self.fired})"


class CancellationToken:
    """
    Shared cancellation signal polled by every crawl task.

    The first ``cancel()`` wins; its reason is kept for reporting.
    """

    def __init__(self):
        self._event = asyncio.Event()
        self.reason: Optional[str] = None
        self.logger = logging.getLogger(__name__)

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "cancelled") -> bool:
        """Set the signal. Returns False if it was already set."""
        if self._event.is_set():
            return False
        self.reason = reason
        self._event.set()
        self.logger.info(f"Crawl cancelled: {reason}")
        return True

    async def wait(self):
        await self._event.wait()

    async def sleep(self, delay: float) -> bool:
        """Sleep for ``delay`` seconds, waking early on cancellation.

        Returns True if the token was cancelled.
        """
        if delay <= 0:
            return self.is_cancelled
        try:
            await asyncio.wait_for(self._event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass
        return self.is_cancelled
