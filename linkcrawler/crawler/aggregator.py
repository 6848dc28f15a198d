"""
Result aggregator: consumes outcomes and decides when the crawl is done.
"""

import asyncio
import logging
from typing import Callable, List, Optional

from .channel import ResultChannel
from .errors import ChannelClosed
from .outcomes import Failure, Outcome
from .signals import CancellationToken, RunState
from ..utils.logger import get_crawler_logger
from ..utils.monitoring import CrawlerMonitor


class ResultAggregator:
    """
    Reads outcomes from the result channel until a budget runs out or
    the run is cancelled.

    Stopping closes the channel and sets ``done``. Crawl tasks still in
    flight are left alone.
    """

    def __init__(self, channel: ResultChannel, cancel: CancellationToken,
                 max_errors: int, max_results: int,
                 monitor: Optional[CrawlerMonitor] = None):
        self.channel = channel
        self.cancel = cancel
        self.errors_remaining = max_errors
        self.results_remaining = max_results
        self.monitor = monitor
        self.logger = get_crawler_logger(__name__)

        self.successes = 0
        self.failures = 0
        self.stop_reason: Optional[RunState] = None
        self.done = asyncio.Event()
        self.on_outcome: List[Callable[[Outcome], None]] = []
        self._task: Optional[asyncio.Task] = None

    def start(self) -> asyncio.Event:
        """Run the aggregator in the background and return its ``done`` event."""
        if self._task is None:
            self._task = asyncio.create_task(self.run(), name="result-aggregator")
        return self.done

    async def stop(self):
        """Cancel a background aggregator, if one is running."""
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

    async def run(self):
        try:
            await self._consume()
        finally:
            self.channel.close()
            self.done.set()

    async def _consume(self):
        cancelled = asyncio.ensure_future(self.cancel.wait())
        try:
            while True:
                if self.cancel.is_cancelled:
                    self._stop(self._cancel_state(), "crawl cancelled")
                    return

                received = asyncio.ensure_future(self.channel.receive())
                await asyncio.wait([received, cancelled], return_when=asyncio.FIRST_COMPLETED)

                # Cancellation wins over an outcome that arrived at the same time
                if self.cancel.is_cancelled:
                    received.cancel()
                    self._stop(self._cancel_state(), "crawl cancelled")
                    return

                try:
                    outcome = received.result()
                except ChannelClosed:
                    self._stop(RunState.BUDGET_EXHAUSTED, "result channel closed")
                    return

                if self._handle(outcome):
                    return
        finally:
            cancelled.cancel()

    def _handle(self, outcome: Outcome) -> bool:
        """Account for one outcome. Returns True when a budget is exhausted."""
        for callback in self.on_outcome:
            callback(outcome)

        if isinstance(outcome, Failure):
            self.failures += 1
            if self.monitor:
                self.monitor.record_failure(outcome.url)
            self.logger.log_url_event(logging.WARNING, outcome.url, f"crawl failed: {outcome.error.reason}",
                                      depth=outcome.depth)
            self.errors_remaining -= 1
            if self.errors_remaining <= 0:
                self._stop(RunState.BUDGET_EXHAUSTED, "max errors exceeded")
                return True
            return False

        self.successes += 1
        if self.monitor:
            self.monitor.record_success(outcome.url)
        self.logger.info(f"crawling result: {outcome}")
        self.results_remaining -= 1
        if self.results_remaining <= 0:
            self._stop(RunState.BUDGET_EXHAUSTED, "got max results")
            return True
        return False

    def _cancel_state(self) -> RunState:
        if self.cancel.reason == "timeout":
            return RunState.TIMED_OUT
        return RunState.INTERRUPTED

    def _stop(self, state: RunState, message: str):
        self.stop_reason = state
        self.logger.info(message)
