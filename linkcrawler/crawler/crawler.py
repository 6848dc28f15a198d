"""
Recursive crawl task: visit one address, report it, fan out to its links.
"""

import asyncio
import logging
import time
from typing import Optional, Set

import aiohttp

from .channel import ResultChannel
from .depth import DepthController
from .errors import FetchError
from .extractor import PageSource
from .outcomes import Failure, Success
from .registry import VisitedRegistry
from .signals import CancellationToken
from ..utils.logger import get_crawler_logger
from ..utils.monitoring import CrawlerMonitor


class Crawler:
    """
    Runs crawl tasks against shared run state.

    Each call to ``crawl()`` handles a single address. Newly discovered
    links are crawled by independent asyncio tasks that the parent never
    waits for; they report only through the result channel.
    """

    def __init__(self, source: PageSource, registry: VisitedRegistry,
                 depth: DepthController, channel: ResultChannel,
                 cancel: CancellationToken, politeness_delay: float = 2.0,
                 monitor: Optional[CrawlerMonitor] = None):
        self.source = source
        self.registry = registry
        self.depth = depth
        self.channel = channel
        self.cancel = cancel
        self.politeness_delay = politeness_delay
        self.monitor = monitor
        self.logger = get_crawler_logger(__name__)

        self._tasks: Set[asyncio.Task] = set()
        self.spawned = 0

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def crawl(self, url: str, depth: int):
        """Visit ``url`` at ``depth``."""
        if self.cancel.is_cancelled:
            return

        # Throttle; wakes early so a cancelled run stops promptly
        if await self.cancel.sleep(self.politeness_delay):
            return

        if not await self.depth.allows(depth):
            self.logger.log_url_event(logging.DEBUG, url, f"Skipping beyond max depth ({depth})", depth=depth)
            return

        start_time = time.time()
        error: Optional[FetchError] = None
        try:
            page = await self.source.extract(url)
        except FetchError as e:
            error = e
        except (aiohttp.ClientError, asyncio.TimeoutError, UnicodeError) as e:
            error = FetchError(url, str(e) or type(e).__name__, e)
        except Exception as e:
            # Parser and custom source errors still count against the error budget
            self.logger.log_url_event(logging.WARNING, url, f"Unexpected extract error: {e!r}", depth=depth)
            error = FetchError(url, str(e) or type(e).__name__, e)

        if self.monitor:
            self.monitor.observe_fetch(time.time() - start_time)

        if error is not None:
            await self._report(Failure(url=url, error=error, depth=depth))
            return

        if not await self.registry.try_claim(url, page.title):
            self.logger.log_url_event(logging.DEBUG, url, "Already committed by another task", depth=depth)
            return

        await self._report(Success(url=url, title=page.title, depth=depth))

        for link in page.links:
            if await self.registry.is_visited(link):
                continue
            self._spawn(link, depth + 1)

    async def _report(self, outcome):
        delivered = await self.channel.send(outcome)
        if not delivered:
            self.logger.log_url_event(logging.DEBUG, outcome.url, "Result dropped, channel closed", depth=outcome.depth)

    def start(self, url: str, depth: int = 0) -> asyncio.Task:
        """Run ``crawl(url, depth)`` as a tracked task."""
        task = asyncio.create_task(self.crawl(url, depth), name=f"crawl:{url}")
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        if self.monitor:
            self.monitor.set_in_flight(len(self._tasks))
        return task

    def _spawn(self, url: str, depth: int):
        self.start(url, depth)
        self.spawned += 1
        if self.monitor:
            self.monitor.record_spawn(url)

    def _task_done(self, task: asyncio.Task):
        self._tasks.discard(task)
        if self.monitor:
            self.monitor.set_in_flight(len(self._tasks))
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self.logger.error(f"Crawl task {task.get_name()} crashed: {exc}", exc_info=exc)

    async def wait_idle(self):
        """Wait until every spawned task, including ones spawned meanwhile, has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def cancel_in_flight(self):
        """Cancel all running crawl tasks and wait for them to unwind."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self.logger.debug(f"Cancelled {len(tasks)} in-flight crawl tasks")
