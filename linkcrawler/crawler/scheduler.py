"""
Crawler scheduler that wires up a crawl run and waits for it to finish.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Dict, List, Optional

from .aggregator import ResultAggregator
from .channel import ResultChannel
from .crawler import Crawler
from .depth import DepthController
from .extractor import PageExtractor, PageSource
from .fetcher import WebFetcher
from .parser import ContentParser
from .registry import VisitedRegistry
from .signals import CancellationToken, RunState, TriggerSource
from ..utils.config import Config
from ..utils.monitoring import CrawlerMonitor, MetricsCollector


@dataclass
class CrawlReport:
    """Summary of a finished crawl run."""
    state: RunState
    elapsed: float
    successes: int
    failures: int
    visited: Dict[str, str]
    max_depth: int


class CrawlerScheduler:
    """
    Owns one crawl run.

    Builds the shared state, starts the aggregator and the trigger
    listeners, runs the seed task and blocks until the aggregator is
    done. The run ends on timeout, on the interrupt trigger, or when the
    aggregator exhausts a budget.
    """

    def __init__(self, config: Config, source: Optional[PageSource] = None):
        self.config = config
        self.logger = logging.getLogger(__name__)

        self.source = source
        self.fetcher: Optional[WebFetcher] = None
        self.registry: Optional[VisitedRegistry] = None
        self.depth: Optional[DepthController] = None
        self.channel: Optional[ResultChannel] = None
        self.cancel: Optional[CancellationToken] = None
        self.monitor: Optional[CrawlerMonitor] = None
        self.crawler: Optional[Crawler] = None
        self.aggregator: Optional[ResultAggregator] = None

        self.interrupt_trigger = TriggerSource("interrupt")
        self.depth_trigger = TriggerSource("depth")

        self.state = RunState.IDLE
        self.start_time: Optional[float] = None
        self._helpers: List[asyncio.Task] = []
        self._closed = False

    async def initialize(self):
        """Build the run's shared state."""
        crawler_cfg = self.config.crawler

        if self.source is None:
            self.fetcher = WebFetcher(
                user_agent=crawler_cfg.user_agent,
                request_timeout=crawler_cfg.request_timeout,
                max_concurrent_requests=crawler_cfg.max_concurrent_requests
            )
            await self.fetcher.start()
            self.source = PageExtractor(self.fetcher, ContentParser())

        self.registry = VisitedRegistry()
        self.depth = DepthController(crawler_cfg.max_depth)
        self.channel = ResultChannel()
        self.cancel = CancellationToken()

        metrics = MetricsCollector(
            enable_server=self.config.monitoring.metrics_enabled,
            prometheus_port=self.config.monitoring.prometheus_port
        )
        metrics.start_server()
        self.monitor = CrawlerMonitor(metrics)
        self.monitor.set_depth_ceiling(crawler_cfg.max_depth)

        self.crawler = Crawler(
            source=self.source,
            registry=self.registry,
            depth=self.depth,
            channel=self.channel,
            cancel=self.cancel,
            politeness_delay=crawler_cfg.politeness_delay,
            monitor=self.monitor
        )
        self.aggregator = ResultAggregator(
            channel=self.channel,
            cancel=self.cancel,
            max_errors=crawler_cfg.max_errors,
            max_results=crawler_cfg.max_results,
            monitor=self.monitor
        )
        self.logger.info("Crawler scheduler initialized")

    async def start_crawling(self, seed_url: Optional[str] = None) -> CrawlReport:
        """
        Run one crawl from ``seed_url`` (defaults to the configured seed).

        Returns:
            CrawlReport describing how the run ended
        """
        if self.state is not RunState.IDLE:
            raise RuntimeError(f"Crawl already {self.state.value}")
        if self.crawler is None:
            await self.initialize()

        crawler_cfg = self.config.crawler
        seed_url = seed_url or crawler_cfg.seed_url

        self.state = RunState.RUNNING
        self.start_time = time.time()
        self.logger.info(f"Starting crawl of {seed_url} (max depth {crawler_cfg.max_depth}, "
                         f"timeout {crawler_cfg.timeout}s)")

        try:
            self._helpers = [
                asyncio.create_task(self._timeout(crawler_cfg.timeout), name="crawl-timeout"),
                asyncio.create_task(self._watch_interrupt(), name="interrupt-listener"),
                asyncio.create_task(self._watch_depth(), name="depth-listener"),
            ]
            if crawler_cfg.stats_interval > 0:
                self._helpers.append(asyncio.create_task(self._stats_reporter(), name="stats-reporter"))

            done = self.aggregator.start()

            # The seed runs as a tracked task so a stalled fetch cannot
            # keep the run alive past the aggregator
            self.crawler.start(seed_url, 0)

            await done.wait()
        finally:
            await self._stop_helpers()

        self.state = self._final_state()
        report = CrawlReport(
            state=self.state,
            elapsed=time.time() - self.start_time,
            successes=self.aggregator.successes,
            failures=self.aggregator.failures,
            visited=await self.registry.snapshot(),
            max_depth=await self.depth.current_ceiling()
        )
        self._log_final_stats(report)
        return report

    def interrupt(self):
        """Fire the interrupt trigger."""
        self.interrupt_trigger.fire()

    def raise_depth(self):
        """Fire the depth trigger."""
        self.depth_trigger.fire()

    async def _timeout(self, seconds: float):
        await asyncio.sleep(seconds)
        self.cancel.cancel("timeout")

    async def _watch_interrupt(self):
        await self.interrupt_trigger.wait()
        self.logger.info("Got interrupt trigger")
        self.cancel.cancel("interrupt")

    async def _watch_depth(self):
        await self.depth.listen(self.depth_trigger, self.config.crawler.depth_step, self.cancel,
                                on_raise=self.monitor.set_depth_ceiling)

    async def _stats_reporter(self):
        """Periodically log crawl progress."""
        while True:
            await asyncio.sleep(self.config.crawler.stats_interval)
            await self._log_current_stats()

    def _final_state(self) -> RunState:
        if self.aggregator.stop_reason is not None:
            return self.aggregator.stop_reason
        if self.cancel.reason == "timeout":
            return RunState.TIMED_OUT
        return RunState.INTERRUPTED

    async def _stop_helpers(self):
        for task in self._helpers:
            if not task.done():
                task.cancel()
        await asyncio.gather(*self._helpers, return_exceptions=True)
        self._helpers = []

    async def _log_current_stats(self):
        self.monitor.set_depth_ceiling(await self.depth.current_ceiling())
        self.logger.info(
            f"Crawl Progress: "
            f"Visited={len(self.registry)}, "
            f"Successes={self.aggregator.successes}, "
            f"Failures={self.aggregator.failures}, "
            f"InFlight={self.crawler.in_flight}, "
            f"Blocked={self.channel.pending}, "
            f"Elapsed={time.time() - self.start_time:.1f}s"
        )

    def _log_final_stats(self, report: CrawlReport):
        self.logger.info("=== CRAWL COMPLETED ===")
        self.logger.info(f"Stopped: {report.state.value}")
        self.logger.info(f"Pages visited: {len(report.visited)}")
        self.logger.info(f"Successes: {report.successes}")
        self.logger.info(f"Failures: {report.failures}")
        self.logger.info(f"Tasks spawned: {self.crawler.spawned}")
        self.logger.info(f"Tasks still in flight: {self.crawler.in_flight}")
        self.logger.info(f"Final depth ceiling: {report.max_depth}")
        if self.fetcher:
            self.logger.info(f"Fetcher stats: {self.fetcher.get_stats()}")
        self.logger.info(f"Total time: {report.elapsed:.2f} seconds")

    def get_stats(self) -> Dict:
        """Get current crawl statistics."""
        return {
            'state': self.state.value,
            'visited': len(self.registry) if self.registry else 0,
            'successes': self.aggregator.successes if self.aggregator else 0,
            'failures': self.aggregator.failures if self.aggregator else 0,
            'in_flight': self.crawler.in_flight if self.crawler else 0,
            'elapsed_time': time.time() - self.start_time if self.start_time else 0.0,
        }

    async def close(self):
        """Cancel leftover crawl tasks and release the fetcher."""
        if self._closed:
            return
        self._closed = True

        await self._stop_helpers()
        if self.aggregator:
            await self.aggregator.stop()
        if self.crawler:
            await self.crawler.cancel_in_flight()
        if self.fetcher:
            await self.fetcher.close()
        self.logger.info("Crawler scheduler closed")
