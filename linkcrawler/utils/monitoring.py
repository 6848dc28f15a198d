"""
Monitoring and metrics collection for the crawler.
"""

import time
import logging
from typing import Dict, Optional, Any

from prometheus_client import Counter, Histogram, Gauge, CollectorRegistry, generate_latest
from prometheus_client import start_http_server


class MetricsCollector:
    """Prometheus metrics for one crawl run, kept in a private registry."""

    def __init__(self, enable_server: bool = False, prometheus_port: int = 8000):
        self.logger = logging.getLogger(__name__)
        self.enable_server = enable_server
        self.prometheus_port = prometheus_port
        self.registry = CollectorRegistry()

        self.successes = Counter(
            'crawler_successes_total',
            'Pages fetched and committed to the visited registry',
            registry=self.registry
        )
        self.failures = Counter(
            'crawler_failures_total',
            'Pages that failed to fetch or parse',
            registry=self.registry
        )
        self.spawned = Counter(
            'crawler_tasks_spawned_total',
            'Crawl tasks started for newly discovered links',
            registry=self.registry
        )
        self.depth_ceiling = Gauge(
            'crawler_depth_ceiling',
            'Current maximum crawl depth',
            registry=self.registry
        )
        self.in_flight = Gauge(
            'crawler_tasks_in_flight',
            'Crawl tasks currently running',
            registry=self.registry
        )
        self.fetch_seconds = Histogram(
            'crawler_fetch_seconds',
            'Time spent in fetch-and-extract',
            registry=self.registry
        )

    def start_server(self):
        """Start the Prometheus HTTP endpoint if enabled."""
        if not self.enable_server:
            return
        start_http_server(self.prometheus_port, registry=self.registry)
        self.logger.info(f"Prometheus metrics server started on port {self.prometheus_port}")

    def export_text(self) -> str:
        """Current metrics in Prometheus text format."""
        return generate_latest(self.registry).decode('utf-8')


class CrawlerMonitor:
    """High-level monitoring interface for the crawler."""

    def __init__(self, metrics: Optional[MetricsCollector] = None):
        self.metrics = metrics or MetricsCollector()
        self.logger = logging.getLogger(__name__)
        self.start_time = time.time()
        self.counts = {
            'successes': 0,
            'failures': 0,
            'spawned': 0,
        }

    def record_success(self, url: str):
        self.counts['successes'] += 1
        self.metrics.successes.inc()

    def record_failure(self, url: str):
        self.counts['failures'] += 1
        self.metrics.failures.inc()

    def record_spawn(self, url: str):
        self.counts['spawned'] += 1
        self.metrics.spawned.inc()

    def set_depth_ceiling(self, ceiling: int):
        self.metrics.depth_ceiling.set(ceiling)

    def set_in_flight(self, count: int):
        self.metrics.in_flight.set(count)

    def observe_fetch(self, seconds: float):
        self.metrics.fetch_seconds.observe(seconds)

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of the run so far."""
        runtime = time.time() - self.start_time
        return {
            'runtime_seconds': runtime,
            'counts': dict(self.counts),
            'rates': {
                'pages_per_second': self.counts['successes'] / runtime if runtime > 0 else 0,
            }
        }
