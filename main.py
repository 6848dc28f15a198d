#!/usr/bin/env python3
"""
Main entry point for the link crawler.
"""

import asyncio
import argparse
import logging
import signal
import sys
import time
from pathlib import Path
from typing import Optional

from linkcrawler import __version__
from linkcrawler.crawler.scheduler import CrawlerScheduler
from linkcrawler.utils.config import Config, load_config, apply_overrides, validate_config
from linkcrawler.utils.logger import setup_logging


class CrawlerApp:
    """Main application class for the link crawler."""

    def __init__(self):
        self.scheduler: Optional[CrawlerScheduler] = None
        self.logger = logging.getLogger(__name__)

    def setup_signal_handlers(self, loop: asyncio.AbstractEventLoop):
        """Route OS signals to the scheduler's triggers."""
        def interrupt(signum):
            self.logger.info(f"Got signal {signal.Signals(signum).name}")
            self.scheduler.interrupt()

        def raise_depth():
            self.logger.info("Got signal SIGUSR1")
            self.scheduler.raise_depth()

        for signum in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(signum, interrupt, signum)
        if hasattr(signal, 'SIGUSR1'):
            loop.add_signal_handler(signal.SIGUSR1, raise_depth)

    def remove_signal_handlers(self, loop: asyncio.AbstractEventLoop):
        for name in ('SIGINT', 'SIGTERM', 'SIGUSR1'):
            signum = getattr(signal, name, None)
            if signum is not None:
                loop.remove_signal_handler(signum)

    async def run(self, config: Config) -> int:
        """Run the crawler."""
        started = time.time()
        loop = asyncio.get_running_loop()
        try:
            self.logger.info("=== LINK CRAWLER STARTING ===")
            self.logger.info(f"Seed URL: {config.crawler.seed_url}")
            self.logger.info(f"Max depth: {config.crawler.max_depth} (+{config.crawler.depth_step} on SIGUSR1)")
            self.logger.info(f"Timeout: {config.crawler.timeout}s")
            self.logger.info(f"Budgets: {config.crawler.max_errors} errors, {config.crawler.max_results} results")

            self.scheduler = CrawlerScheduler(config)
            await self.scheduler.initialize()
            self.setup_signal_handlers(loop)

            report = await self.scheduler.start_crawling()
            self.logger.info(f"Crawl ended: {report.state.value}")

        except Exception as e:
            self.logger.error(f"Fatal error: {e}", exc_info=True)
            return 1

        finally:
            self.remove_signal_handlers(loop)
            if self.scheduler:
                await self.scheduler.close()
            self.logger.info(f"=== LINK CRAWLER FINISHED in {time.time() - started:.2f}s ===")

        return 0


def build_config(args: argparse.Namespace) -> Config:
    """Load the config file (or defaults when only a URL is given) and apply CLI overrides."""
    if Path(args.config).exists():
        config = load_config(args.config, validate=False)
    elif args.url:
        config = Config()
    else:
        raise FileNotFoundError(f"Configuration file '{args.config}' not found")

    apply_overrides(
        config,
        seed_url=args.url,
        max_depth=args.depth,
        timeout=args.timeout,
        max_errors=args.max_errors,
        max_results=args.max_results
    )
    validate_config(config)
    return config


def main(argv=None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Depth-bounded concurrent link crawler",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --url https://example.com/         # Crawl with defaults
  python main.py --config my_config.yaml           # Run with custom config
  python main.py --url https://example.com/ --depth 1 --timeout 30

While running, send SIGUSR1 to raise the depth ceiling and SIGINT/SIGTERM to stop.
        """
    )

    parser.add_argument(
        '--config',
        default='config.yaml',
        help='Path to configuration file (default: config.yaml)'
    )
    parser.add_argument('--url', help='Seed URL to start crawling from')
    parser.add_argument('--depth', type=int, help='Initial maximum crawl depth')
    parser.add_argument('--timeout', type=float, help='Crawl timeout in seconds')
    parser.add_argument('--max-errors', type=int, help='Stop after this many failed pages')
    parser.add_argument('--max-results', type=int, help='Stop after this many crawled pages')
    parser.add_argument(
        '--version',
        action='version',
        version=f'Link Crawler {__version__}'
    )

    args = parser.parse_args(argv)

    try:
        config = build_config(args)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        parser.print_help()
        return 1

    setup_logging(
        {
            'level': config.logging.level,
            'file': config.logging.file,
            'format': config.logging.format,
        },
        enable_json=config.logging.json
    )

    app = CrawlerApp()
    try:
        return asyncio.run(app.run(config))
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 1


if __name__ == '__main__':
    sys.exit(main())
