import asyncio

import pytest

from linkcrawler.crawler.channel import ResultChannel
from linkcrawler.crawler.crawler import Crawler
from linkcrawler.crawler.depth import DepthController
from linkcrawler.crawler.errors import ChannelClosed, FetchError
from linkcrawler.crawler.parser import ParsedPage
from linkcrawler.crawler.registry import VisitedRegistry
from linkcrawler.crawler.signals import CancellationToken


class FakeSource:
    """In-memory site: url -> (title, links). Unknown urls fail to fetch."""

    def __init__(self, pages, hang=()):
        self.pages = pages
        self.hang = set(hang)
        self.calls = []

    async def extract(self, url):
        self.calls.append(url)
        await asyncio.sleep(0)
        if url in self.hang:
            await asyncio.Event().wait()
        if url not in self.pages:
            raise FetchError(url, "can't get page")
        title, links = self.pages[url]
        return ParsedPage(url=url, title=title, links=set(links))


@pytest.fixture
def fake_source():
    return FakeSource


@pytest.fixture
def make_crawler():
    def _make(source, ceiling=3, delay=0):
        channel = ResultChannel()
        crawler = Crawler(
            source=source,
            registry=VisitedRegistry(),
            depth=DepthController(ceiling),
            channel=channel,
            cancel=CancellationToken(),
            politeness_delay=delay,
        )
        return crawler
    return _make


async def drain(crawler, root, depth=0):
    """Crawl ``root`` to completion and return every outcome sent."""
    outcomes = []

    async def consume():
        while True:
            try:
                outcomes.append(await crawler.channel.receive())
            except ChannelClosed:
                return

    consumer = asyncio.create_task(consume())
    await crawler.crawl(root, depth)
    await crawler.wait_idle()
    crawler.channel.close()
    await consumer
    return outcomes


@pytest.fixture
def crawl_all():
    return drain
