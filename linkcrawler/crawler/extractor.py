"""
Fetch-and-extract: resolves one address to a title and its outbound links.
"""

import logging
from typing import Protocol

from .errors import FetchError
from .fetcher import WebFetcher
from .parser import ContentParser, ParsedPage


class PageSource(Protocol):
    """Anything that can turn an address into a parsed page."""

    async def extract(self, url: str) -> ParsedPage:
        ...


class PageExtractor:
    """Fetches a page with WebFetcher and parses it with ContentParser."""

    def __init__(self, fetcher: WebFetcher, parser: ContentParser):
        self.fetcher = fetcher
        self.parser = parser
        self.logger = logging.getLogger(__name__)

    async def extract(self, url: str) -> ParsedPage:
        """
        Fetch and parse a single page.

        Raises:
            FetchError: the page could not be fetched or has no content
        """
        result = await self.fetcher.fetch(url)
        if result.error:
            raise FetchError(url, result.error)
        if not result.content:
            raise FetchError(url, "empty response body")
        return self.parser.parse(url, result.content)
