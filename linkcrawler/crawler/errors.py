"""
Exception types raised by the crawler core.
"""

from typing import Optional


class CrawlerError(Exception):
    """Base class for crawler errors."""


class FetchError(CrawlerError):
    """A single address could not be fetched or parsed."""

    def __init__(self, url: str, reason: str, cause: Optional[BaseException] = None):
        super().__init__(f"parse page {url}: {reason}")
        self.url = url
        self.reason = reason
        self.cause = cause


class ChannelClosed(CrawlerError):
    """Raised when receiving from a result channel that has been closed."""
