"""
Web crawler core components.
"""

from .aggregator import ResultAggregator
from .channel import ResultChannel
from .crawler import Crawler
from .depth import DepthController, ReadWriteLock
from .errors import CrawlerError, FetchError, ChannelClosed
from .extractor import PageExtractor, PageSource
from .fetcher import WebFetcher, FetchResult
from .outcomes import Success, Failure, Outcome
from .parser import ContentParser, ParsedPage
from .registry import VisitedRegistry
from .scheduler import CrawlerScheduler, CrawlReport
from .signals import CancellationToken, RunState, TriggerSource

__all__ = [
    'ResultAggregator', 'ResultChannel', 'Crawler',
    'DepthController', 'ReadWriteLock',
    'CrawlerError', 'FetchError', 'ChannelClosed',
    'PageExtractor', 'PageSource',
    'WebFetcher', 'FetchResult',
    'Success', 'Failure', 'Outcome',
    'ContentParser', 'ParsedPage',
    'VisitedRegistry',
    'CrawlerScheduler', 'CrawlReport',
    'CancellationToken', 'RunState', 'TriggerSource'
]
