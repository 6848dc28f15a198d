"""
Link Crawler

A depth-bounded, concurrent link-following crawler built on asyncio.
"""

__version__ = "1.0.0"
__description__ = "Depth-bounded concurrent link crawler with result budgets and live depth control"
