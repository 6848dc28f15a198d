"""
Per-visit outcomes carried from crawl tasks to the result aggregator.
"""

from dataclasses import dataclass
from typing import Union

from .errors import FetchError


@dataclass(frozen=True)
class Success:
    """A page was fetched and committed to the visited registry."""
    url: str
    title: str
    depth: int = 0

    def __str__(self) -> str:
        return f"{self.url} -> {self.title}"


@dataclass(frozen=True)
class Failure:
    """A page could not be fetched or parsed."""
    url: str
    error: FetchError
    depth: int = 0

    def __str__(self) -> str:
        return str(self.error)


Outcome = Union[Success, Failure]
