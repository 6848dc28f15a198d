"""
Visited registry shared by all crawl tasks.
"""

import asyncio
from typing import Dict, Optional


class VisitedRegistry:
    """
    Maps each committed address to its page title.

    An address is inserted at most once. Every access goes through one
    lock covering the whole map, so claiming an address is a single
    check-and-insert step that concurrent tasks cannot both win.
    """

    def __init__(self):
        self._visited: Dict[str, str] = {}
        self._lock = asyncio.Lock()

    async def try_claim(self, url: str, title: str = "") -> bool:
        """Record ``url`` with ``title``. Returns False if it was already present."""
        async with self._lock:
            if url in self._visited:
                return False
            self._visited[url] = title
            return True

    async def record_title(self, url: str, title: str):
        """Update the title of an already claimed address."""
        async with self._lock:
            if url not in self._visited:
                raise KeyError(url)
            self._visited[url] = title

    async def is_visited(self, url: str) -> bool:
        async with self._lock:
            return url in self._visited

    async def title_of(self, url: str) -> Optional[str]:
        async with self._lock:
            return self._visited.get(url)

    async def snapshot(self) -> Dict[str, str]:
        """Copy of the current mapping."""
        async with self._lock:
            return dict(self._visited)

    def __len__(self) -> int:
        return len(self._visited)
