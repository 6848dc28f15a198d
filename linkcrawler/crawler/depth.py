"""
Adjustable depth ceiling shared by all crawl tasks.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional

from .signals import CancellationToken, TriggerSource


class ReadWriteLock:
    """
    Multiple-reader / single-writer lock for asyncio.

    Waiting writers block new readers so a raise is never starved by a
    steady stream of depth checks.
    """

    def __init__(self):
        self._cond = asyncio.Condition()
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @property
    def readers(self) -> int:
        return self._readers

    @property
    def writing(self) -> bool:
        return self._writer

    @asynccontextmanager
    async def reader(self) -> AsyncIterator[None]:
        async with self._cond:
            await self._cond.wait_for(lambda: not self._writer and not self._writers_waiting)
            self._readers += 1
        try:
            yield
        finally:
            async with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @asynccontextmanager
    async def writer(self) -> AsyncIterator[None]:
        async with self._cond:
            self._writers_waiting += 1
            try:
                await self._cond.wait_for(lambda: not self._writer and not self._readers)
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            async with self._cond:
                self._writer = False
                self._cond.notify_all()


class DepthController:
    """Holds the maximum depth a crawl task may run at. It can only be raised."""

    def __init__(self, initial: int):
        if initial < 0:
            raise ValueError("initial depth ceiling must be non-negative")
        self._ceiling = initial
        self._lock = ReadWriteLock()
        self.logger = logging.getLogger(__name__)

    async def current_ceiling(self) -> int:
        async with self._lock.reader():
            return self._ceiling

    async def allows(self, depth: int) -> bool:
        """True if a task at ``depth`` may proceed."""
        async with self._lock.reader():
            return depth <= self._ceiling

    async def raise_ceiling(self, delta: int) -> int:
        """Increase the ceiling by ``delta`` and return the new value."""
        if delta < 0:
            raise ValueError("depth ceiling can only be raised")
        async with self._lock.writer():
            self._ceiling += delta
            return self._ceiling

    async def listen(self, trigger: TriggerSource, step: int, cancel: CancellationToken,
                     on_raise: Optional[Callable[[int], None]] = None):
        """
        Raise the ceiling by ``step`` every time ``trigger`` fires.

        ``on_raise`` is called with the new ceiling after each raise.
        Runs until ``cancel`` is set.
        """
        while not cancel.is_cancelled:
            fired = asyncio.ensure_future(trigger.wait())
            cancelled = asyncio.ensure_future(cancel.wait())
            try:
                await asyncio.wait([fired, cancelled], return_when=asyncio.FIRST_COMPLETED)
            finally:
                for pending in (fired, cancelled):
                    if not pending.done():
                        pending.cancel()

            if fired.done() and not fired.cancelled():
                ceiling = await self.raise_ceiling(step)
                self.logger.info(f"Got {trigger.name} trigger, depth ceiling raised to {ceiling}")
                if on_raise:
                    on_raise(ceiling)
