"""
Unbuffered result channel between crawl tasks and the aggregator.
"""

import asyncio
from collections import deque
from typing import Deque, Tuple

from .errors import ChannelClosed
from .outcomes import Outcome


class ResultChannel:
    """
    Rendezvous channel with a single consumer.

    ``send()`` returns only once the consumer has taken the outcome, so a
    slow consumer slows every sender down. Closing the channel releases
    all blocked senders; their outcomes are dropped and ``send()``
    returns False.
    """

    def __init__(self):
        self._senders: Deque[Tuple[Outcome, asyncio.Future]] = deque()
        self._ready = asyncio.Event()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        """Number of senders blocked waiting for the consumer."""
        return len(self._senders)

    async def send(self, outcome: Outcome) -> bool:
        """Hand ``outcome`` to the consumer. Returns False if the channel closed first."""
        if self._closed:
            return False

        delivered = asyncio.get_running_loop().create_future()
        entry = (outcome, delivered)
        self._senders.append(entry)
        self._ready.set()
        try:
            return await delivered
        except asyncio.CancelledError:
            if entry in self._senders:
                self._senders.remove(entry)
            raise

    async def receive(self) -> Outcome:
        """Take the next outcome, waiting for a sender if needed."""
        while True:
            while self._senders:
                outcome, delivered = self._senders.popleft()
                if delivered.done():
                    continue
                delivered.set_result(True)
                return outcome

            if self._closed:
                raise ChannelClosed("result channel is closed")

            self._ready.clear()
            await self._ready.wait()

    def close(self):
        """Close the channel and release every blocked sender."""
        if self._closed:
            return
        self._closed = True
        while self._senders:
            _, delivered = self._senders.popleft()
            if not delivered.done():
                delivered.set_result(False)
        self._ready.set()
