"""Deferred execution used for the enemy turn and other paced transitions."""
from __future__ import annotations

import asyncio
import heapq
import itertools
from typing import Callable, List, Optional, Protocol, Tuple

Callback = Callable[[], None]


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callback) -> None:
        ...


class ManualScheduler:
    """Virtual-clock scheduler; nothing runs until the clock is advanced."""

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: List[Tuple[float, int, Callback]] = []
        self._counter = itertools.count()

    def call_later(self, delay: float, callback: Callback) -> None:
        heapq.heappush(self._queue, (self.now + max(0.0, delay), next(self._counter), callback))

    @property
    def pending(self) -> int:
        return len(self._queue)

    def advance(self, seconds: float) -> int:
        """Run every callback due within ``seconds``; returns how many ran."""
        deadline = self.now + seconds
        ran = 0
        while self._queue and self._queue[0][0] <= deadline:
            due, _, callback = heapq.heappop(self._queue)
            self.now = due
            callback()
            ran += 1
        self.now = deadline
        return ran

    def run_until_idle(self, max_callbacks: int = 10_000) -> int:
        ran = 0
        while self._queue:
            if ran >= max_callbacks:
                raise RuntimeError("Scheduler did not settle; callbacks keep rescheduling")
            due, _, callback = heapq.heappop(self._queue)
            self.now = due
            callback()
            ran += 1
        return ran


class AsyncioScheduler:
    """Schedules callbacks on an asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    def call_later(self, delay: float, callback: Callback) -> None:
        loop = self._loop or asyncio.get_running_loop()
        loop.call_later(delay, callback)
