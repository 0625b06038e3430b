"""Global outbound request budget with a serialized FIFO queue.

At most ``max_requests`` jobs are admitted per rolling window. Jobs wait in
one queue shared by every caller and run one at a time, in enqueue order, on
a single drain task. There is no per-caller fairness and no cancellation.
"""

import asyncio
import logging
import time
from collections import deque
from typing import Awaitable, Callable, TypeVar

from beer_ratings.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

Job = Callable[[], Awaitable[T]]


class RequestQueue:
    """Sliding-window limiter that drains queued jobs through the budget."""

    def __init__(
        self,
        max_requests: int | None = None,
        window_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.max_requests = max_requests or settings.rate_limit_requests
        self.window = window_seconds or settings.rate_limit_window_seconds
        self._clock = clock
        self._sleep = sleep
        self._timestamps: deque[float] = deque()
        self._queue: deque[tuple[Job, asyncio.Future]] = deque()
        self._draining = False
        self._drain_task: asyncio.Task | None = None

    @property
    def pending(self) -> int:
        return len(self._queue)

    @property
    def in_window(self) -> int:
        self._prune()
        return len(self._timestamps)

    def _prune(self):
        now = self._clock()
        while self._timestamps and now - self._timestamps[0] >= self.window:
            self._timestamps.popleft()

    def can_admit(self) -> bool:
        self._prune()
        return len(self._timestamps) < self.max_requests

    def wait_time(self) -> float:
        """Seconds until the next job may be admitted (0 when it may run now)."""
        if self.can_admit():
            return 0.0
        oldest = self._timestamps[0]
        return max(0.0, self.window - (self._clock() - oldest))

    async def enqueue(self, job: Job) -> T:
        """Queue ``job`` and wait for its result (or its exception)."""
        loop = asyncio.get_running_loop()
        future = loop.create_future()
        self._queue.append((job, future))

        if not self._draining:
            self._draining = True
            self._drain_task = loop.create_task(self._drain())

        return await future

    async def _drain(self):
        try:
            while self._queue:
                wait = self.wait_time()
                if wait > 0:
                    logger.warning(
                        "Rate limit reached | waiting %.1fs | pending=%d",
                        wait, len(self._queue),
                    )
                    await self._sleep(wait)

                job, future = self._queue.popleft()
                self._timestamps.append(self._clock())

                try:
                    result = await job()
                except Exception as e:
                    if not future.done():
                        future.set_exception(e)
                else:
                    if not future.done():
                        future.set_result(result)
        finally:
            self._draining = False
