"""Shared request limiter for remote resolvers.

Remote APIs usually enforce a quota across all calls made with one
credential, not per traversal. A RequestLimiter models that quota as an
explicit object: construct one and hand it to every traversal that should
share it, or give each traversal its own to keep them isolated. Nothing in
this module is a process-wide singleton.
"""

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import Any, Awaitable, Callable, Optional


logger = logging.getLogger(__name__)

# How often a threading.Event is polled while a wait is in progress.
SIGNAL_POLL_INTERVAL = 0.05


async def wait_for_signal(event: Any) -> None:
    """Return once `event.is_set()` is true.

    asyncio events are awaited directly; anything else (threading.Event)
    is polled, since it cannot be awaited from the event loop.
    """
    if isinstance(event, asyncio.Event):
        await event.wait()
        return
    while not event.is_set():
        await asyncio.sleep(SIGNAL_POLL_INTERVAL)


async def sleep_unless_set(
    seconds: float,
    event: Any = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
) -> bool:
    """Sleep for `seconds`, waking early if `event` gets set.

    Returns:
        True if the event was set before or during the sleep
    """
    if event is None:
        await sleep(seconds)
        return False
    if event.is_set():
        return True

    sleeper = asyncio.ensure_future(sleep(seconds))
    watcher = asyncio.ensure_future(wait_for_signal(event))
    try:
        await asyncio.wait({sleeper, watcher}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (sleeper, watcher):
            task.cancel()
        await asyncio.gather(sleeper, watcher, return_exceptions=True)
    return event.is_set()


class RequestLimiter:
    """Bounds and paces remote calls, and honours shared back-off pauses.

    Limiters are bound to the event loop they are first used on; share
    one between traversals running on the same loop.
    """

    def __init__(
        self,
        max_concurrent: Optional[int] = None,
        min_interval: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], object] = asyncio.sleep
    ):
        """Initialize limiter.

        Args:
            max_concurrent: Maximum calls in flight across all users (None = no bound)
            min_interval: Minimum seconds between the starts of two calls
            clock: Monotonic clock, injectable for tests
            sleep: Async sleep, injectable for tests
        """
        if max_concurrent is not None and max_concurrent < 1:
            raise ValueError("max_concurrent must be positive")
        if min_interval < 0:
            raise ValueError("min_interval cannot be negative")

        self.max_concurrent = max_concurrent
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._semaphore = asyncio.Semaphore(max_concurrent) if max_concurrent else None
        self._turn_lock = asyncio.Lock()
        self._paused_until = 0.0
        self._next_start = 0.0
        self.calls = 0
        self.pauses = 0

    def pause(self, seconds: float) -> None:
        """Hold every caller off for `seconds` from now.

        Overlapping pauses extend the window; they never shorten it.
        """
        until = self._clock() + max(0.0, seconds)
        if until > self._paused_until:
            self._paused_until = until
        self.pauses += 1
        logger.info(f"Request limiter paused for {seconds:.2f}s")

    @property
    def paused(self) -> bool:
        return self._clock() < self._paused_until

    async def _wait_turn(self, cancel_event: Any = None) -> bool:
        """Wait out pauses and pacing. Returns False if cancelled first."""
        async with self._turn_lock:
            while True:
                wait = max(self._paused_until, self._next_start) - self._clock()
                if wait <= 0:
                    break
                if await sleep_unless_set(wait, cancel_event, self._sleep):
                    return False
            self._next_start = self._clock() + self.min_interval
            return True

    @asynccontextmanager
    async def slot(self, cancel_event: Any = None):
        """Hold a call slot for the duration of one remote call.

        Args:
            cancel_event: Optional event; once set, the wait for a turn
                ends early. The caller must check the event before
                issuing its call, since the slot is still entered.
        """
        if self._semaphore is not None:
            await self._semaphore.acquire()
        try:
            if await self._wait_turn(cancel_event):
                self.calls += 1
            yield
        finally:
            if self._semaphore is not None:
                self._semaphore.release()

    def get_stats(self) -> dict:
        return {
            'max_concurrent': self.max_concurrent,
            'min_interval': self.min_interval,
            'calls': self.calls,
            'pauses': self.pauses,
            'paused': self.paused,
        }
