"""
Timer Clock

Periodic tick sources and delayed callbacks for the timer engine.

The engine arms a ticker on every transition into Running and releases it on
every exit path (pause, reset, skip, stop, completion, teardown). A scheduler
holds at most one armed ticker; arming again replaces the previous one.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Callable, List, Optional, Protocol

logger = logging.getLogger(__name__)

TICK_INTERVAL_SECONDS = float(os.environ.get("TIMER_TICK_INTERVAL_SECONDS", "0.1"))


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class TickScheduler(Protocol):
    @property
    def is_armed(self) -> bool: ...

    def arm(self, callback: Callable[[], None]) -> None: ...

    def release(self) -> None: ...

    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable: ...


class AsyncioTickScheduler:
    """Drives ticks from an asyncio task on the owning event loop"""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None, interval: float = TICK_INTERVAL_SECONDS):
        self._loop = loop
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    @property
    def is_armed(self) -> bool:
        return self._task is not None and not self._task.done()

    def arm(self, callback: Callable[[], None]) -> None:
        self.release()
        self._task = self._get_loop().create_task(self._run(callback))

    async def _run(self, callback: Callable[[], None]) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                callback()
            except Exception:
                logger.exception("Timer tick callback failed")

    def release(self) -> None:
        if self._task is not None:
            task, self._task = self._task, None
            # The tick callback may release its own ticker (completion);
            # cancelling the current task from inside it is fine, it stops
            # at the next await.
            task.cancel()

    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable:
        return self._get_loop().call_later(delay, callback)


class _PendingCall:
    def __init__(self, due: float, callback: Callable[[], None]):
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualTickScheduler:
    """
    Scheduler driven explicitly by the caller.

    Used by synchronous callers and tests: `advance(seconds)` moves the
    scheduler's notion of time forward, firing the armed ticker once per
    interval and any delayed calls that came due.
    """

    def __init__(self, interval: float = 1.0):
        self.interval = interval
        self.now = 0.0
        self._ticker: Optional[Callable[[], None]] = None
        self._pending: List[_PendingCall] = []
        self.arm_count = 0
        self.release_count = 0

    @property
    def is_armed(self) -> bool:
        return self._ticker is not None

    @property
    def pending_calls(self) -> int:
        return sum(1 for call in self._pending if not call.cancelled)

    def arm(self, callback: Callable[[], None]) -> None:
        self._ticker = callback
        self.arm_count += 1

    def release(self) -> None:
        if self._ticker is not None:
            self.release_count += 1
        self._ticker = None

    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable:
        call = _PendingCall(self.now + delay, callback)
        self._pending.append(call)
        return call

    def run_pending(self) -> int:
        """Fire delayed calls that are due; returns how many ran"""
        due = [c for c in self._pending if not c.cancelled and c.due <= self.now]
        self._pending = [c for c in self._pending if not c.cancelled and c.due > self.now]
        for call in due:
            call.callback()
        return len(due)

    def advance(self, seconds: float) -> None:
        end = self.now + seconds
        while self.now < end:
            step = min(self.interval, end - self.now)
            self.now += step
            self.run_pending()
            if self._ticker is not None:
                self._ticker()
