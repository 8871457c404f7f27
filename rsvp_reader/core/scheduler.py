"""Cancellable single-shot timers for the pacing engine.

WHY: The engine advances by scheduling "show the next chunk in N ms" over
and over. It must be able to cancel the pending step whenever the user
pauses or seeks, and it must never end up with two steps in flight. The
live reader runs on an asyncio event loop, while tests and dry-run
timelines need a clock they can step by hand.

HOW: ``Scheduler`` is a tiny ABC with ``schedule()`` and ``cancel()``.
``AsyncioScheduler`` wraps ``loop.call_later`` so timer callbacks run on
the same loop that serves direct transport calls. ``ManualScheduler``
keeps a virtual clock and a heap of due callbacks; nothing fires until
the caller advances it.

RULES:
- schedule() returns a TimerHandle; cancel() is idempotent
- A cancelled handle's callback is never invoked
- Delays are milliseconds; negative delays are treated as 0
- ManualScheduler fires callbacks in due-time order, FIFO on ties
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional, Tuple


class TimerHandle:
    """A pending single-shot callback.

    ``native`` holds the backend object (e.g. an ``asyncio.TimerHandle``)
    so the scheduler can cancel it.
    """

    __slots__ = ("due_ms", "cancelled", "fired", "native")

    def __init__(self, due_ms: float) -> None:
        self.due_ms = due_ms
        self.cancelled = False
        self.fired = False
        self.native: Any = None

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.fired)

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "fired" if self.fired else "pending"
        return "TimerHandle(due_ms={:.1f}, {})".format(self.due_ms, state)


class Scheduler(ABC):
    """Abstract single-shot timer source."""

    @abstractmethod
    def now_ms(self) -> float:
        """Current time on this scheduler's clock, in milliseconds."""

    @abstractmethod
    def schedule(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        """Run ``callback`` once after ``delay_ms`` milliseconds."""

    @abstractmethod
    def cancel(self, handle: TimerHandle) -> None:
        """Prevent ``handle`` from firing. Safe to call more than once."""


class AsyncioScheduler(Scheduler):
    """Timers backed by an asyncio event loop.

    The loop is looked up lazily with ``asyncio.get_running_loop()`` unless
    one is given, so an engine can be created outside the loop and driven
    from inside it.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now_ms(self) -> float:
        return self._get_loop().time() * 1000.0

    def schedule(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        loop = self._get_loop()
        delay_ms = max(0.0, delay_ms)
        handle = TimerHandle(loop.time() * 1000.0 + delay_ms)

        def _fire() -> None:
            if handle.cancelled:
                return
            handle.fired = True
            callback()

        handle.native = loop.call_later(delay_ms / 1000.0, _fire)
        return handle

    def cancel(self, handle: TimerHandle) -> None:
        if not handle.active:
            return
        handle.cancelled = True
        if handle.native is not None:
            handle.native.cancel()


class ManualScheduler(Scheduler):
    """Deterministic virtual-time scheduler.

    WHY: Playback tests must not sleep, and the CLI's ``--timeline`` mode
    prints a whole document's schedule instantly.

    HOW: ``schedule()`` pushes (due, sequence, handle, callback) onto a
    heap. ``advance(ms)`` moves the clock forward, firing every callback
    that becomes due in order; callbacks may schedule more work, which is
    honoured if it falls inside the window. ``run_next()`` jumps straight
    to the next due callback.
    """

    def __init__(self, start_ms: float = 0.0) -> None:
        self._now = start_ms
        self._counter = itertools.count()
        self._queue: List[Tuple[float, int, TimerHandle, Callable[[], None]]] = []

    def now_ms(self) -> float:
        return self._now

    def schedule(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(self._now + max(0.0, delay_ms))
        heapq.heappush(self._queue, (handle.due_ms, next(self._counter), handle, callback))
        return handle

    def cancel(self, handle: TimerHandle) -> None:
        if handle.active:
            handle.cancelled = True

    def _discard_cancelled(self) -> None:
        while self._queue and not self._queue[0][2].active:
            heapq.heappop(self._queue)

    @property
    def pending(self) -> int:
        """Number of callbacks still waiting to fire."""
        return sum(1 for _, _, handle, _ in self._queue if handle.active)

    def next_due_ms(self) -> Optional[float]:
        self._discard_cancelled()
        return self._queue[0][0] if self._queue else None

    def run_next(self) -> bool:
        """Jump to and fire the next pending callback.

        Returns:
            False if nothing was pending.
        """
        self._discard_cancelled()
        if not self._queue:
            return False
        due, _, handle, callback = heapq.heappop(self._queue)
        self._now = max(self._now, due)
        handle.fired = True
        callback()
        return True

    def advance(self, ms: float) -> int:
        """Move the clock forward by ``ms``, firing everything that comes due.

        Returns:
            Number of callbacks fired.
        """
        target = self._now + ms
        fired = 0
        while True:
            due = self.next_due_ms()
            if due is None or due > target:
                break
            self.run_next()
            fired += 1
        self._now = target
        return fired

    def run_until_idle(self, max_steps: int = 1_000_000) -> int:
        """Fire callbacks until none remain (or ``max_steps`` is reached)."""
        fired = 0
        while fired < max_steps and self.run_next():
            fired += 1
        return fired
