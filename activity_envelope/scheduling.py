"""
Clocks and Deferred-Callback Schedulers

The envelope never reads wall-clock time or starts timers on its own. It
is handed a Clock (current time in milliseconds) and a Scheduler (arm a
single-shot callback, cancel it). This module provides implementations
for threaded hosts, asyncio hosts, and deterministic virtual time.

Usage:
    # Threaded host (default for ActivityEnvelope)
    scheduler = ThreadingScheduler()
    envelope = ActivityEnvelope(clock=MonotonicClock(), scheduler=scheduler)
    with scheduler.lock:
        envelope.activate()

    # Tests, frame-driven hosts
    timeline = VirtualScheduler()
    envelope = ActivityEnvelope(clock=timeline, scheduler=timeline)
    envelope.activate()
    timeline.advance(16.7)
"""

import asyncio
import heapq
import itertools
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Protocol

logger = logging.getLogger(__name__)

Callback = Callable[[], None]


class Clock(Protocol):
    """Source of the current time, in milliseconds."""

    def now(self) -> float:
        ...


class Scheduler(Protocol):
    """
    Single-shot deferred callbacks.

    arm() returns an opaque handle. cancel() accepts a handle (or None)
    and must tolerate handles that already fired or were cancelled.
    """

    def arm(self, delay_ms: float, callback: Callback) -> Any:
        ...

    def cancel(self, handle: Any) -> None:
        ...


class MonotonicClock:
    """Clock backed by time.monotonic(), immune to wall-clock adjustments."""

    def now(self) -> float:
        return time.monotonic() * 1000.0


class ThreadingScheduler:
    """
    Scheduler backed by one daemon threading.Timer per armed callback.

    Callbacks run on the timer thread while holding self.lock. Hosts that
    call into the envelope from another thread should hold the same lock,
    since the envelope itself does no locking.
    """

    def __init__(self, lock: Optional["threading.RLock"] = None):
        self.lock = lock or threading.RLock()

    def arm(self, delay_ms: float, callback: Callback) -> threading.Timer:
        def fire():
            with self.lock:
                callback()

        timer = threading.Timer(max(0.0, delay_ms) / 1000.0, fire)
        timer.daemon = True
        timer.start()
        return timer

    def cancel(self, handle: Optional[threading.Timer]) -> None:
        if handle is not None:
            handle.cancel()


class LoopClock:
    """Clock that reads an asyncio event loop's monotonic time."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def now(self) -> float:
        loop = self._loop or asyncio.get_running_loop()
        return loop.time() * 1000.0


class AsyncioScheduler:
    """
    Scheduler backed by loop.call_later().

    Callbacks run on the event loop thread, so an envelope driven entirely
    from coroutines and loop callbacks needs no extra synchronization.
    Without an explicit loop, the loop running at arm() time is used.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def arm(self, delay_ms: float, callback: Callback) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(max(0.0, delay_ms) / 1000.0, callback)

    def cancel(self, handle: Optional[asyncio.TimerHandle]) -> None:
        if handle is not None:
            handle.cancel()


@dataclass(order=True)
class VirtualTimer:
    """A callback armed on a VirtualScheduler."""
    due: float
    seq: int
    callback: Callback = field(compare=False)
    done: bool = field(default=False, compare=False)


class VirtualScheduler:
    """
    Deterministic clock and scheduler in one.

    Time only moves when advance() or advance_to() is called. Due callbacks
    fire in (due time, arm order), with now() set to each callback's due
    time while it runs, so callbacks that re-arm are placed exactly.
    """

    def __init__(self, start_ms: float = 0.0):
        self._now = float(start_ms)
        self._queue: List[VirtualTimer] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._now

    def arm(self, delay_ms: float, callback: Callback) -> VirtualTimer:
        timer = VirtualTimer(
            due=self._now + max(0.0, delay_ms),
            seq=next(self._seq),
            callback=callback,
        )
        heapq.heappush(self._queue, timer)
        return timer

    def cancel(self, handle: Optional[VirtualTimer]) -> None:
        if handle is not None:
            handle.done = True

    @property
    def pending_count(self) -> int:
        """Number of armed callbacks that have neither fired nor been cancelled."""
        return sum(1 for timer in self._queue if not timer.done)

    @property
    def next_due(self) -> Optional[float]:
        """Due time of the earliest live callback, or None."""
        live = [timer.due for timer in self._queue if not timer.done]
        return min(live) if live else None

    def advance(self, delta_ms: float) -> int:
        """Move time forward by delta_ms. Returns the number of callbacks fired."""
        return self.advance_to(self._now + delta_ms)

    def advance_to(self, target_ms: float) -> int:
        """Move time forward to target_ms. Returns the number of callbacks fired."""
        if target_ms < self._now:
            raise ValueError(
                f"Virtual time cannot move backwards ({target_ms} < {self._now})"
            )

        fired = 0
        while self._queue and self._queue[0].due <= target_ms:
            timer = heapq.heappop(self._queue)
            if timer.done:
                continue
            timer.done = True
            self._now = timer.due
            timer.callback()
            fired += 1

        self._now = target_ms
        if fired:
            logger.debug(f"Virtual time {target_ms:g}ms: fired {fired} callback(s)")
        return fired
