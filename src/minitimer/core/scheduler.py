"""Periodic schedulers — repeat a callback every *period_ms* until cancelled.

A timer only needs two operations from its scheduler, described by the
``Scheduler`` protocol: register a repeating callback and cancel it again.
Cancelling is idempotent, and once ``cancel()`` returns no new invocation is
started for that handle.

Three implementations are provided:

* ``ThreadingScheduler`` runs each registration on a daemon thread.
* ``BlockingScheduler`` runs callbacks in the caller's thread from ``run()``.
* ``ManualScheduler`` runs callbacks on a virtual clock moved by ``advance()``.
"""

from __future__ import annotations

import itertools
import logging
import sched
import threading
import time
from typing import Callable, Protocol

logger = logging.getLogger(__name__)

Callback = Callable[[], None]
Handle = int


class Scheduler(Protocol):
    """The periodic scheduling capability a timer consumes."""

    def register_periodic(self, callback: Callback, period_ms: float) -> Handle: ...

    def cancel(self, handle: Handle) -> None: ...


# ---------------------------------------------------------------------------
# Threaded
# ---------------------------------------------------------------------------


class _PeriodicThread(threading.Thread):
    """Daemon thread calling *callback* on fixed monotonic deadlines."""

    def __init__(self, callback: Callback, period_ms: float) -> None:
        super().__init__(name=f"minitimer-{period_ms:g}ms", daemon=True)
        self._callback = callback
        self._interval = period_ms / 1000.0
        self._cancelled = threading.Event()

    def run(self) -> None:
        deadline = time.monotonic() + self._interval
        while not self._cancelled.wait(max(deadline - time.monotonic(), 0.0)):
            try:
                self._callback()
            except Exception:
                logger.exception("periodic callback on %s failed", self.name)
            deadline += self._interval

    def cancel(self) -> None:
        self._cancelled.set()


class ThreadingScheduler:
    """Run every registration on its own daemon thread.

    Callbacks execute on the worker thread, so whatever they touch must be
    safe to call from there.  ``Timer`` serializes its operations with a lock.
    """

    def __init__(self) -> None:
        self._threads: dict[Handle, _PeriodicThread] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def register_periodic(self, callback: Callback, period_ms: float) -> Handle:
        thread = _PeriodicThread(callback, period_ms)
        with self._lock:
            handle = next(self._ids)
            self._threads[handle] = thread
        thread.start()
        logger.debug("registered periodic #%d every %sms on %s", handle, period_ms, thread.name)
        return handle

    def cancel(self, handle: Handle) -> None:
        with self._lock:
            thread = self._threads.pop(handle, None)
        if thread is None:
            return
        thread.cancel()
        logger.debug("cancelled periodic #%d", handle)


# ---------------------------------------------------------------------------
# Cooperative
# ---------------------------------------------------------------------------


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


def _sleep_ms(ms: float) -> None:
    time.sleep(ms / 1000.0)


class BlockingScheduler:
    """Single-threaded scheduler built on :mod:`sched`.

    Nothing fires until ``run()`` is called; ``run()`` then executes due
    callbacks in the calling thread and returns once every registration has
    been cancelled.  Time is measured in milliseconds through *timefunc* and
    *delayfunc*, which default to the monotonic clock and ``time.sleep``.
    """

    def __init__(
        self,
        timefunc: Callable[[], float] = _monotonic_ms,
        delayfunc: Callable[[float], None] = _sleep_ms,
    ) -> None:
        self._sched = sched.scheduler(timefunc, delayfunc)
        self._timefunc = timefunc
        self._entries: dict[Handle, sched.Event] = {}
        self._ids = itertools.count(1)

    def register_periodic(self, callback: Callback, period_ms: float) -> Handle:
        handle = next(self._ids)
        self._enter(handle, callback, period_ms, self._timefunc() + period_ms)
        logger.debug("registered periodic #%d every %sms", handle, period_ms)
        return handle

    def cancel(self, handle: Handle) -> None:
        entry = self._entries.pop(handle, None)
        if entry is None:
            return
        self._sched.cancel(entry)
        logger.debug("cancelled periodic #%d", handle)

    def run(self) -> None:
        """Block, firing callbacks as they come due, until nothing is registered."""
        self._sched.run()

    @property
    def pending(self) -> int:
        """Number of live registrations."""
        return len(self._entries)

    # -- private helpers -----------------------------------------------------

    def _enter(self, handle: Handle, callback: Callback, period_ms: float, due: float) -> None:
        self._entries[handle] = self._sched.enterabs(
            due, 0, self._fire, (handle, callback, period_ms, due)
        )

    def _fire(self, handle: Handle, callback: Callback, period_ms: float, due: float) -> None:
        # Re-arm before calling back so the callback is able to cancel itself.
        self._enter(handle, callback, period_ms, due + period_ms)
        callback()


class ManualScheduler(BlockingScheduler):
    """A ``BlockingScheduler`` on a virtual millisecond clock starting at 0.

    ``advance(ms)`` fires every callback due within the next *ms* milliseconds,
    in deadline order (registration order on ties), then leaves the clock at
    the end of the window.  ``run()`` skips straight from deadline to deadline
    and therefore never sleeps; with a registration that is never cancelled
    it does not return.
    """

    def __init__(self) -> None:
        self._now: float = 0.0
        super().__init__(timefunc=self._clock, delayfunc=self._skip)

    @property
    def now(self) -> float:
        """Current virtual time in milliseconds."""
        return self._now

    def advance(self, ms: float) -> None:
        """Move the virtual clock forward by *ms*, firing due callbacks on the way."""
        if ms < 0:
            raise ValueError(f"cannot advance by a negative duration ({ms}ms)")
        target = self._now + ms
        while True:
            queue = self._sched.queue
            if not queue or queue[0].time > target:
                break
            self._now = queue[0].time
            self._sched.run(blocking=False)
        self._now = target

    # -- private helpers -----------------------------------------------------

    def _clock(self) -> float:
        return self._now

    def _skip(self, ms: float) -> None:
        self._now += ms
