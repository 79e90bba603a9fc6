"""Timer core — an observable count-up / count-down state machine."""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass

from minitimer.core.events import (
    STOP_EVENTS,
    EventBus,
    EventName,
    Handler,
    TimerEvent,
    coerce_event,
)
from minitimer.core.scheduler import Handle, Scheduler, ThreadingScheduler

logger = logging.getLogger(__name__)


class InvalidRangeError(Exception):
    """Raised on start when ``from_`` already lies past ``to`` in the direction of ``inc``."""

    def __init__(self, from_: float, to: float, inc: float) -> None:
        super().__init__(f"Invalid timer range [{from_}, {to}] on inc {inc}.")
        self.from_ = from_
        self.to = to
        self.inc = inc


def _check_number(name: str, value: object) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{name} must be a number, got {type(value).__name__}")
    if not math.isfinite(value):
        raise ValueError(f"{name} must be finite, got {value}")


@dataclass(frozen=True)
class TimerConfig:
    """Immutable timer configuration, validated on construction.

    The range between ``from_`` and ``to`` is not checked here;
    ``Timer.start()`` checks it every time it is called.
    """

    from_: float
    inc: float
    to: float | None = None

    def __post_init__(self) -> None:
        _check_number("from_", self.from_)
        _check_number("inc", self.inc)
        if self.to is not None:
            _check_number("to", self.to)
        if self.inc == 0:
            raise ValueError("inc must be non-zero")
        if self.from_ < 0:
            raise ValueError(f"from_ must not be negative, got {self.from_}")

    @property
    def sign(self) -> int:
        """``1`` when counting up, ``-1`` when counting down."""
        return 1 if self.inc > 0 else -1

    @property
    def period_ms(self) -> float:
        """Tick period in milliseconds."""
        return abs(self.inc)

    def check_range(self) -> None:
        """Raise ``InvalidRangeError`` if ``from_`` is already past ``to``."""
        if self.to is not None and self.from_ * self.sign > self.to * self.sign:
            raise InvalidRangeError(self.from_, self.to, self.inc)


class Timer:
    """A timer that moves ``elapsed`` by ``inc`` every ``abs(inc)`` milliseconds.

    The timer is either stopped (the initial state) or running.  Every
    transition emits a ``TimerEvent`` carrying the current ``elapsed``:

    * ``start()`` / ``resume()``: stopped -> running
    * ``pause()`` / ``stop()``: running -> stopped
    * ``reset()``: any -> stopped, with ``elapsed`` forced to 0
    * ``update()``: one tick; emits ``update``, or ``finish`` once ``to`` is
      reached, in which case ``elapsed`` is clamped to exactly ``to``

    Handlers run synchronously and may call back into the timer; such calls
    take effect immediately, in call order.  Operations are serialized with a
    re-entrant lock so ticks delivered from a scheduler thread never
    interleave with them.
    """

    def __init__(self, config: TimerConfig, scheduler: Scheduler | None = None) -> None:
        self._config = config
        self._scheduler: Scheduler = scheduler if scheduler is not None else ThreadingScheduler()
        self._events = EventBus()
        self._lock = threading.RLock()
        self._elapsed: float = config.from_
        self._running: bool = False
        self._handle: Handle | None = None
        self._generation = 0

    # -- read access ---------------------------------------------------------

    @property
    def config(self) -> TimerConfig:
        return self._config

    @property
    def elapsed(self) -> float:
        """The current value in milliseconds.  Never negative."""
        return self._elapsed

    @property
    def running(self) -> bool:
        return self._running

    def __repr__(self) -> str:
        return (
            f"Timer(elapsed={self._elapsed!r}, running={self._running!r}, "
            f"from_={self._config.from_!r}, inc={self._config.inc!r}, to={self._config.to!r})"
        )

    # -- public interface ----------------------------------------------------

    def start(self) -> None:
        """Start counting and emit ``start``.  No-op while already running.

        Raises ``InvalidRangeError`` without touching any state when the
        configured range cannot be travelled in the direction of ``inc``.
        """
        self._begin_running(TimerEvent.START)

    def resume(self) -> None:
        """Like ``start()``, but emits ``resume``."""
        self._begin_running(TimerEvent.RESUME)

    def stop(self, event: EventName = TimerEvent.FINISH) -> None:
        """Stop a running timer and emit *event* (``finish`` by default).

        *event* must be one of ``finish``, ``pause`` or ``reset``.  Stopping a
        stopped timer does nothing; use ``reset()`` to force a transition.
        """
        stop_event = coerce_event(event)
        if stop_event not in STOP_EVENTS:
            raise ValueError(f"stop() cannot emit {stop_event.value!r}")
        with self._lock:
            if self._running:
                self._halt(stop_event)

    def pause(self) -> None:
        """Stop a running timer, keeping ``elapsed``, and emit ``pause``."""
        self.stop(TimerEvent.PAUSE)

    def reset(self) -> None:
        """Stop, set ``elapsed`` to 0 and emit ``reset``, whatever the state."""
        with self._lock:
            self._elapsed = 0
            self._halt(TimerEvent.RESET)

    def toggle(self) -> None:
        """``stop()`` a running timer, ``start()`` a stopped one."""
        with self._lock:
            if self._running:
                self.stop()
            else:
                self.start()

    def update(self) -> None:
        """Advance ``elapsed`` by one tick.  No-op while stopped.

        Each scheduled tick ends up here; calling it directly steps the timer
        manually.
        """
        with self._lock:
            if not self._running:
                return
            config = self._config
            elapsed = self._elapsed + config.inc
            if elapsed < 0:
                elapsed = 0
            if config.to is not None and elapsed * config.sign >= config.to * config.sign:
                self._elapsed = config.to
                self._halt(TimerEvent.FINISH)
            else:
                self._elapsed = elapsed
                self._events.emit(TimerEvent.UPDATE, elapsed)

    def on(self, event: EventName, handler: Handler) -> None:
        """Call *handler* with ``elapsed`` every time *event* is emitted."""
        self._events.on(event, handler)

    def off(self, event: EventName, handler: Handler) -> None:
        """Stop calling *handler* for *event*."""
        self._events.off(event, handler)

    # -- private helpers -----------------------------------------------------

    def _tick(self, generation: int) -> None:
        """Scheduler callback: a tick from an earlier registration is ignored."""
        with self._lock:
            if generation != self._generation:
                return
            self.update()

    def _begin_running(self, event: TimerEvent) -> None:
        """Validate the range, register with the scheduler and emit *event*."""
        with self._lock:
            try:
                self._config.check_range()
            except InvalidRangeError as exc:
                logger.warning("refusing to %s: %s", event.value, exc)
                raise
            if self._running:
                return
            self._running = True
            self._generation += 1
            generation = self._generation
            self._handle = self._scheduler.register_periodic(
                lambda: self._tick(generation), self._config.period_ms
            )
            logger.debug("timer %s at %s", event.value, self._elapsed)
            self._events.emit(event, self._elapsed)

    def _halt(self, event: TimerEvent) -> None:
        """Enter the stopped state, cancel the registration and emit *event*."""
        self._running = False
        self._generation += 1
        if self._handle is not None:
            handle, self._handle = self._handle, None
            self._scheduler.cancel(handle)
        logger.debug("timer %s at %s", event.value, self._elapsed)
        self._events.emit(event, self._elapsed)


def create_timer(
    from_: float,
    inc: float,
    to: float | None = None,
    *,
    scheduler: Scheduler | None = None,
) -> Timer:
    """Create a stopped timer starting at *from_* and moving by *inc* per tick.

    A positive *inc* counts up, a negative one counts down; ``abs(inc)`` is
    also the tick period in milliseconds.  With a *to* target the timer
    finishes by itself once it gets there.  *scheduler* defaults to a new
    ``ThreadingScheduler``.
    """
    return Timer(TimerConfig(from_, inc, to), scheduler=scheduler)
