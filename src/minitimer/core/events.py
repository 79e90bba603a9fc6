"""Timer event names and a synchronous, per-timer listener registry."""

from __future__ import annotations

from enum import Enum
from typing import Callable, Union

Handler = Callable[[float], None]


class TimerEvent(str, Enum):
    """Lifecycle events emitted by a timer.  The payload is always ``elapsed``."""

    START = "start"
    RESUME = "resume"
    UPDATE = "update"
    PAUSE = "pause"
    RESET = "reset"
    FINISH = "finish"


STOP_EVENTS = frozenset({TimerEvent.FINISH, TimerEvent.PAUSE, TimerEvent.RESET})

EventName = Union[TimerEvent, str]


def coerce_event(name: EventName) -> TimerEvent:
    """Return the ``TimerEvent`` for *name*, raising ``ValueError`` if unknown."""
    try:
        return TimerEvent(name)
    except ValueError:
        valid = ", ".join(event.value for event in TimerEvent)
        raise ValueError(f"unknown timer event {name!r} (expected one of: {valid})") from None


class EventBus:
    """Fan out named events to handlers, synchronously and in registration order."""

    def __init__(self) -> None:
        self._handlers: dict[TimerEvent, list[Handler]] = {}

    def on(self, name: EventName, handler: Handler) -> None:
        """Register *handler* for *name*.  Registering twice means two calls."""
        self._handlers.setdefault(coerce_event(name), []).append(handler)

    def off(self, name: EventName, handler: Handler | None = None) -> None:
        """Remove the first registration of *handler* for *name*.

        Without a *handler*, every handler for *name* is dropped.  Removing a
        handler that was never registered is a no-op.
        """
        event = coerce_event(name)
        if handler is None:
            self._handlers.pop(event, None)
            return
        handlers = self._handlers.get(event)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def emit(self, name: EventName, payload: float) -> None:
        """Call every handler registered for *name* with *payload*.

        Dispatch iterates over a snapshot, so handlers added or removed while
        dispatching only affect later emissions.
        """
        for handler in list(self._handlers.get(coerce_event(name), ())):
            handler(payload)
