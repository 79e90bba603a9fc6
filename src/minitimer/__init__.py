"""mini-timer: the tiniest observable count-down / count-up timer."""

from minitimer.core.events import EventBus, TimerEvent
from minitimer.core.formatting import format_time
from minitimer.core.scheduler import (
    BlockingScheduler,
    ManualScheduler,
    Scheduler,
    ThreadingScheduler,
)
from minitimer.core.timer import InvalidRangeError, Timer, TimerConfig, create_timer

__version__ = "0.1.0"

__all__ = [
    "BlockingScheduler",
    "EventBus",
    "InvalidRangeError",
    "ManualScheduler",
    "Scheduler",
    "ThreadingScheduler",
    "Timer",
    "TimerConfig",
    "TimerEvent",
    "create_timer",
    "format_time",
]
